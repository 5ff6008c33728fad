"""
Stellar RPC gateway.

Issues ``getLedgerEntries`` JSON-RPC calls over a ``requests.Session``.
Transport failures, JSON-RPC error envelopes and "no entries" are kept
distinct: the first two raise, the last returns an empty list.
"""

import itertools
import logging
from dataclasses import dataclass
from typing import List, Optional

import requests

from .errors import RpcProtocolError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass
class LedgerEntryResult:
    """One entry of a ``getLedgerEntries`` result."""
    xdr: str
    key: str = ""
    last_modified_ledger_seq: Optional[int] = None
    live_until_ledger_seq: Optional[int] = None


class RpcGateway:
    """JSON-RPC client for a Soroban RPC endpoint."""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self._ids = itertools.count(1)

    def call(self, method: str, params: dict) -> dict:
        """Send one JSON-RPC request and return its ``result`` object.

        Raises:
            TransportError: connection/timeout failure, non-2xx status,
                a body that is not JSON, or an envelope with neither
                ``result`` nor ``error``.
            RpcProtocolError: the envelope carries an ``error`` object.
        """
        request_id = next(self._ids)
        payload = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": params,
        }
        logger.debug("RPC request %d: %s -> %s", request_id, method, self.rpc_url)

        try:
            response = self.session.post(self.rpc_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(f"{method} request to {self.rpc_url} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(f"{method} response is not valid JSON: {e}") from e

        if not isinstance(body, dict):
            raise TransportError(f"{method} response is not a JSON-RPC envelope")

        error = body.get("error")
        if error is not None:
            if not isinstance(error, dict):
                raise TransportError(f"{method} response has a malformed error object")
            raise RpcProtocolError(error.get("code", 0), str(error.get("message", "")))

        result = body.get("result")
        if not isinstance(result, dict):
            raise TransportError("No result in RPC response")
        return result

    def get_ledger_entries(self, keys: List[str]) -> List[LedgerEntryResult]:
        """Look up ledger entries by base64 ``LedgerKey``.

        Returns an empty list when none of the keys exist on the ledger.
        """
        result = self.call("getLedgerEntries", {"keys": list(keys)})
        entries = result.get("entries") or []
        if not isinstance(entries, list):
            raise TransportError("getLedgerEntries result has no entries list")

        parsed = []
        for entry in entries:
            if not isinstance(entry, dict) or not isinstance(entry.get("xdr"), str):
                raise TransportError("getLedgerEntries entry is missing its xdr field")
            parsed.append(LedgerEntryResult(
                xdr=entry["xdr"],
                key=entry.get("key", ""),
                last_modified_ledger_seq=entry.get("lastModifiedLedgerSeq"),
                live_until_ledger_seq=entry.get("liveUntilLedgerSeq"),
            ))

        logger.debug("Got %d ledger entries", len(parsed))
        return parsed
