"""
Contract spec fetch pipeline.

Runs the extraction stages in order, each depending on the previous one:

1. decode the ``C...`` contract address
2. look up the contract instance record and read its WASM hash
3. look up the contract code record and read the WASM bytes
4. parse the contract spec embedded in the WASM

A failing stage stops the run. The raised error is tagged with the stage
name in its ``stage`` attribute; nothing is retried and no partial spec is
returned.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from . import ledger_entry, ledger_keys, strkey
from .config import ExtractorConfig
from .errors import NotFoundError, SpecExtractionError
from .rpc import RpcGateway
from .spec_parser import extract_spec
from .types import ContractSpec

logger = logging.getLogger(__name__)


class PipelineStage(Enum):
    """Stages of a fetch, in execution order."""
    DECODE_ADDRESS = "decode_address"
    FETCH_INSTANCE = "fetch_instance"
    FETCH_CODE = "fetch_code"
    PARSE_SPEC = "parse_spec"


@dataclass
class ExtractionResult:
    """Spec of one deployed contract plus where it came from."""
    contract_id: str
    wasm_hash: str
    wasm_size: int
    spec: ContractSpec

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contract_id": self.contract_id,
            "wasm_hash": self.wasm_hash,
            "wasm_size": self.wasm_size,
            "spec": self.spec.to_dict(),
        }


@contextmanager
def _stage(stage: PipelineStage) -> Iterator[None]:
    try:
        yield
    except SpecExtractionError as e:
        e.stage = stage.value
        logger.error("Stage %s failed: %s", stage.value, e)
        raise


class SpecFetcher:
    """Fetches the WASM of a deployed contract and extracts its spec.

    Example:
        fetcher = SpecFetcher("https://soroban-testnet.stellar.org")
        spec = fetcher.fetch_spec("CDLZFC3SYJYDZT7K67VZ75HPJVIEUVNIXF47ZG2FB2RMQQVU2HHGCYSC")
    """

    def __init__(
        self,
        config: Union[str, ExtractorConfig],
        gateway: Optional[RpcGateway] = None,
    ):
        if isinstance(config, str):
            config = ExtractorConfig(rpc_url=config)
        self.config = config
        self.gateway = gateway or RpcGateway(config.rpc_url, timeout=config.timeout)

    def fetch_wasm_hash(self, contract_id: str) -> bytes:
        """WASM hash referenced by the contract's instance record."""
        with _stage(PipelineStage.DECODE_ADDRESS):
            payload = strkey.decode_contract(contract_id)

        with _stage(PipelineStage.FETCH_INSTANCE):
            key = ledger_keys.contract_instance_key(payload)
            logger.debug("Instance ledger key: %s", key)
            entries = self.gateway.get_ledger_entries([key])
            if not entries:
                raise NotFoundError("Contract", key)
            return ledger_entry.decode_instance(entries[0].xdr)

    def fetch_code(self, wasm_hash: bytes) -> bytes:
        """WASM bytes stored under ``wasm_hash``."""
        with _stage(PipelineStage.FETCH_CODE):
            key = ledger_keys.contract_code_key(wasm_hash)
            logger.debug("Code ledger key: %s", key)
            entries = self.gateway.get_ledger_entries([key])
            if not entries:
                raise NotFoundError("WASM code", key)
            return ledger_entry.decode_code(entries[0].xdr)

    def _fetch(self, contract_id: str) -> Tuple[bytes, bytes]:
        logger.info("[1/3] Fetching contract instance for %s...", contract_id)
        wasm_hash = self.fetch_wasm_hash(contract_id)
        logger.info("[1/3] WASM hash: %s", wasm_hash.hex())

        logger.info("[2/3] Fetching WASM code...")
        wasm = self.fetch_code(wasm_hash)
        logger.info("[2/3] WASM size: %d bytes", len(wasm))
        return wasm_hash, wasm

    def fetch_wasm(self, contract_id: str) -> bytes:
        """WASM module of a deployed contract."""
        return self._fetch(contract_id)[1]

    def fetch_spec(self, contract_id: str) -> ContractSpec:
        """Fetch and parse the spec of a deployed contract."""
        return self.extract(contract_id).spec

    def extract(self, contract_id: str) -> ExtractionResult:
        wasm_hash, wasm = self._fetch(contract_id)

        logger.info("[3/3] Parsing contract spec...")
        with _stage(PipelineStage.PARSE_SPEC):
            spec = extract_spec(wasm)
        logger.info(
            "[3/3] Found %d functions, %d types, %d errors",
            len(spec.functions), len(spec.types), len(spec.errors),
        )
        return ExtractionResult(
            contract_id=contract_id,
            wasm_hash=wasm_hash.hex(),
            wasm_size=len(wasm),
            spec=spec,
        )


def spec_from_wasm(wasm: bytes) -> ContractSpec:
    """Parse a local WASM module, tagging failures like a network fetch."""
    with _stage(PipelineStage.PARSE_SPEC):
        return extract_spec(wasm)
