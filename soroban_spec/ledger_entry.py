"""
Ledger entry decoding.

RPC endpoints return each ledger entry as base64 XDR. Depending on the
server this is either a full ``LedgerEntry`` envelope
(``lastModifiedLedgerSeq``, data, extension) or the bare ``LedgerEntryData``
union. Both shapes are tried, in that order, through an explicit list of
candidate decoders.

Only the entry kinds that matter for spec extraction are decoded in full
(contract data, contract code and TTL); other kinds are recognised by their
discriminant so errors can name the kind actually observed.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, List, Optional, Tuple

from .errors import DecodeError, NotWasmContract, UnexpectedEntryKind
from .ledger_keys import (
    HASH_LENGTH,
    ContractDataDurability,
    LedgerEntryType,
    ScAddressType,
    ScValType,
)
from .xdr import XdrError, XdrReader

logger = logging.getLogger(__name__)

MAX_SCVAL_DEPTH = 128


class ContractExecutableType(IntEnum):
    WASM = 0
    STELLAR_ASSET = 1


class ScErrorType(IntEnum):
    CONTRACT = 0
    WASM_VM = 1
    CONTEXT = 2
    STORAGE = 3
    OBJECT = 4
    CRYPTO = 5
    EVENTS = 6
    BUDGET = 7
    VALUE = 8
    AUTH = 9


# ---------------------------------------------------------------------------
# Decoded shapes
# ---------------------------------------------------------------------------

@dataclass
class ScVal:
    """A decoded ``SCVal``: its discriminant plus a plain Python value."""
    type: ScValType
    value: Any = None


@dataclass
class ContractInstance:
    executable: ContractExecutableType
    wasm_hash: Optional[bytes] = None
    storage: Optional[List[Tuple[ScVal, ScVal]]] = None


@dataclass
class ContractDataEntry:
    contract: Tuple[ScAddressType, Any]
    key: ScVal
    durability: ContractDataDurability
    val: ScVal


@dataclass
class ContractCodeEntry:
    hash: bytes
    code: bytes
    cost_inputs: Optional[List[int]] = None


@dataclass
class TtlEntry:
    key_hash: bytes
    live_until_ledger_seq: int


@dataclass
class LedgerEntryData:
    """``LedgerEntryData`` union; ``body`` is None for kinds not decoded here."""
    kind: LedgerEntryType
    body: Any = None


@dataclass
class LedgerEntry:
    last_modified_ledger_seq: int
    data: LedgerEntryData
    sponsoring_id: Optional[bytes] = None


# ---------------------------------------------------------------------------
# XDR readers
# ---------------------------------------------------------------------------

def _enum(enum_cls, value: int, what: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise XdrError(f"Unknown {what} discriminant {value}") from None


def _read_extension_point(reader: XdrReader) -> None:
    version = reader.int32()
    if version != 0:
        raise XdrError(f"Unknown ExtensionPoint version {version}")


def _read_public_key(reader: XdrReader) -> bytes:
    key_type = reader.int32()
    if key_type != 0:
        raise XdrError(f"Unknown PublicKey type {key_type}")
    return reader.fixed_opaque(HASH_LENGTH)


def read_sc_address(reader: XdrReader) -> Tuple[ScAddressType, Any]:
    kind = _enum(ScAddressType, reader.int32(), "SCAddress")
    if kind == ScAddressType.ACCOUNT:
        return kind, _read_public_key(reader)
    if kind == ScAddressType.CONTRACT:
        return kind, reader.fixed_opaque(HASH_LENGTH)
    if kind == ScAddressType.MUXED_ACCOUNT:
        muxed_id = reader.uint64()
        return kind, (muxed_id, reader.fixed_opaque(HASH_LENGTH))
    if kind == ScAddressType.CLAIMABLE_BALANCE:
        version = reader.int32()
        if version != 0:
            raise XdrError(f"Unknown ClaimableBalanceID type {version}")
        return kind, reader.fixed_opaque(HASH_LENGTH)
    return kind, reader.fixed_opaque(HASH_LENGTH)


def _read_sc_map(reader: XdrReader, depth: int) -> List[Tuple[ScVal, ScVal]]:
    def entry():
        key = read_sc_val(reader, depth + 1)
        return key, read_sc_val(reader, depth + 1)

    return reader.array(entry)


def _read_contract_instance(reader: XdrReader, depth: int) -> ContractInstance:
    executable = _enum(ContractExecutableType, reader.int32(), "ContractExecutable")
    wasm_hash = None
    if executable == ContractExecutableType.WASM:
        wasm_hash = reader.fixed_opaque(HASH_LENGTH)
    storage = reader.optional(lambda: _read_sc_map(reader, depth))
    return ContractInstance(executable=executable, wasm_hash=wasm_hash, storage=storage)


def read_sc_val(reader: XdrReader, depth: int = 0) -> ScVal:
    """Decode one ``SCVal`` from ``reader``."""
    if depth > MAX_SCVAL_DEPTH:
        raise XdrError("SCVal nesting too deep")

    kind = _enum(ScValType, reader.int32(), "SCVal")

    if kind == ScValType.BOOL:
        return ScVal(kind, reader.boolean())
    if kind in (ScValType.VOID, ScValType.LEDGER_KEY_CONTRACT_INSTANCE):
        return ScVal(kind)
    if kind == ScValType.ERROR:
        error_type = _enum(ScErrorType, reader.int32(), "SCError")
        code = reader.uint32() if error_type == ScErrorType.CONTRACT else reader.int32()
        return ScVal(kind, (error_type, code))
    if kind == ScValType.U32:
        return ScVal(kind, reader.uint32())
    if kind == ScValType.I32:
        return ScVal(kind, reader.int32())
    if kind in (ScValType.U64, ScValType.TIMEPOINT, ScValType.DURATION):
        return ScVal(kind, reader.uint64())
    if kind == ScValType.I64:
        return ScVal(kind, reader.int64())
    if kind == ScValType.U128:
        hi = reader.uint64()
        return ScVal(kind, (hi << 64) | reader.uint64())
    if kind == ScValType.I128:
        hi = reader.int64()
        return ScVal(kind, (hi << 64) | reader.uint64())
    if kind in (ScValType.U256, ScValType.I256):
        hi_hi = reader.int64() if kind == ScValType.I256 else reader.uint64()
        value = hi_hi
        for _ in range(3):
            value = (value << 64) | reader.uint64()
        return ScVal(kind, value)
    if kind == ScValType.BYTES:
        return ScVal(kind, reader.var_opaque())
    if kind == ScValType.STRING:
        return ScVal(kind, reader.string())
    if kind == ScValType.SYMBOL:
        return ScVal(kind, reader.string(32))
    if kind == ScValType.VEC:
        return ScVal(kind, reader.optional(
            lambda: reader.array(lambda: read_sc_val(reader, depth + 1))
        ))
    if kind == ScValType.MAP:
        return ScVal(kind, reader.optional(lambda: _read_sc_map(reader, depth)))
    if kind == ScValType.ADDRESS:
        return ScVal(kind, read_sc_address(reader))
    if kind == ScValType.CONTRACT_INSTANCE:
        return ScVal(kind, _read_contract_instance(reader, depth))
    # LEDGER_KEY_NONCE
    return ScVal(kind, reader.int64())


def _read_contract_data(reader: XdrReader) -> ContractDataEntry:
    _read_extension_point(reader)
    contract = read_sc_address(reader)
    key = read_sc_val(reader)
    durability = _enum(ContractDataDurability, reader.int32(), "ContractDataDurability")
    val = read_sc_val(reader)
    return ContractDataEntry(contract=contract, key=key, durability=durability, val=val)


def _read_contract_code(reader: XdrReader) -> ContractCodeEntry:
    version = reader.int32()
    cost_inputs = None
    if version == 1:
        _read_extension_point(reader)
        # ContractCodeCostInputs: extension point followed by ten uint32 counters
        _read_extension_point(reader)
        cost_inputs = [reader.uint32() for _ in range(10)]
    elif version != 0:
        raise XdrError(f"Unknown ContractCodeEntry extension version {version}")
    code_hash = reader.fixed_opaque(HASH_LENGTH)
    code = reader.var_opaque()
    return ContractCodeEntry(hash=code_hash, code=code, cost_inputs=cost_inputs)


def _read_ttl(reader: XdrReader) -> TtlEntry:
    key_hash = reader.fixed_opaque(HASH_LENGTH)
    return TtlEntry(key_hash=key_hash, live_until_ledger_seq=reader.uint32())


_BODY_READERS = {
    LedgerEntryType.CONTRACT_DATA: _read_contract_data,
    LedgerEntryType.CONTRACT_CODE: _read_contract_code,
    LedgerEntryType.TTL: _read_ttl,
}


def _read_entry_data(reader: XdrReader, strict: bool) -> LedgerEntryData:
    kind = _enum(LedgerEntryType, reader.int32(), "LedgerEntryType")
    body_reader = _BODY_READERS.get(kind)
    if body_reader is None:
        if strict:
            raise XdrError(f"Cannot decode {kind.name} ledger entry body")
        return LedgerEntryData(kind=kind)
    return LedgerEntryData(kind=kind, body=body_reader(reader))


def _read_entry_ext(reader: XdrReader) -> Optional[bytes]:
    version = reader.int32()
    if version == 0:
        return None
    if version != 1:
        raise XdrError(f"Unknown LedgerEntry extension version {version}")
    sponsoring_id = reader.optional(lambda: _read_public_key(reader))
    _read_extension_point(reader)
    return sponsoring_id


# ---------------------------------------------------------------------------
# Candidate decoders, tried in order
# ---------------------------------------------------------------------------

def decode_ledger_entry(raw: bytes) -> LedgerEntry:
    """Decode a full ``LedgerEntry`` envelope; every byte must be consumed."""
    reader = XdrReader(raw)
    seq = reader.uint32()
    data = _read_entry_data(reader, strict=True)
    sponsoring_id = _read_entry_ext(reader)
    reader.expect_end()
    return LedgerEntry(last_modified_ledger_seq=seq, data=data, sponsoring_id=sponsoring_id)


def decode_bare_entry_data(raw: bytes) -> LedgerEntryData:
    """Decode a bare ``LedgerEntryData`` union."""
    reader = XdrReader(raw)
    data = _read_entry_data(reader, strict=False)
    if data.body is not None:
        reader.expect_end()
    return data


CANDIDATE_DECODERS: List[Tuple[str, Callable[[bytes], LedgerEntryData]]] = [
    ("LedgerEntry", lambda raw: decode_ledger_entry(raw).data),
    ("LedgerEntryData", decode_bare_entry_data),
]


def decode_entry_data(xdr_base64: str) -> LedgerEntryData:
    """Base64-decode ``xdr_base64`` and run it through the candidate decoders.

    Raises:
        DecodeError: the payload is not base64 or matches no candidate.
    """
    try:
        raw = base64.b64decode(xdr_base64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Ledger entry is not valid base64: {e}") from e

    if not raw:
        raise DecodeError("Ledger entry payload is empty")

    logger.debug("XDR bytes length: %d", len(raw))
    logger.debug("XDR hex (first 50): %s...", raw[:50].hex())

    failures = []
    for name, candidate in CANDIDATE_DECODERS:
        try:
            data = candidate(raw)
        except XdrError as e:
            logger.debug("Not a %s: %s", name, e)
            failures.append(f"{name}: {e}")
            continue
        logger.debug("Parsed as %s (%s)", name, data.kind.name)
        return data

    raise DecodeError(
        "Failed to parse XDR as LedgerEntry or LedgerEntryData: " + "; ".join(failures)
    )


def decode_instance(xdr_base64: str) -> bytes:
    """Extract the 32-byte WASM hash from a contract instance entry.

    Raises:
        UnexpectedEntryKind: the entry is not a contract-data record holding
            a contract instance.
        NotWasmContract: the instance runs the built-in Stellar Asset contract.
    """
    data = decode_entry_data(xdr_base64)
    if data.kind != LedgerEntryType.CONTRACT_DATA:
        raise UnexpectedEntryKind("CONTRACT_DATA", data.kind.name)

    val = data.body.val
    if val.type != ScValType.CONTRACT_INSTANCE:
        raise UnexpectedEntryKind("CONTRACT_INSTANCE", val.type.name)

    instance = val.value
    if instance.executable == ContractExecutableType.STELLAR_ASSET:
        raise NotWasmContract("Contract is a Stellar Asset contract, not WASM")
    return instance.wasm_hash


def decode_code(xdr_base64: str) -> bytes:
    """Return the raw WASM module bytes from a contract code entry."""
    data = decode_entry_data(xdr_base64)
    if data.kind != LedgerEntryType.CONTRACT_CODE:
        raise UnexpectedEntryKind("CONTRACT_CODE", data.kind.name)
    return data.body.code
