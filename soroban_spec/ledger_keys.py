"""
Ledger key construction for ``getLedgerEntries`` lookups.

Two keys are needed to reach a contract's WASM:

1. the contract-data key of the contract's *instance* record, which holds
   the executable (WASM hash) reference, and
2. the contract-code key of the WASM blob itself, addressed by that hash.

Both are serialized as XDR ``LedgerKey`` values and base64 encoded. A key
that deviates from the wire schema makes the RPC return zero entries rather
than an error, so the byte layout here is pinned by golden tests.
"""

import base64
from enum import IntEnum

from .xdr import XdrWriter

HASH_LENGTH = 32


class LedgerEntryType(IntEnum):
    ACCOUNT = 0
    TRUSTLINE = 1
    OFFER = 2
    DATA = 3
    CLAIMABLE_BALANCE = 4
    LIQUIDITY_POOL = 5
    CONTRACT_DATA = 6
    CONTRACT_CODE = 7
    CONFIG_SETTING = 8
    TTL = 9


class ScAddressType(IntEnum):
    ACCOUNT = 0
    CONTRACT = 1
    MUXED_ACCOUNT = 2
    CLAIMABLE_BALANCE = 3
    LIQUIDITY_POOL = 4


class ScValType(IntEnum):
    BOOL = 0
    VOID = 1
    ERROR = 2
    U32 = 3
    I32 = 4
    U64 = 5
    I64 = 6
    TIMEPOINT = 7
    DURATION = 8
    U128 = 9
    I128 = 10
    U256 = 11
    I256 = 12
    BYTES = 13
    STRING = 14
    SYMBOL = 15
    VEC = 16
    MAP = 17
    ADDRESS = 18
    CONTRACT_INSTANCE = 19
    LEDGER_KEY_CONTRACT_INSTANCE = 20
    LEDGER_KEY_NONCE = 21


class ContractDataDurability(IntEnum):
    TEMPORARY = 0
    PERSISTENT = 1


def contract_instance_key_xdr(contract_id: bytes) -> bytes:
    """Raw XDR of the ``LedgerKey`` addressing a contract's instance record."""
    writer = XdrWriter()
    writer.int32(LedgerEntryType.CONTRACT_DATA)
    # contract: SCAddress
    writer.int32(ScAddressType.CONTRACT)
    writer.fixed_opaque(contract_id, HASH_LENGTH)
    # key: SCVal, the instance sentinel has a void arm
    writer.int32(ScValType.LEDGER_KEY_CONTRACT_INSTANCE)
    writer.int32(ContractDataDurability.PERSISTENT)
    return writer.to_bytes()


def contract_code_key_xdr(wasm_hash: bytes) -> bytes:
    """Raw XDR of the ``LedgerKey`` addressing a WASM code record."""
    writer = XdrWriter()
    writer.int32(LedgerEntryType.CONTRACT_CODE)
    writer.fixed_opaque(wasm_hash, HASH_LENGTH)
    return writer.to_bytes()


def contract_instance_key(contract_id: bytes) -> str:
    """Base64 ``LedgerKey`` for the instance record of ``contract_id``.

    Args:
        contract_id: 32-byte payload of a decoded ``C...`` strkey.
    """
    return base64.b64encode(contract_instance_key_xdr(contract_id)).decode("ascii")


def contract_code_key(wasm_hash: bytes) -> str:
    """Base64 ``LedgerKey`` for the code record identified by ``wasm_hash``."""
    return base64.b64encode(contract_code_key_xdr(wasm_hash)).decode("ascii")
