"""
Byte builders shared by the test modules.

Everything here encodes with ``XdrWriter`` so fixtures read like the
structures they describe: spec entries, WASM modules, ledger entries and
JSON-RPC responses.
"""

import base64
from typing import List, Sequence, Tuple
from unittest.mock import MagicMock

from soroban_spec.xdr import XdrWriter

# SCSpecType codes
T_VAL = 0
T_BOOL = 1
T_VOID = 2
T_ERROR = 3
T_U32 = 4
T_I32 = 5
T_U64 = 6
T_I64 = 7
T_TIMEPOINT = 8
T_DURATION = 9
T_U128 = 10
T_I128 = 11
T_U256 = 12
T_I256 = 13
T_BYTES = 14
T_STRING = 16
T_SYMBOL = 17
T_ADDRESS = 19
T_MUXED_ADDRESS = 20

ZERO_HASH = bytes(32)
WASM_HASH = bytes(range(32))


# ---------------------------------------------------------------------------
# Spec type definitions
# ---------------------------------------------------------------------------

def t(code: int) -> bytes:
    return XdrWriter().int32(code).to_bytes()


def t_option(inner: bytes) -> bytes:
    return t(1000) + inner


def t_result(ok: bytes, err: bytes) -> bytes:
    return t(1001) + ok + err


def t_vec(element: bytes) -> bytes:
    return t(1002) + element


def t_map(key: bytes, value: bytes) -> bytes:
    return t(1004) + key + value


def t_tuple(*types: bytes) -> bytes:
    return t(1005) + XdrWriter().uint32(len(types)).to_bytes() + b"".join(types)


def t_bytes_n(n: int) -> bytes:
    return t(1006) + XdrWriter().uint32(n).to_bytes()


def t_udt(name: str) -> bytes:
    return t(2000) + XdrWriter().string(name).to_bytes()


# ---------------------------------------------------------------------------
# Spec entries
# ---------------------------------------------------------------------------

def _named_types(items: Sequence[Tuple]) -> bytes:
    """``[(name, type_bytes)]`` or ``[(name, type_bytes, doc)]`` as an XDR array."""
    out = XdrWriter().uint32(len(items)).to_bytes()
    for item in items:
        name, type_bytes = item[0], item[1]
        doc = item[2] if len(item) > 2 else ""
        out += XdrWriter().string(doc).string(name).to_bytes() + type_bytes
    return out


def function_entry(name: str, inputs=(), outputs=(), doc: str = "") -> bytes:
    head = XdrWriter().int32(0).string(doc).string(name).to_bytes()
    tail = XdrWriter().uint32(len(outputs)).to_bytes() + b"".join(outputs)
    return head + _named_types(inputs) + tail


def _udt_header(kind: int, name: str, doc: str = "", lib: str = "") -> bytes:
    return XdrWriter().int32(kind).string(doc).string(lib).string(name).to_bytes()


def struct_entry(name: str, fields, doc: str = "") -> bytes:
    return _udt_header(1, name, doc) + _named_types(fields)


def union_entry(name: str, cases, doc: str = "") -> bytes:
    """``cases``: ``(name,)`` for a unit case, ``(name, [type_bytes, ...])`` for a tuple case."""
    out = _udt_header(2, name, doc) + XdrWriter().uint32(len(cases)).to_bytes()
    for case in cases:
        if len(case) == 1:
            out += XdrWriter().int32(0).string("").string(case[0]).to_bytes()
        else:
            case_name, types = case
            out += XdrWriter().int32(1).string("").string(case_name).uint32(len(types)).to_bytes()
            out += b"".join(types)
    return out


def _enum_cases(cases) -> bytes:
    writer = XdrWriter().uint32(len(cases))
    for item in cases:
        case_name, value = item[0], item[1]
        doc = item[2] if len(item) > 2 else ""
        writer.string(doc).string(case_name).uint32(value)
    return writer.to_bytes()


def enum_entry(name: str, cases, doc: str = "") -> bytes:
    return _udt_header(3, name, doc) + _enum_cases(cases)


def error_enum_entry(name: str, cases, doc: str = "") -> bytes:
    return _udt_header(4, name, doc) + _enum_cases(cases)


def event_entry(name: str, topics: List[str], params) -> bytes:
    writer = XdrWriter().int32(5).string("").string("").string(name).uint32(len(topics))
    for topic in topics:
        writer.string(topic)
    out = writer.uint32(len(params)).to_bytes()
    for param_name, type_bytes in params:
        out += XdrWriter().string("").string(param_name).to_bytes()
        out += type_bytes + XdrWriter().int32(0).to_bytes()       # location: data
    return out + XdrWriter().int32(0).to_bytes()                  # data format


def meta_section(pairs) -> bytes:
    writer = XdrWriter()
    for key, value in pairs:
        writer.int32(0).string(key).string(value)
    return writer.to_bytes()


# ---------------------------------------------------------------------------
# WASM modules
# ---------------------------------------------------------------------------

def leb128(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def section(section_id: int, payload: bytes) -> bytes:
    return bytes([section_id]) + leb128(len(payload)) + payload


def custom_section(name: str, contents: bytes) -> bytes:
    encoded = name.encode("utf-8")
    return section(0, leb128(len(encoded)) + encoded + contents)


def wasm_module(*custom: Tuple[str, bytes], code: bytes = b"") -> bytes:
    """Minimal module: header, a type section, then the given custom sections."""
    body = section(1, b"\x00")
    if code:
        body += section(10, code)
    for name, contents in custom:
        body += custom_section(name, contents)
    return b"\x00asm\x01\x00\x00\x00" + body


def spec_wasm(*entries: bytes, name: str = None) -> bytes:
    sections = [("contractspecv0", b"".join(entries))]
    if name is not None:
        sections.append(("contractmetav0", meta_section([("rsver", "1.80.0"), ("name", name)])))
    return wasm_module(*sections)


# ---------------------------------------------------------------------------
# Ledger entries
# ---------------------------------------------------------------------------

def contract_instance_data(wasm_hash: bytes = WASM_HASH, contract_id: bytes = ZERO_HASH,
                           asset: bool = False) -> bytes:
    writer = XdrWriter()
    writer.int32(6)                                   # CONTRACT_DATA
    writer.int32(0)                                   # ext
    writer.int32(1).fixed_opaque(contract_id, 32)     # SCAddress CONTRACT
    writer.int32(20)                                  # LEDGER_KEY_CONTRACT_INSTANCE
    writer.int32(1)                                   # PERSISTENT
    writer.int32(19)                                  # CONTRACT_INSTANCE
    if asset:
        writer.int32(1)
    else:
        writer.int32(0).fixed_opaque(wasm_hash, 32)
    writer.boolean(False)                             # no storage
    return writer.to_bytes()


def contract_code_data(code: bytes, wasm_hash: bytes = WASM_HASH, ext_v1: bool = False) -> bytes:
    writer = XdrWriter().int32(7)
    if ext_v1:
        writer.int32(1).int32(0).int32(0)
        for i in range(10):
            writer.uint32(i)
    else:
        writer.int32(0)
    writer.fixed_opaque(wasm_hash, 32).var_opaque(code)
    return writer.to_bytes()


def envelope(data: bytes, seq: int = 123456) -> bytes:
    """Wrap bare ``LedgerEntryData`` in a ``LedgerEntry``."""
    return XdrWriter().uint32(seq).to_bytes() + data + XdrWriter().int32(0).to_bytes()


def b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


# ---------------------------------------------------------------------------
# RPC
# ---------------------------------------------------------------------------

def rpc_response(body, status: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.json.return_value = body
    response.raise_for_status.return_value = None
    return response


def entries_result(*xdrs: str) -> dict:
    return {"jsonrpc": "2.0", "id": 1, "result": {
        "entries": [{"key": "k", "xdr": x, "lastModifiedLedgerSeq": 10} for x in xdrs],
        "latestLedger": 100,
    }}
