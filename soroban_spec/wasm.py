"""
WebAssembly module section reader.

Soroban contracts embed their interface description in *custom* sections
(id 0) of the WASM binary, so only the section framing is parsed here:
magic, version, then ``id | LEB128 size | payload`` records. Code sections
are skipped without inspection.
"""

import logging
from typing import Iterator, List, Tuple

from .errors import WasmFormatError

logger = logging.getLogger(__name__)

WASM_MAGIC = b"\x00asm"
WASM_VERSION = b"\x01\x00\x00\x00"
CUSTOM_SECTION_ID = 0


def read_leb128_u32(data: bytes, offset: int) -> Tuple[int, int]:
    """Decode an unsigned LEB128 integer; returns ``(value, new_offset)``."""
    result = 0
    shift = 0
    while True:
        if offset >= len(data):
            raise WasmFormatError("Truncated LEB128 integer")
        byte = data[offset]
        offset += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            break
        shift += 7
        if shift >= 35:
            raise WasmFormatError("LEB128 integer too long")
    if result > 0xFFFFFFFF:
        raise WasmFormatError("LEB128 integer overflows u32")
    return result, offset


def iter_sections(wasm: bytes) -> Iterator[Tuple[int, bytes]]:
    """Yield ``(section_id, payload)`` for every section of the module."""
    if len(wasm) < 8 or wasm[:4] != WASM_MAGIC:
        raise WasmFormatError("Not a WASM module (bad magic number)")
    if wasm[4:8] != WASM_VERSION:
        raise WasmFormatError(f"Unsupported WASM version {wasm[4:8].hex()}")

    offset = 8
    while offset < len(wasm):
        section_id = wasm[offset]
        size, offset = read_leb128_u32(wasm, offset + 1)
        end = offset + size
        if end > len(wasm):
            raise WasmFormatError(
                f"Section {section_id} at offset {offset} overruns the module"
            )
        yield section_id, wasm[offset:end]
        offset = end


def iter_custom_sections(wasm: bytes) -> Iterator[Tuple[str, bytes]]:
    """Yield ``(name, contents)`` for every custom section."""
    for section_id, payload in iter_sections(wasm):
        if section_id != CUSTOM_SECTION_ID:
            continue
        name_length, offset = read_leb128_u32(payload, 0)
        if offset + name_length > len(payload):
            raise WasmFormatError("Custom section name overruns its section")
        try:
            name = payload[offset:offset + name_length].decode("utf-8")
        except UnicodeDecodeError as e:
            raise WasmFormatError(f"Custom section name is not UTF-8: {e}") from e
        yield name, payload[offset + name_length:]


def custom_sections(wasm: bytes, name: str) -> List[bytes]:
    """Contents of every custom section called ``name``, in module order."""
    found = [contents for section_name, contents in iter_custom_sections(wasm)
             if section_name == name]
    logger.debug("Found %d '%s' section(s)", len(found), name)
    return found
