"""
Minimal XDR (RFC 4506) reader and writer.

Only the primitives needed by the Stellar ledger and contract-spec schemas
are implemented: 32/64-bit integers, booleans, fixed and variable opaque
data, strings, optionals and counted arrays. Everything is big-endian and
padded to 4-byte boundaries.
"""

import struct
from typing import Callable, List, Optional, TypeVar

T = TypeVar("T")


class XdrError(ValueError):
    """Raised when a byte stream does not match the expected XDR shape."""


def _padding(length: int) -> int:
    return (4 - length % 4) % 4


class XdrReader:
    """Sequential reader over an XDR byte buffer."""

    def __init__(self, data: bytes, offset: int = 0):
        self.data = bytes(data)
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def at_end(self) -> bool:
        return self.offset == len(self.data)

    def expect_end(self) -> None:
        if not self.at_end():
            raise XdrError(f"{self.remaining} trailing bytes after XDR value")

    def _take(self, count: int) -> bytes:
        if count < 0 or self.offset + count > len(self.data):
            raise XdrError(
                f"Unexpected end of XDR data: need {count} bytes at offset "
                f"{self.offset}, have {self.remaining}"
            )
        chunk = self.data[self.offset:self.offset + count]
        self.offset += count
        return chunk

    def _unpack(self, fmt: str, size: int) -> int:
        return struct.unpack(fmt, self._take(size))[0]

    def uint32(self) -> int:
        return self._unpack(">I", 4)

    def int32(self) -> int:
        return self._unpack(">i", 4)

    def uint64(self) -> int:
        return self._unpack(">Q", 8)

    def int64(self) -> int:
        return self._unpack(">q", 8)

    def boolean(self) -> bool:
        value = self.uint32()
        if value not in (0, 1):
            raise XdrError(f"Invalid XDR bool value {value}")
        return value == 1

    def fixed_opaque(self, length: int) -> bytes:
        value = self._take(length)
        self._skip_padding(length)
        return value

    def var_opaque(self, max_length: Optional[int] = None) -> bytes:
        length = self.uint32()
        if max_length is not None and length > max_length:
            raise XdrError(f"Opaque length {length} exceeds limit {max_length}")
        return self.fixed_opaque(length)

    def string(self, max_length: Optional[int] = None) -> str:
        # Stellar strings are byte strings; decode lossily like the reference tooling
        return self.var_opaque(max_length).decode("utf-8", errors="replace")

    def optional(self, read: Callable[[], T]) -> Optional[T]:
        return read() if self.boolean() else None

    def array(self, read: Callable[[], T], max_length: Optional[int] = None) -> List[T]:
        count = self.uint32()
        if max_length is not None and count > max_length:
            raise XdrError(f"Array length {count} exceeds limit {max_length}")
        # Every element occupies at least 4 bytes
        if count * 4 > self.remaining:
            raise XdrError(f"Array length {count} exceeds remaining data")
        return [read() for _ in range(count)]

    def _skip_padding(self, length: int) -> None:
        pad = self._take(_padding(length))
        if any(pad):
            raise XdrError("Non-zero XDR padding")


class XdrWriter:
    """Accumulates XDR-encoded values."""

    def __init__(self):
        self._parts: List[bytes] = []

    def uint32(self, value: int) -> "XdrWriter":
        self._parts.append(struct.pack(">I", value))
        return self

    def int32(self, value: int) -> "XdrWriter":
        self._parts.append(struct.pack(">i", value))
        return self

    def uint64(self, value: int) -> "XdrWriter":
        self._parts.append(struct.pack(">Q", value))
        return self

    def int64(self, value: int) -> "XdrWriter":
        self._parts.append(struct.pack(">q", value))
        return self

    def boolean(self, value: bool) -> "XdrWriter":
        return self.uint32(1 if value else 0)

    def fixed_opaque(self, value: bytes, length: Optional[int] = None) -> "XdrWriter":
        if length is not None and len(value) != length:
            raise XdrError(f"Expected {length} bytes, got {len(value)}")
        self._parts.append(bytes(value) + b"\x00" * _padding(len(value)))
        return self

    def var_opaque(self, value: bytes) -> "XdrWriter":
        self.uint32(len(value))
        return self.fixed_opaque(value)

    def string(self, value: str) -> "XdrWriter":
        return self.var_opaque(value.encode("utf-8"))

    def to_bytes(self) -> bytes:
        return b"".join(self._parts)
