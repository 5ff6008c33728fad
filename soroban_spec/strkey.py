"""
Stellar strkey codec.

A strkey is the uppercase, unpadded RFC 4648 base32 encoding of::

    version_byte || 32-byte payload || crc16_xmodem(version_byte || payload)

with the checksum stored little-endian. Contract ids use version byte
``2 << 3`` and therefore start with ``C``; account ids use ``6 << 3`` and
start with ``G``.
"""

import base64
import binascii
import logging
import struct

from .errors import (
    ChecksumMismatch,
    InvalidAddressLength,
    InvalidAddressPrefix,
    InvalidBase32,
)

logger = logging.getLogger(__name__)

VERSION_ACCOUNT_ID = 6 << 3
VERSION_CONTRACT = 2 << 3

PAYLOAD_LENGTH = 32
DECODED_LENGTH = 1 + PAYLOAD_LENGTH + 2
ENCODED_LENGTH = 56

_PREFIXES = {
    VERSION_ACCOUNT_ID: "G",
    VERSION_CONTRACT: "C",
}


def crc16_xmodem(data: bytes) -> int:
    """CRC16/XMODEM (poly 0x1021, init 0, no reflection, no final xor)."""
    crc = 0
    for byte in data:
        crc ^= byte << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) ^ 0x1021) & 0xFFFF
            else:
                crc = (crc << 1) & 0xFFFF
    return crc


def decode(address: str, version: int) -> bytes:
    """Decode ``address`` and return its 32-byte payload.

    Args:
        address: Strkey string, e.g. ``"CDLZ..."``.
        version: Version byte expected at this call site.

    Raises:
        InvalidAddressLength, InvalidAddressPrefix, InvalidBase32,
        ChecksumMismatch
    """
    if len(address) != ENCODED_LENGTH:
        raise InvalidAddressLength(len(address), ENCODED_LENGTH)

    encoded = address.upper()
    expected_prefix = _PREFIXES[version]
    if encoded[0] != expected_prefix:
        raise InvalidAddressPrefix(encoded[0], expected_prefix)

    try:
        raw = base64.b32decode(encoded)
    except (binascii.Error, ValueError) as e:
        raise InvalidBase32(f"Failed to decode base32 for {address}: {e}") from e

    if len(raw) != DECODED_LENGTH:
        raise InvalidBase32(
            f"Decoded strkey is {len(raw)} bytes, expected {DECODED_LENGTH}"
        )

    if raw[0] != version:
        raise InvalidAddressPrefix(f"0x{raw[0]:02x}", f"0x{version:02x}")

    body, checksum = raw[:-2], raw[-2:]
    computed = crc16_xmodem(body)
    (stored,) = struct.unpack("<H", checksum)
    if computed != stored:
        raise ChecksumMismatch(computed, stored)

    return bytes(body[1:])


def encode(payload: bytes, version: int) -> str:
    """Encode a 32-byte payload as a strkey with the given version byte."""
    if len(payload) != PAYLOAD_LENGTH:
        raise ValueError(f"strkey payload must be {PAYLOAD_LENGTH} bytes, got {len(payload)}")
    body = bytes([version]) + bytes(payload)
    raw = body + struct.pack("<H", crc16_xmodem(body))
    return base64.b32encode(raw).decode("ascii")


def decode_contract(address: str) -> bytes:
    """Decode a ``C...`` contract id into its 32-byte contract hash."""
    return decode(address, VERSION_CONTRACT)


def decode_account(address: str) -> bytes:
    """Decode a ``G...`` account id into its ed25519 public key."""
    return decode(address, VERSION_ACCOUNT_ID)


def encode_contract(payload: bytes) -> str:
    return encode(payload, VERSION_CONTRACT)


def encode_account(payload: bytes) -> str:
    return encode(payload, VERSION_ACCOUNT_ID)


def is_valid_contract(address: str) -> bool:
    """Return True when ``address`` decodes as a contract id."""
    try:
        decode_contract(address)
    except (InvalidAddressLength, InvalidAddressPrefix, InvalidBase32, ChecksumMismatch) as e:
        logger.debug("Rejected contract id %s: %s", address, e)
        return False
    return True
