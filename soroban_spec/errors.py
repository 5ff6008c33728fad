"""
Error taxonomy for contract specification extraction.

Every failure is fail-fast: nothing is retried internally and no partial
ContractSpec is ever returned. The orchestrator tags the raised exception
with the pipeline ``stage`` it came from so the command line can report
which step failed.
"""

from typing import Optional


class SpecExtractionError(Exception):
    """Base class for every error raised by the extraction pipeline."""

    def __init__(self, message: str):
        super().__init__(message)
        self.stage: Optional[str] = None


# ---------------------------------------------------------------------------
# Address (strkey) errors
# ---------------------------------------------------------------------------

class AddressError(SpecExtractionError):
    """Malformed strkey address."""


class InvalidAddressLength(AddressError):
    def __init__(self, length: int, expected: int):
        super().__init__(
            f"Invalid strkey length: expected {expected} characters, got {length}"
        )
        self.length = length
        self.expected = expected


class InvalidAddressPrefix(AddressError):
    def __init__(self, prefix: str, expected: str):
        super().__init__(
            f"Invalid strkey prefix: expected '{expected}', got '{prefix}'"
        )
        self.prefix = prefix
        self.expected = expected


class InvalidBase32(AddressError):
    pass


class ChecksumMismatch(AddressError):
    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Invalid strkey checksum: computed {expected:04x}, found {actual:04x}"
        )
        self.expected = expected
        self.actual = actual


# ---------------------------------------------------------------------------
# RPC errors
# ---------------------------------------------------------------------------

class TransportError(SpecExtractionError):
    """Network/IO failure reaching the RPC endpoint, or an unreadable body."""


class RpcProtocolError(SpecExtractionError):
    """Well-formed JSON-RPC response carrying an ``error`` object."""

    def __init__(self, code: int, message: str):
        super().__init__(f"RPC error: {code} - {message}")
        self.code = code
        self.message = message


class NotFoundError(SpecExtractionError):
    """The RPC call succeeded but returned zero ledger entries."""

    def __init__(self, what: str, key: str = ""):
        super().__init__(f"{what} not found")
        self.what = what
        self.key = key


# ---------------------------------------------------------------------------
# Ledger entry errors
# ---------------------------------------------------------------------------

class DecodeError(SpecExtractionError):
    """Payload is not valid XDR or does not match any ledger-entry shape."""


class UnexpectedEntryKind(DecodeError):
    def __init__(self, expected: str, observed: str):
        super().__init__(f"Expected {expected}, got {observed}")
        self.expected = expected
        self.observed = observed


class NotWasmContract(SpecExtractionError):
    """The instance executable is the built-in Stellar Asset contract."""


# ---------------------------------------------------------------------------
# Spec errors
# ---------------------------------------------------------------------------

class SpecError(SpecExtractionError):
    """WASM module lacks a parseable contract specification."""


class WasmFormatError(SpecError):
    pass


class DanglingTypeReference(SpecError):
    """A ``Custom(name)`` reference that no declared type resolves."""

    def __init__(self, name: str, referrer: str):
        super().__init__(
            f"Type '{name}' referenced by '{referrer}' is not declared in the contract spec"
        )
        self.name = name
        self.referrer = referrer
