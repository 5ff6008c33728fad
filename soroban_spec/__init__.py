"""
Soroban Contract Specification Extraction

This package retrieves a deployed Soroban contract's WASM from a Stellar RPC
endpoint, decodes the interface specification embedded in the module and
maps its type system onto TypeScript/Zod and Python/Pydantic.

The extracted ContractSpec is the structured input for code generators that
scaffold MCP servers and client bindings.
"""

__version__ = "1.0.0"
__author__ = "Soroban Spec Tools Team"

from .errors import (
    AddressError,
    DanglingTypeReference,
    DecodeError,
    NotFoundError,
    NotWasmContract,
    RpcProtocolError,
    SpecError,
    SpecExtractionError,
    TransportError,
)
from .fetcher import SpecFetcher
from .spec_parser import extract_spec
from .types import ContractSpec, TypeRef
