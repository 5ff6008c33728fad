"""Shared fixtures for the soroban_spec test suite."""

from unittest.mock import MagicMock

import pytest

from helpers import (
    T_ADDRESS,
    T_I128,
    T_U32,
    WASM_HASH,
    b64,
    contract_code_data,
    contract_instance_data,
    envelope,
    error_enum_entry,
    function_entry,
    spec_wasm,
    struct_entry,
    t,
    t_option,
    t_result,
    t_udt,
)
from soroban_spec.rpc import LedgerEntryResult, RpcGateway

XLM_TESTNET_SAC = "CDLZFC3SYJYDZT7K67VZ75HPJVIEUVNIXF47ZG2FB2RMQQVU2HHGCYSC"


@pytest.fixture
def contract_id():
    return XLM_TESTNET_SAC


@pytest.fixture
def token_wasm():
    """Token-like module: constructor, transfer, balance, a struct and errors."""
    return spec_wasm(
        function_entry("__constructor", [("admin", t(T_ADDRESS))]),
        function_entry(
            "transfer",
            [("from", t(T_ADDRESS)), ("to", t(T_ADDRESS)), ("amount", t(T_I128))],
            doc="Transfer tokens",
        ),
        function_entry(
            "balance",
            [("id", t(T_ADDRESS))],
            [t_result(t(T_I128), t_udt("TokenError"))],
        ),
        function_entry("allowance", [("spender", t_option(t(T_ADDRESS)))], [t_udt("Allowance")]),
        struct_entry("Allowance", [("amount", t(T_I128)), ("expiration_ledger", t(T_U32))]),
        error_enum_entry("TokenError", [("InsufficientBalance", 1), ("Unauthorized", 7)]),
        name="token",
    )


@pytest.fixture
def mock_gateway(token_wasm):
    """Gateway answering the instance lookup then the code lookup."""
    gateway = MagicMock(spec=RpcGateway)
    gateway.get_ledger_entries.side_effect = [
        [LedgerEntryResult(xdr=b64(envelope(contract_instance_data(WASM_HASH))))],
        [LedgerEntryResult(xdr=b64(envelope(contract_code_data(token_wasm))))],
    ]
    return gateway
