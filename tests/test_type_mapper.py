"""
Tests for soroban_spec/type_mapper.py

Covers:
  - TypeScript and Zod mapping tables
  - Python type hints and Pydantic annotations
  - Field-level rendering (required/optional, length constraints, escaping)
  - TypeMapper facade and function signatures
"""

import pytest

from helpers import T_ADDRESS, T_I128, function_entry, spec_wasm, t
from soroban_spec.spec_parser import extract_spec
from soroban_spec.type_mapper import (
    TargetLanguage,
    TypeMapper,
    escape_description,
    pydantic_field,
    to_pydantic,
    to_python,
    to_typescript,
    to_zod,
    zod_field,
)
from soroban_spec.types import FieldSpec, TypeKind, TypeRef

ADDRESS = TypeRef(TypeKind.ADDRESS)
OPTIONAL_ADDRESS = TypeRef.option_of(ADDRESS)
I128 = TypeRef(TypeKind.I128)
U64 = TypeRef(TypeKind.U64)
U32 = TypeRef(TypeKind.U32)

WIDE = [TypeKind.U64, TypeKind.I64, TypeKind.TIMEPOINT, TypeKind.DURATION,
        TypeKind.U128, TypeKind.I128, TypeKind.U256, TypeKind.I256]


# ---------------------------------------------------------------------------
# TypeScript / Zod
# ---------------------------------------------------------------------------

class TestTypeScript:
    @pytest.mark.parametrize("kind,expected", [
        (TypeKind.BOOL, "boolean"),
        (TypeKind.VOID, "void"),
        (TypeKind.STATUS, "number"),
        (TypeKind.U32, "number"),
        (TypeKind.I32, "number"),
        (TypeKind.BYTES, "string"),
        (TypeKind.STRING, "string"),
        (TypeKind.SYMBOL, "string"),
        (TypeKind.ADDRESS, "string"),
    ])
    def test_scalars(self, kind, expected):
        assert to_typescript(TypeRef(kind)) == expected

    @pytest.mark.parametrize("kind", WIDE)
    def test_wide_integers_are_bigint(self, kind):
        assert to_typescript(TypeRef(kind)) == "bigint"

    def test_composites(self):
        assert to_typescript(OPTIONAL_ADDRESS) == "string | null"
        assert to_typescript(TypeRef.result_of(U32, TypeRef.custom("Error"))) == "number"
        assert to_typescript(TypeRef.vec_of(TypeRef.custom("Item"))) == "Item[]"
        assert to_typescript(TypeRef.map_of(ADDRESS, I128)) == "Map<string, bigint>"
        assert to_typescript(TypeRef.tuple_of(ADDRESS, U32)) == "[string, number]"
        assert to_typescript(TypeRef.bytes_n(32)) == "string"

    def test_vec_of_option_is_parenthesized(self):
        assert to_typescript(TypeRef.vec_of(OPTIONAL_ADDRESS)) == "(string | null)[]"


class TestZod:
    def test_scalars(self):
        assert to_zod(TypeRef(TypeKind.BOOL)) == "z.boolean()"
        assert to_zod(TypeRef(TypeKind.VOID)) == "z.void()"
        assert to_zod(U32) == "z.number()"
        assert to_zod(TypeRef(TypeKind.STRING)) == "z.string()"

    @pytest.mark.parametrize("kind", WIDE)
    def test_wide_integers_are_strings(self, kind):
        assert to_zod(TypeRef(kind)) == "z.string()"

    def test_address_length(self):
        assert to_zod(ADDRESS) == "z.string().length(56)"

    def test_bytes_n_hex_length(self):
        assert to_zod(TypeRef.bytes_n(32)) == "z.string().length(64)"

    def test_optional_address_keeps_length(self):
        assert to_zod(OPTIONAL_ADDRESS) == "z.string().length(56).nullable()"

    def test_lazy_custom_reference(self):
        node = TypeRef.custom("Node")
        assert to_zod(node, {"Node"}) == "z.lazy(() => NodeSchema)"
        assert to_zod(TypeRef.vec_of(node), {"Node"}) == "z.array(z.lazy(() => NodeSchema))"
        assert to_zod(node, {"Other"}) == "NodeSchema"

    def test_composites(self):
        assert to_zod(TypeRef.vec_of(U32)) == "z.array(z.number())"
        assert to_zod(TypeRef.map_of(ADDRESS, I128)) == "z.map(z.string().length(56), z.string())"
        assert to_zod(TypeRef.tuple_of(U32, ADDRESS)) == "z.tuple([z.number(), z.string().length(56)])"
        assert to_zod(TypeRef.result_of(I128, TypeRef.custom("E"))) == "z.string()"
        assert to_zod(TypeRef.custom("Config")) == "ConfigSchema"


# ---------------------------------------------------------------------------
# Python / Pydantic
# ---------------------------------------------------------------------------

class TestPython:
    def test_scalars(self):
        assert to_python(TypeRef(TypeKind.BOOL)) == "bool"
        assert to_python(TypeRef(TypeKind.VOID)) == "None"
        assert to_python(U32) == "int"
        assert to_python(U64) == "int"
        assert to_python(I128) == "str"
        assert to_python(TypeRef(TypeKind.BYTES)) == "bytes"
        assert to_python(ADDRESS) == "str"

    def test_composites(self):
        assert to_python(OPTIONAL_ADDRESS) == "Optional[str]"
        assert to_python(TypeRef.vec_of(U32)) == "List[int]"
        assert to_python(TypeRef.map_of(ADDRESS, I128)) == "Dict[str, str]"
        assert to_python(TypeRef.tuple_of(U32, ADDRESS)) == "Tuple[int, str]"
        assert to_python(TypeRef.custom("Config")) == "Config"


class TestPydantic:
    @pytest.mark.parametrize("kind", WIDE)
    def test_wide_integers_are_strings(self, kind):
        assert to_pydantic(TypeRef(kind)) == "str"

    def test_custom_schema_reference(self):
        assert to_pydantic(TypeRef.vec_of(TypeRef.custom("Config"))) == "List[ConfigSchema]"

    def test_required_address_field(self):
        assert pydantic_field("to", ADDRESS, "Recipient") == (
            'to: str = Field(..., min_length=56, max_length=56, description="Recipient")'
        )

    def test_optional_address_field_keeps_length(self):
        assert pydantic_field("spender", OPTIONAL_ADDRESS, "") == (
            'spender: Optional[str] = Field(None, min_length=56, max_length=56, description="")'
        )

    def test_bytes_n_field(self):
        assert pydantic_field("hash", TypeRef.bytes_n(32)) == (
            'hash: str = Field(..., min_length=64, max_length=64, description="")'
        )

    def test_plain_fields(self):
        assert pydantic_field("amount", I128, "Amount") == (
            'amount: str = Field(..., description="Amount")'
        )
        assert pydantic_field("memo", TypeRef.option_of(TypeRef(TypeKind.STRING))) == (
            'memo: Optional[str] = Field(None, description="")'
        )


# ---------------------------------------------------------------------------
# Field-level rendering
# ---------------------------------------------------------------------------

class TestFields:
    def test_escape_description(self):
        assert escape_description('Say "hi"\nthen leave') == 'Say \\"hi\\" then leave'
        assert escape_description(None) == ""

    def test_zod_required_field(self):
        assert zod_field("to", ADDRESS, "Recipient") == (
            'to: z.string().length(56).describe("Recipient")'
        )

    def test_zod_optional_field(self):
        assert zod_field("spender", OPTIONAL_ADDRESS, 'The "spender"') == (
            'spender: z.string().length(56).nullable().optional().describe("The \\"spender\\"")'
        )


# ---------------------------------------------------------------------------
# TypeMapper facade
# ---------------------------------------------------------------------------

@pytest.fixture
def transfer_spec():
    return extract_spec(spec_wasm(function_entry(
        "transfer", [("from", t(T_ADDRESS)), ("to", t(T_ADDRESS)), ("amount", t(T_I128))]
    )))


class TestTypeMapper:
    def test_target_from_string(self):
        assert TypeMapper("python").target == TargetLanguage.PYTHON

    def test_unknown_target(self):
        with pytest.raises(ValueError):
            TypeMapper("rust")

    def test_field_dispatch(self):
        field = FieldSpec("to", ADDRESS)
        assert TypeMapper(TargetLanguage.TYPESCRIPT).field(field).startswith("to: z.string()")
        assert TypeMapper(TargetLanguage.PYTHON).field(field).startswith("to: str = Field(")

    @pytest.mark.parametrize("target", list(TargetLanguage))
    def test_amount_is_string_in_every_target(self, transfer_spec, target):
        signature = TypeMapper(target).describe_functions(transfer_spec)[0]
        amount = signature.params[2]
        assert amount.name == "amount"
        expected = "z.string()" if target == TargetLanguage.TYPESCRIPT else "str"
        assert amount.validator == expected
        assert "number" not in amount.declaration
        assert "int" not in amount.declaration

    def test_amount_python_hint_is_str(self, transfer_spec):
        amount = TypeMapper("python").describe_functions(transfer_spec)[0].params[2]
        assert amount.type_string == "str"

    @pytest.mark.parametrize("target", list(TargetLanguage))
    def test_optional_address_length_in_every_target(self, target):
        declaration = TypeMapper(target).field(FieldSpec("spender", OPTIONAL_ADDRESS))
        assert "56" in declaration

    def test_describe_functions(self, transfer_spec):
        signatures = TypeMapper().describe_functions(transfer_spec)
        assert len(signatures) == 1
        transfer = signatures[0]
        assert transfer.name == "transfer"
        assert [p.name for p in transfer.params] == ["from", "to", "amount"]
        assert all(p.required for p in transfer.params)
        assert transfer.output_type == "void"
        assert transfer.output_validator is None
        assert transfer.to_dict()["params"][0]["validator"] == "z.string().length(56)"

    def test_python_output_none(self, transfer_spec):
        assert TypeMapper("python").describe_functions(transfer_spec)[0].output_type == "None"
