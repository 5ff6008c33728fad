"""
Cross-language type mapping.

Translates ``TypeRef`` trees into type strings and runtime-validator strings
for the two supported target ecosystems:

- TypeScript: plain TypeScript types and Zod schemas
- Python: type hints and Pydantic annotations / ``Field(...)`` declarations

Integers of 64 bits and wider never map to a native number in a validator:
they are carried as decimal strings so no precision is lost.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import AbstractSet, List, Optional

from .types import ContractSpec, FieldSpec, TypeKind, TypeRef, WIDE_INTEGER_KINDS

ADDRESS_LENGTH = 56

_STRING_KINDS = frozenset({TypeKind.STRING, TypeKind.SYMBOL, TypeKind.ADDRESS, TypeKind.BYTES_N})
_SMALL_INTEGER_KINDS = frozenset({TypeKind.STATUS, TypeKind.U32, TypeKind.I32})
_HUGE_INTEGER_KINDS = frozenset({TypeKind.U128, TypeKind.I128, TypeKind.U256, TypeKind.I256})


class TargetLanguage(Enum):
    TYPESCRIPT = "typescript"
    PYTHON = "python"


def escape_description(text: Optional[str]) -> str:
    """Make a doc string safe to embed in a double-quoted literal."""
    if not text:
        return ""
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\r\n", " ").replace("\n", " ")


def hex_length(type_ref: TypeRef) -> Optional[int]:
    """Exact string length enforced for an Address or BytesN value."""
    if type_ref.kind == TypeKind.ADDRESS:
        return ADDRESS_LENGTH
    if type_ref.kind == TypeKind.BYTES_N:
        return type_ref.size * 2
    return None


# ---------------------------------------------------------------------------
# TypeScript / Zod
# ---------------------------------------------------------------------------

def to_typescript(type_ref: TypeRef) -> str:
    kind = type_ref.kind
    if kind == TypeKind.BOOL:
        return "boolean"
    if kind == TypeKind.VOID:
        return "void"
    if kind in _SMALL_INTEGER_KINDS:
        return "number"
    if kind in WIDE_INTEGER_KINDS:
        return "bigint"
    if kind == TypeKind.BYTES or kind in _STRING_KINDS:
        return "string"
    if kind == TypeKind.OPTION:
        return f"{to_typescript(type_ref.inner)} | null"
    if kind == TypeKind.RESULT:
        return to_typescript(type_ref.ok)
    if kind == TypeKind.VEC:
        element = to_typescript(type_ref.inner)
        if " | " in element:
            element = f"({element})"
        return f"{element}[]"
    if kind == TypeKind.MAP:
        return f"Map<{to_typescript(type_ref.key)}, {to_typescript(type_ref.value)}>"
    if kind == TypeKind.TUPLE:
        return "[" + ", ".join(to_typescript(t) for t in type_ref.args) + "]"
    return type_ref.name


def to_zod(type_ref: TypeRef, lazy_names: AbstractSet[str] = frozenset()) -> str:
    """Zod schema expression for ``type_ref``.

    Custom types named in ``lazy_names`` are not defined yet at the point of
    use and are wrapped in ``z.lazy``.
    """
    kind = type_ref.kind
    if kind == TypeKind.BOOL:
        return "z.boolean()"
    if kind == TypeKind.VOID:
        return "z.void()"
    if kind in _SMALL_INTEGER_KINDS:
        return "z.number()"
    length = hex_length(type_ref)
    if length is not None:
        return f"z.string().length({length})"
    if kind in WIDE_INTEGER_KINDS or kind == TypeKind.BYTES or kind in _STRING_KINDS:
        return "z.string()"
    if kind == TypeKind.OPTION:
        return f"{to_zod(type_ref.inner, lazy_names)}.nullable()"
    if kind == TypeKind.RESULT:
        return to_zod(type_ref.ok, lazy_names)
    if kind == TypeKind.VEC:
        return f"z.array({to_zod(type_ref.inner, lazy_names)})"
    if kind == TypeKind.MAP:
        return f"z.map({to_zod(type_ref.key, lazy_names)}, {to_zod(type_ref.value, lazy_names)})"
    if kind == TypeKind.TUPLE:
        return "z.tuple([" + ", ".join(to_zod(t, lazy_names) for t in type_ref.args) + "])"
    if type_ref.name in lazy_names:
        return f"z.lazy(() => {type_ref.name}Schema)"
    return f"{type_ref.name}Schema"


def zod_field(
    name: str,
    type_ref: TypeRef,
    description: Optional[str] = "",
    lazy_names: AbstractSet[str] = frozenset(),
) -> str:
    """Zod object member, e.g. ``to: z.string().length(56).describe("...")``."""
    member = to_zod(type_ref, lazy_names)
    if type_ref.is_option:
        member += ".optional()"
    return f'{name}: {member}.describe("{escape_description(description)}")'


# ---------------------------------------------------------------------------
# Python / Pydantic
# ---------------------------------------------------------------------------

def _python_container(type_ref: TypeRef, convert) -> Optional[str]:
    kind = type_ref.kind
    if kind == TypeKind.OPTION:
        return f"Optional[{convert(type_ref.inner)}]"
    if kind == TypeKind.RESULT:
        return convert(type_ref.ok)
    if kind == TypeKind.VEC:
        return f"List[{convert(type_ref.inner)}]"
    if kind == TypeKind.MAP:
        return f"Dict[{convert(type_ref.key)}, {convert(type_ref.value)}]"
    if kind == TypeKind.TUPLE:
        return "Tuple[" + ", ".join(convert(t) for t in type_ref.args) + "]"
    return None


def to_python(type_ref: TypeRef) -> str:
    """Python type hint for values handed to or returned by a contract call."""
    kind = type_ref.kind
    if kind == TypeKind.BOOL:
        return "bool"
    if kind == TypeKind.VOID:
        return "None"
    if kind in _HUGE_INTEGER_KINDS:
        return "str"
    if kind in _SMALL_INTEGER_KINDS or kind in WIDE_INTEGER_KINDS:
        return "int"
    if kind == TypeKind.BYTES:
        return "bytes"
    if kind in _STRING_KINDS:
        return "str"
    container = _python_container(type_ref, to_python)
    if container is not None:
        return container
    return type_ref.name


def to_pydantic(type_ref: TypeRef) -> str:
    """Annotation used inside Pydantic schemas."""
    kind = type_ref.kind
    if kind == TypeKind.BOOL:
        return "bool"
    if kind == TypeKind.VOID:
        return "None"
    if kind in _SMALL_INTEGER_KINDS:
        return "int"
    if kind in WIDE_INTEGER_KINDS or kind == TypeKind.BYTES or kind in _STRING_KINDS:
        return "str"
    container = _python_container(type_ref, to_pydantic)
    if container is not None:
        return container
    return f"{type_ref.name}Schema"


def pydantic_field(name: str, type_ref: TypeRef, description: Optional[str] = "") -> str:
    """Pydantic model field declaration.

    Optional fields default to ``None``; Address and BytesN values, bare or
    wrapped in an Option, keep their exact length constraint.
    """
    base = type_ref.inner if type_ref.is_option else type_ref
    args = ["None" if type_ref.is_option else "..."]
    length = hex_length(base)
    if length is not None:
        args.append(f"min_length={length}")
        args.append(f"max_length={length}")
    args.append(f'description="{escape_description(description)}"')
    return f"{name}: {to_pydantic(type_ref)} = Field({', '.join(args)})"


# ---------------------------------------------------------------------------
# Mapper facade
# ---------------------------------------------------------------------------

@dataclass
class MappedParameter:
    name: str
    type_string: str
    validator: str
    declaration: str
    required: bool
    doc: Optional[str] = None


@dataclass
class FunctionSignature:
    """Mapped view of one contract function for a target language."""
    name: str
    params: List[MappedParameter]
    output_type: str
    output_validator: Optional[str]
    doc: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


class TypeMapper:
    """Maps contract types for one target language."""

    def __init__(self, target: TargetLanguage = TargetLanguage.TYPESCRIPT):
        self.target = TargetLanguage(target)

    def type_string(self, type_ref: TypeRef) -> str:
        if self.target == TargetLanguage.PYTHON:
            return to_python(type_ref)
        return to_typescript(type_ref)

    def validator(self, type_ref: TypeRef) -> str:
        if self.target == TargetLanguage.PYTHON:
            return to_pydantic(type_ref)
        return to_zod(type_ref)

    def field(self, spec: FieldSpec) -> str:
        if self.target == TargetLanguage.PYTHON:
            return pydantic_field(spec.name, spec.type_ref, spec.doc)
        return zod_field(spec.name, spec.type_ref, spec.doc)

    def map_parameter(self, spec: FieldSpec) -> MappedParameter:
        return MappedParameter(
            name=spec.name,
            type_string=self.type_string(spec.type_ref),
            validator=self.validator(spec.type_ref),
            declaration=self.field(spec),
            required=spec.required,
            doc=spec.doc,
        )

    def describe_functions(self, spec: ContractSpec) -> List[FunctionSignature]:
        """Per-function mapped inputs and output, in declaration order."""
        signatures = []
        for func in spec.functions:
            if func.output is None:
                output_type = "None" if self.target == TargetLanguage.PYTHON else "void"
                output_validator = None
            else:
                output_type = self.type_string(func.output)
                output_validator = self.validator(func.output)
            signatures.append(FunctionSignature(
                name=func.name,
                params=[self.map_parameter(p) for p in func.inputs],
                output_type=output_type,
                output_validator=output_validator,
                doc=func.doc,
            ))
        return signatures
