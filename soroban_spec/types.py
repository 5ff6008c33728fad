"""
Data model for extracted contract specifications.

``TypeRef`` is a closed, recursive tagged union mirroring the contract
type system. Everything here is immutable: the extractor builds the model
in a single pass and downstream consumers only read it.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from .errors import DanglingTypeReference


class TypeKind(Enum):
    """Variants of ``TypeRef``."""
    BOOL = "Bool"
    VOID = "Void"
    STATUS = "Status"
    U32 = "U32"
    I32 = "I32"
    U64 = "U64"
    I64 = "I64"
    TIMEPOINT = "Timepoint"
    DURATION = "Duration"
    U128 = "U128"
    I128 = "I128"
    U256 = "U256"
    I256 = "I256"
    BYTES = "Bytes"
    STRING = "String"
    SYMBOL = "Symbol"
    ADDRESS = "Address"
    OPTION = "Option"
    RESULT = "Result"
    VEC = "Vec"
    MAP = "Map"
    TUPLE = "Tuple"
    BYTES_N = "BytesN"
    CUSTOM = "Custom"


_ARITY = {
    TypeKind.OPTION: 1,
    TypeKind.VEC: 1,
    TypeKind.RESULT: 2,
    TypeKind.MAP: 2,
}

PRIMITIVE_KINDS = frozenset(
    kind for kind in TypeKind
    if kind not in _ARITY and kind not in (TypeKind.TUPLE, TypeKind.BYTES_N, TypeKind.CUSTOM)
)

# 64-bit and wider integers; carried as decimal strings by validators
WIDE_INTEGER_KINDS = frozenset({
    TypeKind.U64, TypeKind.I64, TypeKind.TIMEPOINT, TypeKind.DURATION,
    TypeKind.U128, TypeKind.I128, TypeKind.U256, TypeKind.I256,
})


@dataclass(frozen=True)
class TypeRef:
    """Reference to a contract type.

    Composite variants keep their children in ``args``:
    ``Option``/``Vec`` hold one, ``Result`` holds ``(ok, err)``, ``Map``
    holds ``(key, value)`` and ``Tuple`` holds any number. ``BytesN`` stores
    its width in ``size`` and ``Custom`` its type name in ``name``.
    """
    kind: TypeKind
    args: Tuple["TypeRef", ...] = ()
    size: Optional[int] = None
    name: Optional[str] = None

    def __post_init__(self):
        expected = _ARITY.get(self.kind)
        if expected is not None and len(self.args) != expected:
            raise ValueError(f"{self.kind.value} takes {expected} type argument(s), got {len(self.args)}")
        if expected is None and self.kind != TypeKind.TUPLE and self.args:
            raise ValueError(f"{self.kind.value} takes no type arguments")
        if (self.kind == TypeKind.BYTES_N) != (self.size is not None):
            raise ValueError("size is only valid for BytesN")
        if (self.kind == TypeKind.CUSTOM) != (self.name is not None):
            raise ValueError("name is only valid for Custom")

    # -- constructors ------------------------------------------------------

    @classmethod
    def option_of(cls, inner: "TypeRef") -> "TypeRef":
        return cls(TypeKind.OPTION, (inner,))

    @classmethod
    def result_of(cls, ok: "TypeRef", err: "TypeRef") -> "TypeRef":
        return cls(TypeKind.RESULT, (ok, err))

    @classmethod
    def vec_of(cls, element: "TypeRef") -> "TypeRef":
        return cls(TypeKind.VEC, (element,))

    @classmethod
    def map_of(cls, key: "TypeRef", value: "TypeRef") -> "TypeRef":
        return cls(TypeKind.MAP, (key, value))

    @classmethod
    def tuple_of(cls, *types: "TypeRef") -> "TypeRef":
        return cls(TypeKind.TUPLE, tuple(types))

    @classmethod
    def bytes_n(cls, n: int) -> "TypeRef":
        return cls(TypeKind.BYTES_N, size=n)

    @classmethod
    def custom(cls, name: str) -> "TypeRef":
        return cls(TypeKind.CUSTOM, name=name)

    # -- accessors ---------------------------------------------------------

    @property
    def inner(self) -> "TypeRef":
        """Element of an ``Option`` or ``Vec``."""
        if self.kind not in (TypeKind.OPTION, TypeKind.VEC):
            raise AttributeError(f"{self.kind.value} has no inner type")
        return self.args[0]

    @property
    def ok(self) -> "TypeRef":
        return self.args[0]

    @property
    def err(self) -> "TypeRef":
        return self.args[1]

    @property
    def key(self) -> "TypeRef":
        return self.args[0]

    @property
    def value(self) -> "TypeRef":
        return self.args[1]

    @property
    def is_option(self) -> bool:
        return self.kind == TypeKind.OPTION

    def walk(self) -> Iterator["TypeRef"]:
        """Yield this reference and every nested one, depth first."""
        yield self
        for arg in self.args:
            yield from arg.walk()

    # -- serialization -----------------------------------------------------

    def to_dict(self) -> Union[str, Dict[str, Any]]:
        if self.kind in PRIMITIVE_KINDS:
            return self.kind.value
        if self.kind in (TypeKind.OPTION, TypeKind.VEC):
            return {self.kind.value: self.inner.to_dict()}
        if self.kind == TypeKind.RESULT:
            return {"Result": {"ok": self.ok.to_dict(), "err": self.err.to_dict()}}
        if self.kind == TypeKind.MAP:
            return {"Map": {"key": self.key.to_dict(), "value": self.value.to_dict()}}
        if self.kind == TypeKind.TUPLE:
            return {"Tuple": [arg.to_dict() for arg in self.args]}
        if self.kind == TypeKind.BYTES_N:
            return {"BytesN": self.size}
        return {"Custom": self.name}

    @classmethod
    def from_dict(cls, data: Union[str, Dict[str, Any]]) -> "TypeRef":
        if isinstance(data, str):
            kind = TypeKind(data)
            if kind not in PRIMITIVE_KINDS:
                raise ValueError(f"{data} is not a primitive type")
            return cls(kind)

        if not isinstance(data, dict) or len(data) != 1:
            raise ValueError(f"Malformed type reference: {data!r}")
        (tag, body), = data.items()
        kind = TypeKind(tag)
        if kind in (TypeKind.OPTION, TypeKind.VEC):
            return cls(kind, (cls.from_dict(body),))
        if kind == TypeKind.RESULT:
            return cls.result_of(cls.from_dict(body["ok"]), cls.from_dict(body["err"]))
        if kind == TypeKind.MAP:
            return cls.map_of(cls.from_dict(body["key"]), cls.from_dict(body["value"]))
        if kind == TypeKind.TUPLE:
            return cls.tuple_of(*(cls.from_dict(item) for item in body))
        if kind == TypeKind.BYTES_N:
            return cls.bytes_n(int(body))
        if kind == TypeKind.CUSTOM:
            return cls.custom(str(body))
        raise ValueError(f"{tag} does not take a payload")

    def __str__(self) -> str:
        if self.kind in PRIMITIVE_KINDS:
            return self.kind.value
        if self.kind == TypeKind.BYTES_N:
            return f"BytesN({self.size})"
        if self.kind == TypeKind.CUSTOM:
            return self.name
        return f"{self.kind.value}({', '.join(str(arg) for arg in self.args)})"


def _doc_dict(doc: Optional[str]) -> Optional[str]:
    return doc if doc else None


@dataclass(frozen=True)
class FieldSpec:
    """Struct field: name, type and optional documentation."""
    name: str
    type_ref: TypeRef
    doc: Optional[str] = None

    @property
    def required(self) -> bool:
        return not self.type_ref.is_option

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "doc": _doc_dict(self.doc), "type_ref": self.type_ref.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        return cls(name=data["name"], type_ref=TypeRef.from_dict(data["type_ref"]), doc=data.get("doc"))


@dataclass(frozen=True)
class ParameterSpec(FieldSpec):
    """Function parameter; same shape as a struct field."""


@dataclass(frozen=True)
class FunctionSpec:
    name: str
    inputs: Tuple[ParameterSpec, ...] = ()
    output: Optional[TypeRef] = None
    doc: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "doc": _doc_dict(self.doc),
            "inputs": [p.to_dict() for p in self.inputs],
            "output": self.output.to_dict() if self.output is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FunctionSpec":
        output = data.get("output")
        return cls(
            name=data["name"],
            inputs=tuple(ParameterSpec.from_dict(p) for p in data.get("inputs", [])),
            output=TypeRef.from_dict(output) if output is not None else None,
            doc=data.get("doc"),
        )


@dataclass(frozen=True)
class EnumVariant:
    name: str
    value: int
    doc: Optional[str] = None


@dataclass(frozen=True)
class UnionCase:
    """Union case; ``type_ref`` is None for unit cases."""
    name: str
    type_ref: Optional[TypeRef] = None
    doc: Optional[str] = None


@dataclass(frozen=True)
class StructDef:
    fields: Tuple[FieldSpec, ...] = ()


@dataclass(frozen=True)
class EnumDef:
    variants: Tuple[EnumVariant, ...] = ()


@dataclass(frozen=True)
class UnionDef:
    cases: Tuple[UnionCase, ...] = ()


TypeDef = Union[StructDef, EnumDef, UnionDef]


@dataclass(frozen=True)
class TypeSpec:
    """User-defined type (struct, enum or union) declared by the contract."""
    name: str
    definition: TypeDef
    doc: Optional[str] = None

    def type_refs(self) -> Iterator[TypeRef]:
        if isinstance(self.definition, StructDef):
            for f in self.definition.fields:
                yield f.type_ref
        elif isinstance(self.definition, UnionDef):
            for case in self.definition.cases:
                if case.type_ref is not None:
                    yield case.type_ref

    def to_dict(self) -> Dict[str, Any]:
        definition = self.definition
        if isinstance(definition, StructDef):
            body = {"Struct": {"fields": [f.to_dict() for f in definition.fields]}}
        elif isinstance(definition, EnumDef):
            body = {"Enum": {"variants": [
                {"name": v.name, "doc": _doc_dict(v.doc), "value": v.value}
                for v in definition.variants
            ]}}
        else:
            body = {"Union": {"cases": [
                {
                    "name": c.name,
                    "doc": _doc_dict(c.doc),
                    "type_ref": c.type_ref.to_dict() if c.type_ref is not None else None,
                }
                for c in definition.cases
            ]}}
        return {"name": self.name, "doc": _doc_dict(self.doc), "definition": body}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TypeSpec":
        (tag, body), = data["definition"].items()
        if tag == "Struct":
            definition = StructDef(tuple(FieldSpec.from_dict(f) for f in body["fields"]))
        elif tag == "Enum":
            definition = EnumDef(tuple(
                EnumVariant(name=v["name"], value=int(v["value"]), doc=v.get("doc"))
                for v in body["variants"]
            ))
        elif tag == "Union":
            definition = UnionDef(tuple(
                UnionCase(
                    name=c["name"],
                    type_ref=TypeRef.from_dict(c["type_ref"]) if c.get("type_ref") is not None else None,
                    doc=c.get("doc"),
                )
                for c in body["cases"]
            ))
        else:
            raise ValueError(f"Unknown type definition {tag}")
        return cls(name=data["name"], definition=definition, doc=data.get("doc"))


@dataclass(frozen=True)
class ErrorSpec:
    """One case of a contract error enum. Documentation only."""
    name: str
    code: int
    doc: Optional[str] = None
    enum_name: Optional[str] = None


@dataclass(frozen=True)
class ContractSpec:
    """Complete interface of a deployed contract."""
    name: Optional[str] = None
    functions: Tuple[FunctionSpec, ...] = ()
    types: Tuple[TypeSpec, ...] = ()
    errors: Tuple[ErrorSpec, ...] = ()
    raw_spec_entries: Tuple[str, ...] = ()

    def function(self, name: str) -> Optional[FunctionSpec]:
        return next((f for f in self.functions if f.name == name), None)

    def type_spec(self, name: str) -> Optional[TypeSpec]:
        return next((t for t in self.types if t.name == name), None)

    def declared_type_names(self) -> set:
        names = {t.name for t in self.types}
        names.update(e.enum_name for e in self.errors if e.enum_name)
        return names

    def iter_type_refs(self) -> Iterator[Tuple[str, TypeRef]]:
        """Yield ``(referrer, type_ref)`` for every top-level type use."""
        for func in self.functions:
            for param in func.inputs:
                yield f"{func.name}.{param.name}", param.type_ref
            if func.output is not None:
                yield f"{func.name} -> output", func.output
        for type_spec in self.types:
            for type_ref in type_spec.type_refs():
                yield type_spec.name, type_ref

    def check_references(self) -> None:
        """Raise ``DanglingTypeReference`` for the first unresolved ``Custom`` name."""
        declared = self.declared_type_names()
        for referrer, type_ref in self.iter_type_refs():
            for node in type_ref.walk():
                if node.kind == TypeKind.CUSTOM and node.name not in declared:
                    raise DanglingTypeReference(node.name, referrer)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "functions": [f.to_dict() for f in self.functions],
            "types": [t.to_dict() for t in self.types],
            "errors": [
                {"name": e.name, "doc": _doc_dict(e.doc), "code": e.code, "enum": e.enum_name}
                for e in self.errors
            ],
            "raw_spec_entries": list(self.raw_spec_entries),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContractSpec":
        return cls(
            name=data.get("name"),
            functions=tuple(FunctionSpec.from_dict(f) for f in data.get("functions", [])),
            types=tuple(TypeSpec.from_dict(t) for t in data.get("types", [])),
            errors=tuple(
                ErrorSpec(name=e["name"], code=int(e["code"]), doc=e.get("doc"), enum_name=e.get("enum"))
                for e in data.get("errors", [])
            ),
            raw_spec_entries=tuple(data.get("raw_spec_entries", [])),
        )
