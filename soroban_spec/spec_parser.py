"""
Contract specification extractor.

Reads the ``contractspecv0`` custom sections of a Soroban WASM module, a
concatenation of XDR ``SCSpecEntry`` values, and builds a ``ContractSpec``.
The optional ``contractmetav0`` section supplies the contract name.

Example:
    with open("token.wasm", "rb") as f:
        spec = extract_spec(f.read())
    for func in spec.functions:
        print(func.name, [p.name for p in func.inputs])
"""

import base64
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Tuple

from .errors import SpecError
from .types import (
    ContractSpec,
    EnumDef,
    EnumVariant,
    ErrorSpec,
    FieldSpec,
    FunctionSpec,
    ParameterSpec,
    StructDef,
    TypeKind,
    TypeRef,
    TypeSpec,
    UnionCase,
    UnionDef,
)
from .wasm import custom_sections
from .xdr import XdrError, XdrReader

logger = logging.getLogger(__name__)

SPEC_SECTION = "contractspecv0"
META_SECTION = "contractmetav0"
RESERVED_PREFIX = "__"

DOC_LIMIT = 1024
UNION_TUPLE_LIMIT = 12
MAX_TYPE_DEPTH = 64


class SpecEntryKind(IntEnum):
    FUNCTION_V0 = 0
    UDT_STRUCT_V0 = 1
    UDT_UNION_V0 = 2
    UDT_ENUM_V0 = 3
    UDT_ERROR_ENUM_V0 = 4
    EVENT_V0 = 5


class SpecTypeCode(IntEnum):
    VAL = 0
    BOOL = 1
    VOID = 2
    ERROR = 3
    U32 = 4
    I32 = 5
    U64 = 6
    I64 = 7
    TIMEPOINT = 8
    DURATION = 9
    U128 = 10
    I128 = 11
    U256 = 12
    I256 = 13
    BYTES = 14
    STRING = 16
    SYMBOL = 17
    ADDRESS = 19
    MUXED_ADDRESS = 20
    OPTION = 1000
    RESULT = 1001
    VEC = 1002
    MAP = 1004
    TUPLE = 1005
    BYTES_N = 1006
    UDT = 2000


class UnionCaseKind(IntEnum):
    VOID_V0 = 0
    TUPLE_V0 = 1


SIMPLE_TYPES = {
    SpecTypeCode.VAL: TypeKind.VOID,
    SpecTypeCode.BOOL: TypeKind.BOOL,
    SpecTypeCode.VOID: TypeKind.VOID,
    SpecTypeCode.ERROR: TypeKind.STATUS,
    SpecTypeCode.U32: TypeKind.U32,
    SpecTypeCode.I32: TypeKind.I32,
    SpecTypeCode.U64: TypeKind.U64,
    SpecTypeCode.I64: TypeKind.I64,
    SpecTypeCode.TIMEPOINT: TypeKind.TIMEPOINT,
    SpecTypeCode.DURATION: TypeKind.DURATION,
    SpecTypeCode.U128: TypeKind.U128,
    SpecTypeCode.I128: TypeKind.I128,
    SpecTypeCode.U256: TypeKind.U256,
    SpecTypeCode.I256: TypeKind.I256,
    SpecTypeCode.BYTES: TypeKind.BYTES,
    SpecTypeCode.STRING: TypeKind.STRING,
    SpecTypeCode.SYMBOL: TypeKind.SYMBOL,
    SpecTypeCode.ADDRESS: TypeKind.ADDRESS,
    SpecTypeCode.MUXED_ADDRESS: TypeKind.ADDRESS,
}


@dataclass
class EventSpec:
    """Parsed event entry. Kept for logging only; events are not exported."""
    name: str
    prefix_topics: List[str] = field(default_factory=list)
    params: List[Tuple[str, TypeRef]] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Type conversion
# ---------------------------------------------------------------------------

def read_type(reader: XdrReader, depth: int = 0) -> TypeRef:
    """Read one ``SCSpecTypeDef`` and convert it to a ``TypeRef``."""
    if depth > MAX_TYPE_DEPTH:
        raise SpecError(f"Type definition nested deeper than {MAX_TYPE_DEPTH} levels")

    code = reader.int32()
    try:
        code = SpecTypeCode(code)
    except ValueError:
        raise SpecError(f"Unknown spec type code {code}") from None

    simple = SIMPLE_TYPES.get(code)
    if simple is not None:
        return TypeRef(simple)

    if code == SpecTypeCode.OPTION:
        return TypeRef.option_of(read_type(reader, depth + 1))
    if code == SpecTypeCode.RESULT:
        ok = read_type(reader, depth + 1)
        err = read_type(reader, depth + 1)
        return TypeRef.result_of(ok, err)
    if code == SpecTypeCode.VEC:
        return TypeRef.vec_of(read_type(reader, depth + 1))
    if code == SpecTypeCode.MAP:
        key = read_type(reader, depth + 1)
        value = read_type(reader, depth + 1)
        return TypeRef.map_of(key, value)
    if code == SpecTypeCode.TUPLE:
        return TypeRef.tuple_of(*reader.array(lambda: read_type(reader, depth + 1), UNION_TUPLE_LIMIT))
    if code == SpecTypeCode.BYTES_N:
        return TypeRef.bytes_n(reader.uint32())
    return TypeRef.custom(reader.string())


# ---------------------------------------------------------------------------
# Entry readers
# ---------------------------------------------------------------------------

def _doc(reader: XdrReader) -> Optional[str]:
    return reader.string(DOC_LIMIT) or None


def _read_field(reader: XdrReader, cls=FieldSpec):
    doc = _doc(reader)
    name = reader.string()
    return cls(name=name, type_ref=read_type(reader), doc=doc)


def _read_function(reader: XdrReader) -> FunctionSpec:
    doc = _doc(reader)
    name = reader.string()
    inputs = reader.array(lambda: _read_field(reader, ParameterSpec))
    outputs = reader.array(lambda: read_type(reader), 1)
    return FunctionSpec(
        name=name,
        inputs=tuple(inputs),
        output=outputs[0] if outputs else None,
        doc=doc,
    )


def _read_udt_header(reader: XdrReader) -> Tuple[Optional[str], str]:
    doc = _doc(reader)
    reader.string()  # lib
    name = reader.string()
    return doc, name


def _read_struct(reader: XdrReader) -> TypeSpec:
    doc, name = _read_udt_header(reader)
    fields = reader.array(lambda: _read_field(reader))
    return TypeSpec(name=name, definition=StructDef(tuple(fields)), doc=doc)


def _read_union_case(reader: XdrReader) -> UnionCase:
    kind = reader.int32()
    doc = _doc(reader)
    name = reader.string()
    if kind == UnionCaseKind.VOID_V0:
        return UnionCase(name=name, doc=doc)
    if kind == UnionCaseKind.TUPLE_V0:
        types = reader.array(lambda: read_type(reader), UNION_TUPLE_LIMIT)
        return UnionCase(name=name, type_ref=TypeRef.tuple_of(*types), doc=doc)
    raise SpecError(f"Unknown union case kind {kind} in case '{name}'")


def _read_union(reader: XdrReader) -> TypeSpec:
    doc, name = _read_udt_header(reader)
    cases = reader.array(lambda: _read_union_case(reader))
    return TypeSpec(name=name, definition=UnionDef(tuple(cases)), doc=doc)


def _read_enum_cases(reader: XdrReader) -> List[Tuple[str, int, Optional[str]]]:
    def read_case():
        doc = _doc(reader)
        name = reader.string()
        return name, reader.uint32(), doc
    return reader.array(read_case)


def _read_enum(reader: XdrReader) -> TypeSpec:
    doc, name = _read_udt_header(reader)
    variants = tuple(
        EnumVariant(name=case_name, value=value, doc=case_doc)
        for case_name, value, case_doc in _read_enum_cases(reader)
    )
    return TypeSpec(name=name, definition=EnumDef(variants), doc=doc)


def _read_error_enum(reader: XdrReader) -> List[ErrorSpec]:
    _, name = _read_udt_header(reader)
    return [
        ErrorSpec(name=case_name, code=value, doc=case_doc, enum_name=name)
        for case_name, value, case_doc in _read_enum_cases(reader)
    ]


def _read_event_v0(reader: XdrReader) -> EventSpec:
    _doc(reader)
    reader.string()  # lib
    name = reader.string()
    topics = reader.array(reader.string, 2)

    def read_param():
        _doc(reader)
        param_name = reader.string()
        type_ref = read_type(reader)
        reader.int32()  # location: data or topic list
        return param_name, type_ref

    params = reader.array(read_param)
    reader.int32()  # data format
    return EventSpec(name=name, prefix_topics=topics, params=params)


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------

class SpecExtractor:
    """Builds a ``ContractSpec`` from the spec sections of a WASM module.

    Each ``extract`` call is independent; the instance only accumulates
    state while one module is being parsed.
    """

    def __init__(self, validate_references: bool = True):
        self.validate_references = validate_references
        self._reset()

    def _reset(self):
        self.functions: List[FunctionSpec] = []
        self.types: List[TypeSpec] = []
        self.errors: List[ErrorSpec] = []
        self.raw_entries: List[str] = []
        self.events: List[EventSpec] = []

    def extract(self, wasm: bytes) -> ContractSpec:
        self._reset()

        sections = custom_sections(wasm, SPEC_SECTION)
        if not sections:
            raise SpecError(f"WASM module has no '{SPEC_SECTION}' custom section")

        for section in sections:
            self._parse_section(section)

        spec = ContractSpec(
            name=self.contract_name(wasm),
            functions=tuple(self.functions),
            types=tuple(self.types),
            errors=tuple(self.errors),
            raw_spec_entries=tuple(self.raw_entries),
        )
        logger.debug(
            "Extracted %d functions, %d types, %d errors, %d events",
            len(spec.functions), len(spec.types), len(spec.errors), len(self.events),
        )

        if self.validate_references:
            spec.check_references()
        return spec

    def _parse_section(self, section: bytes) -> None:
        reader = XdrReader(section)
        while not reader.at_end():
            start = reader.offset
            try:
                self._parse_entry(reader)
            except XdrError as e:
                raise SpecError(f"Malformed spec entry at offset {start}: {e}") from e
            raw = section[start:reader.offset]
            self.raw_entries.append(base64.b64encode(raw).decode("ascii"))

    def _parse_entry(self, reader: XdrReader) -> None:
        kind = reader.int32()

        if kind == SpecEntryKind.FUNCTION_V0:
            func = _read_function(reader)
            if func.name.startswith(RESERVED_PREFIX):
                logger.debug("Skipping reserved function %s", func.name)
                return
            self.functions.append(func)
        elif kind == SpecEntryKind.UDT_STRUCT_V0:
            self.types.append(_read_struct(reader))
        elif kind == SpecEntryKind.UDT_UNION_V0:
            self.types.append(_read_union(reader))
        elif kind == SpecEntryKind.UDT_ENUM_V0:
            self.types.append(_read_enum(reader))
        elif kind == SpecEntryKind.UDT_ERROR_ENUM_V0:
            self.errors.extend(_read_error_enum(reader))
        elif kind == SpecEntryKind.EVENT_V0:
            event = _read_event_v0(reader)
            logger.debug("Ignoring event %s", event.name)
            self.events.append(event)
        else:
            raise SpecError(f"Unknown spec entry kind {kind}")

    @staticmethod
    def contract_name(wasm: bytes) -> Optional[str]:
        """Value of the ``name`` key in the contract metadata, if any."""
        for section in custom_sections(wasm, META_SECTION):
            reader = XdrReader(section)
            try:
                while not reader.at_end():
                    kind = reader.int32()
                    if kind != 0:
                        raise SpecError(f"Unknown contract meta entry kind {kind}")
                    key = reader.string()
                    value = reader.string()
                    if key == "name" and value:
                        return value
            except XdrError as e:
                raise SpecError(f"Malformed contract metadata: {e}") from e
        return None


def extract_spec(wasm: bytes, validate_references: bool = True) -> ContractSpec:
    """Extract the contract specification embedded in ``wasm``."""
    return SpecExtractor(validate_references=validate_references).extract(wasm)
