"""
Schema module rendering.

Renders the user-defined types and function parameters of a
``ContractSpec`` as Pydantic models (Python) or Zod schemas (TypeScript).
The output is returned as source text; writing it anywhere is up to the
caller.
"""

import logging
from typing import AbstractSet, Dict, List, Sequence, Set

from .type_mapper import escape_description, pydantic_field, to_zod, zod_field
from .types import ContractSpec, EnumDef, FieldSpec, StructDef, TypeKind, TypeSpec, UnionDef

logger = logging.getLogger(__name__)

PYDANTIC_HEADER = (
    "from __future__ import annotations\n"
    "\n"
    "from typing import Dict, List, Literal, Optional, Tuple, Union\n"
    "\n"
    "from pydantic import BaseModel, ConfigDict, Field\n"
)

ZOD_HEADER = "import { z } from 'zod';\n"


def to_pascal_case(name: str) -> str:
    """``transfer_from`` -> ``TransferFrom``; already-cased names are kept."""
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


def _type_dependencies(type_spec: TypeSpec, declared: Dict[str, TypeSpec]) -> List[str]:
    return [
        node.name
        for type_ref in type_spec.type_refs()
        for node in type_ref.walk()
        if node.kind == TypeKind.CUSTOM and node.name in declared
    ]


def dependency_order(types: Sequence[TypeSpec]) -> List[TypeSpec]:
    """Order ``types`` so each one follows the types it references.

    Declaration order is kept where there is no dependency. Inside a cycle
    the type reached first is emitted last; its back references stay
    forward references.
    """
    declared = {t.name: t for t in types}
    ordered: List[TypeSpec] = []
    seen: Set[str] = set()

    def visit(type_spec: TypeSpec) -> None:
        if type_spec.name in seen:
            return
        seen.add(type_spec.name)
        for dependency in _type_dependencies(type_spec, declared):
            visit(declared[dependency])
        ordered.append(type_spec)

    for type_spec in types:
        visit(type_spec)
    return ordered


# ---------------------------------------------------------------------------
# Pydantic
# ---------------------------------------------------------------------------

def _pydantic_docstring(doc) -> List[str]:
    if not doc:
        return []
    return [f'    """{escape_description(doc)}"""']


def _pydantic_model(class_name: str, fields: List[FieldSpec], doc=None) -> str:
    lines = [f"class {class_name}(BaseModel):"]
    lines.extend(_pydantic_docstring(doc))
    for f in fields:
        lines.append("    " + pydantic_field(f.name, f.type_ref, f.doc))
    if len(lines) == 1:
        lines.append("    pass")
    return "\n".join(lines) + "\n"


def _pydantic_type(type_spec: TypeSpec) -> str:
    name = type_spec.name
    definition = type_spec.definition

    if isinstance(definition, StructDef):
        return _pydantic_model(f"{name}Schema", list(definition.fields), type_spec.doc)

    if isinstance(definition, EnumDef):
        tags = [f'"{v.name}"' for v in definition.variants]
        lines = [f"class {name}Schema(BaseModel):"]
        lines.extend(_pydantic_docstring(type_spec.doc))
        lines.append("    model_config = ConfigDict(frozen=True)")
        lines.append(f"    tag: Literal[{', '.join(tags)}]")
        return "\n".join(lines) + "\n"

    # Union: one frozen model per case, then an alias over all of them
    blocks = []
    variant_classes = []
    for case in definition.cases:
        class_name = f"{name}_{case.name}"
        lines = [f"class {class_name}(BaseModel):"]
        if case.doc:
            lines.append(f'    """{escape_description(case.doc)}"""')
        lines.append("    model_config = ConfigDict(frozen=True)")
        lines.append(f'    tag: Literal["{case.name}"] = "{case.name}"')
        if case.type_ref is not None:
            lines.append("    " + pydantic_field("values", case.type_ref, case.doc))
        blocks.append("\n".join(lines) + "\n")
        variant_classes.append(class_name)

    if not variant_classes:
        return _pydantic_model(f"{name}Schema", [], type_spec.doc)
    blocks.append(f"{name}Schema = Union[{', '.join(variant_classes)}]\n")
    return "\n\n".join(blocks)


def render_pydantic_schemas(spec: ContractSpec) -> str:
    """Python module source with one Pydantic model per type and function."""
    blocks = [PYDANTIC_HEADER]
    for type_spec in dependency_order(spec.types):
        blocks.append(_pydantic_type(type_spec))
    for func in spec.functions:
        if func.inputs:
            blocks.append(_pydantic_model(
                f"{to_pascal_case(func.name)}Params", list(func.inputs), func.doc
            ))
    logger.debug("Rendered %d Pydantic schema blocks", len(blocks) - 1)
    return "\n\n".join(blocks)


# ---------------------------------------------------------------------------
# Zod
# ---------------------------------------------------------------------------

def _zod_object(fields: List[FieldSpec], pending: AbstractSet[str] = frozenset()) -> str:
    if not fields:
        return "z.object({})"
    members = "".join(
        f"  {zod_field(f.name, f.type_ref, f.doc, pending)},\n" for f in fields
    )
    return "z.object({\n" + members + "})"


def _zod_type(type_spec: TypeSpec, pending: AbstractSet[str]) -> str:
    """Zod schema for one type; references to ``pending`` names are lazy."""
    name = type_spec.name
    definition = type_spec.definition
    prefix = ""
    if type_spec.doc:
        prefix = f"/** {escape_description(type_spec.doc)} */\n"

    if isinstance(definition, StructDef):
        body = _zod_object(list(definition.fields), pending)
    elif isinstance(definition, EnumDef):
        body = "z.enum([" + ", ".join(f"'{v.name}'" for v in definition.variants) + "])"
    elif isinstance(definition, UnionDef):
        members = []
        for case in definition.cases:
            values = ""
            if case.type_ref is not None:
                values = f", values: {to_zod(case.type_ref, pending)}"
            members.append(f"  z.object({{ tag: z.literal('{case.name}'){values} }}),\n")
        if not members:
            body = "z.never()"
        elif len(members) == 1:
            body = members[0].strip().rstrip(",")
        else:
            body = "z.union([\n" + "".join(members) + "])"
    else:
        raise TypeError(f"Unsupported type definition {definition!r}")

    return f"{prefix}export const {name}Schema = {body};\n"


def render_zod_schemas(spec: ContractSpec) -> str:
    """TypeScript module source with one Zod schema per type and function."""
    blocks = [ZOD_HEADER]
    # Names not declared yet are referenced through z.lazy
    pending = {t.name for t in spec.types}
    for type_spec in dependency_order(spec.types):
        blocks.append(_zod_type(type_spec, pending))
        pending.discard(type_spec.name)
    for func in spec.functions:
        if func.inputs:
            blocks.append(
                f"export const {to_pascal_case(func.name)}ParamsSchema = "
                f"{_zod_object(list(func.inputs))};\n"
            )
    logger.debug("Rendered %d Zod schema blocks", len(blocks) - 1)
    return "\n".join(blocks)
