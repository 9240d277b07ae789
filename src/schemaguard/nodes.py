"""Pydantic models for schema nodes and field metadata.

A schema node describes one validatable shape. Nodes form a graph: objects
and arrays contain other nodes, and :class:`ReferenceNode` points to a named
type by name so that recursive types never have to be inlined.

Field metadata is the side-channel table that decides whether a field is
required or nullable and which named type a nested field refers to. Its
``type`` entry is written with a small closed grammar (see :class:`TypeRef`).
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import Field, model_validator

from .models import GuardBaseModel


class NodeBase(GuardBaseModel):
    """Attributes shared by every schema node.

    Attributes:
        nullable: Whether the literal ``None`` is accepted for a required field.
    """

    nullable: bool = False


class PrimitiveNode(NodeBase):
    """A scalar value with optional format and constraints.

    ``kind`` is kept as a free string so that a document naming an unsupported
    kind can still be represented; the compiler rejects it.

    Example:
        >>> PrimitiveNode(kind="integer", minimum=0, maximum=100)
        >>> PrimitiveNode(kind="string", format="email", max_length=255)
    """

    node_type: Literal["primitive"] = "primitive"
    kind: str | None
    format: str | None = None

    # Numeric constraints
    minimum: int | float | None = None
    maximum: int | float | None = None
    exclusive_minimum: int | float | None = None
    exclusive_maximum: int | float | None = None
    multiple_of: int | float | None = None

    # String constraints
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None

    def declared_constraints(self) -> list[str]:
        """Names of the constraints set on this node."""
        names = [
            "format",
            "minimum",
            "maximum",
            "exclusive_minimum",
            "exclusive_maximum",
            "multiple_of",
            "min_length",
            "max_length",
            "pattern",
        ]
        return [name for name in names if getattr(self, name) is not None]


class EnumNode(NodeBase):
    """A fixed, ordered set of allowed values.

    Values keep the type the document declares them with (``"a"``, ``1``).
    """

    node_type: Literal["enum"] = "enum"
    values: list[str | int | float] = Field(min_length=1)


class UnionNode(NodeBase):
    """A ``oneOf`` of at least two branches; the first accepting branch wins."""

    node_type: Literal["union"] = "union"
    branches: list[SchemaNode] = Field(min_length=2)


class ArrayNode(NodeBase):
    """An ordered sequence whose members all satisfy ``element``."""

    node_type: Literal["array"] = "array"
    element: SchemaNode
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool | None = None


class ObjectNode(NodeBase):
    """An inline, unnamed object shape.

    An object without properties accepts any mapping.
    """

    node_type: Literal["object"] = "object"
    properties: dict[str, FieldSpec] = Field(default_factory=dict)


class ReferenceNode(NodeBase):
    """A by-name pointer to a named type held by the schema store."""

    node_type: Literal["reference"] = "reference"
    type_name: str


SchemaNode = Annotated[
    Union[PrimitiveNode, EnumNode, UnionNode, ArrayNode, ObjectNode, ReferenceNode],
    Field(discriminator="node_type"),
]


class FieldSpec(GuardBaseModel):
    """A node together with whether its value must be present."""

    node: SchemaNode
    required: bool = True


class NamedType(GuardBaseModel):
    """A named object type after merging document and field metadata."""

    name: str
    fields: dict[str, FieldSpec] = Field(default_factory=dict)


# Field metadata

SCALAR_NAMES: dict[str, str] = {
    "String": "string",
    "string": "string",
    "Number": "number",
    "number": "number",
    "integer": "integer",
    "Boolean": "boolean",
    "boolean": "boolean",
    "Date": "date",
    "date": "date",
    "Object": "object",
    "object": "object",
}


class ScalarRef(GuardBaseModel):
    """A field typed with a built-in scalar (string, number, Date, ...)."""

    ref_type: Literal["scalar"] = "scalar"
    scalar: str


class NamedRef(GuardBaseModel):
    """A field typed with another named type."""

    ref_type: Literal["named"] = "named"
    type_name: str


class ArrayRef(GuardBaseModel):
    """A field typed as an array of another type reference."""

    ref_type: Literal["array"] = "array"
    items: TypeRef


class ShapeRef(GuardBaseModel):
    """A field typed as an inline nested shape with its own metadata."""

    ref_type: Literal["shape"] = "shape"
    fields: dict[str, FieldMetadata] = Field(default_factory=dict)


TypeRef = Annotated[
    Union[ScalarRef, NamedRef, ArrayRef, ShapeRef],
    Field(discriminator="ref_type"),
]


def parse_type_ref(raw: Any) -> Any:
    """Translate the compact metadata notation into TypeRef data.

    ``"String"`` is a scalar, any other string names a type, ``[X]`` is an
    array of ``X`` and a mapping is an inline shape. Data already in model
    form (with a ``ref_type`` key) is returned untouched.
    """
    if isinstance(raw, str):
        if raw in SCALAR_NAMES:
            return {"ref_type": "scalar", "scalar": SCALAR_NAMES[raw]}
        return {"ref_type": "named", "type_name": raw}
    if isinstance(raw, list):
        if len(raw) != 1:
            raise ValueError(f"Array type references take exactly one element, got {len(raw)}")
        return {"ref_type": "array", "items": parse_type_ref(raw[0])}
    if isinstance(raw, dict):
        if "ref_type" in raw:
            return raw
        return {"ref_type": "shape", "fields": raw}
    return raw


class FieldMetadata(GuardBaseModel):
    """Static metadata of one field.

    Attributes:
        required: Whether the field must be present.
        nullable: Overrides the document's ``nullable`` when set.
        type: What the field refers to, in TypeRef grammar.

    Example:
        >>> FieldMetadata.model_validate({"required": True, "type": ["Query4"]})
    """

    required: bool = True
    nullable: bool | None = None
    type: TypeRef | None = None

    @model_validator(mode="before")
    @classmethod
    def parse_compact_type(cls, values: Any) -> Any:
        """Accept the compact ``type`` notation used in metadata files."""
        if isinstance(values, dict) and values.get("type") is not None:
            values = dict(values)
            values["type"] = parse_type_ref(values["type"])
        return values


class TypeMetadata(GuardBaseModel):
    """The metadata table of one named type."""

    fields: dict[str, FieldMetadata] = Field(default_factory=dict)


# Update forward references
UnionNode.model_rebuild()
ArrayNode.model_rebuild()
ObjectNode.model_rebuild()
FieldSpec.model_rebuild()
NamedType.model_rebuild()
ArrayRef.model_rebuild()
ShapeRef.model_rebuild()
FieldMetadata.model_rebuild()
TypeMetadata.model_rebuild()
