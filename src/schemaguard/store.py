"""Schema store and readiness provider.

The :class:`SchemaStore` holds the schema document, the field-metadata
table and the exclusion set. It merges document and metadata into
:class:`~schemaguard.nodes.NamedType` definitions on demand: the document
decides constraints, formats and enum values, the metadata decides
required/nullable flags and which named type a field refers to.

Field metadata is usually produced asynchronously. :class:`SchemaProvider`
wraps the one-time load so that no validation ever runs against a partially
populated store.

Example:
    >>> store = SchemaStore.build(
    ...     openapi_document,
    ...     {"Query1": {"str1": {"required": True, "type": "String"}}},
    ...     exclusions=["RawPayload"],
    ... )
    >>> store.named_type("Query1").fields["str1"].required
    True
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from .errors import (
    CompilationError,
    SchemaLoadError,
    StoreNotReadyError,
    UnknownFieldError,
    UnknownTypeError,
)
from .nodes import (
    ArrayNode,
    ArrayRef,
    EnumNode,
    FieldMetadata,
    FieldSpec,
    NamedRef,
    NamedType,
    ObjectNode,
    PrimitiveNode,
    ReferenceNode,
    ScalarRef,
    SchemaNode,
    ShapeRef,
    TypeMetadata,
    TypeRef,
    UnionNode,
)
from .registry import ExclusionSet

logger = logging.getLogger(__name__)


def ref_target(schema: Mapping[str, Any]) -> str | None:
    """Return the type name a schema refers to, if it is a reference.

    Only the trailing segment of ``$ref`` is significant. An ``allOf`` with a
    single ``$ref`` entry is treated as that reference.
    """
    ref = schema.get("$ref")
    if isinstance(ref, str):
        return ref.rsplit("/", 1)[-1]
    all_of = schema.get("allOf")
    if isinstance(all_of, list) and len(all_of) == 1 and isinstance(all_of[0], Mapping):
        return ref_target(all_of[0])
    return None


def parse_metadata(raw: Mapping[str, Any]) -> dict[str, TypeMetadata]:
    """Parse a raw field-metadata table.

    Raises:
        SchemaLoadError: If an entry does not follow the metadata grammar
    """
    parsed: dict[str, TypeMetadata] = {}
    for type_name, fields in raw.items():
        if isinstance(fields, TypeMetadata):
            parsed[type_name] = fields
            continue
        if not isinstance(fields, Mapping):
            raise SchemaLoadError(f"Metadata for type {type_name} must be a mapping")
        try:
            parsed[type_name] = TypeMetadata(fields=dict(fields))
        except ValidationError as e:
            raise SchemaLoadError(f"Invalid field metadata for type {type_name}: {e}") from e
    return parsed


class SchemaStore:
    """Immutable view of a schema document plus its field metadata."""

    def __init__(
        self,
        schemas: Mapping[str, Any],
        metadata: Mapping[str, TypeMetadata],
        exclusions: ExclusionSet,
        paths: Mapping[str, Any] | None = None,
    ):
        self._schemas = dict(schemas)
        self._metadata = dict(metadata)
        self._paths = dict(paths or {})
        self.exclusions = exclusions
        self._named_types: dict[str, NamedType] = {}
        self._lock = threading.Lock()

    @classmethod
    def build(
        cls,
        document: Mapping[str, Any],
        metadata: Mapping[str, Any] | None = None,
        exclusions: ExclusionSet | Iterable[str] | None = None,
    ) -> SchemaStore:
        """Build a store from a schema document and metadata table.

        Args:
            document: A full OpenAPI document (``components.schemas``) or a
                bare mapping of type name to schema definition
            metadata: Field-metadata table keyed by type name
            exclusions: Type names that are never validated

        Returns:
            The populated store

        Raises:
            SchemaLoadError: If the document or metadata is malformed
        """
        if not isinstance(document, Mapping):
            raise SchemaLoadError("Schema document must be a mapping")

        paths: Mapping[str, Any] = {}
        if "components" in document or "openapi" in document or "paths" in document:
            components = document.get("components") or {}
            schemas = components.get("schemas") or {}
            paths = document.get("paths") or {}
        else:
            schemas = document

        for name, definition in schemas.items():
            if not isinstance(definition, Mapping):
                raise SchemaLoadError(f"Schema definition for {name} must be a mapping")

        if exclusions is None:
            exclusions = ExclusionSet()
        elif not isinstance(exclusions, ExclusionSet):
            exclusions = ExclusionSet(exclusions)

        parsed = parse_metadata(metadata or {})
        logger.info(
            f"Built schema store with {len(schemas)} schema(s), "
            f"{len(parsed)} metadata table(s), {len(exclusions)} exclusion(s)"
        )
        return cls(schemas, parsed, exclusions, paths)

    def type_names(self) -> list[str]:
        return list(self._schemas)

    def has_type(self, name: str) -> bool:
        return name in self._schemas

    def has_metadata(self, name: str) -> bool:
        return name in self._metadata

    def is_excluded(self, name: str) -> bool:
        return self.exclusions.is_excluded(name)

    def schema_definition(self, name: str) -> Mapping[str, Any]:
        try:
            return self._schemas[name]
        except KeyError:
            raise UnknownTypeError(name) from None

    def is_object_type(self, name: str) -> bool:
        """Whether the named schema describes an object (as opposed to an enum, array, ...)."""
        definition = self.schema_definition(name)
        kind = definition.get("type")
        if kind == "object" or "properties" in definition:
            return True
        return kind is None and not any(
            key in definition for key in ("enum", "oneOf", "anyOf", "allOf", "items", "$ref")
        )

    def named_type(self, name: str) -> NamedType:
        """Resolve a type name to its merged field definitions.

        Raises:
            UnknownTypeError: If the document has no schema for ``name``
            UnknownFieldError: If metadata names a field the schema lacks
        """
        cached = self._named_types.get(name)
        if cached is not None:
            return cached

        definition = self.schema_definition(name)
        type_meta = self._metadata.get(name)
        fields = self._merge_fields(
            name,
            definition.get("properties") or {},
            set(definition.get("required") or []),
            type_meta.fields if type_meta is not None else None,
        )
        named = NamedType(name=name, fields=fields)
        with self._lock:
            self._named_types.setdefault(name, named)
        logger.debug(f"Resolved named type {name} with {len(fields)} field(s)")
        return named

    def node_from_schema(
        self,
        schema: Mapping[str, Any],
        meta: FieldMetadata | None = None,
        where: str = "<inline>",
    ) -> SchemaNode:
        """Convert one raw OpenAPI property into a schema node.

        Args:
            schema: The OpenAPI property definition
            meta: Field metadata that overrides nullable/reference target
            where: Location used in error messages

        Raises:
            CompilationError: If the property cannot be represented
        """
        nullable = bool(schema.get("nullable", False)) if isinstance(schema, Mapping) else False
        if meta is not None and meta.nullable is not None:
            nullable = meta.nullable
        return self._build_node(schema, meta.type if meta else None, nullable, where)

    def response_type(
        self,
        url: str,
        method: str,
        status_code: int = 200,
        content_type: str | None = None,
    ) -> str | None:
        """Find the named type a documented response refers to.

        Returns:
            The referenced type name, or None when the response is not
            documented or its schema is not a reference
        """
        path = url.split("?", 1)[0]
        operation = (self._paths.get(path) or {}).get(method.lower())
        if not operation:
            return None
        responses = operation.get("responses") or {}
        response = (
            responses.get(str(status_code)) or responses.get(status_code) or responses.get("default")
        )
        if not response:
            return None
        content = response.get("content") or {}
        media_type = (content_type or "application/json").split(";", 1)[0].strip()
        media = content.get(media_type)
        if media is None:
            return None
        return ref_target(media.get("schema") or {})

    def _merge_fields(
        self,
        owner: str,
        properties: Mapping[str, Any],
        doc_required: set[str],
        meta_fields: Mapping[str, FieldMetadata] | None,
    ) -> dict[str, FieldSpec]:
        if meta_fields:
            for field_name in meta_fields:
                if field_name not in properties:
                    raise UnknownFieldError(owner, field_name)

        fields: dict[str, FieldSpec] = {}
        for prop_name, prop in properties.items():
            meta = meta_fields.get(prop_name) if meta_fields else None
            required = meta.required if meta is not None else prop_name in doc_required
            node = self.node_from_schema(prop, meta, where=f"{owner}.{prop_name}")
            fields[prop_name] = FieldSpec(node=node, required=required)
        return fields

    def _build_node(
        self,
        schema: Any,
        type_ref: TypeRef | None,
        nullable: bool,
        where: str,
    ) -> SchemaNode:
        if not isinstance(schema, Mapping):
            raise CompilationError(f"Schema for {where} must be a mapping, got {schema!r}")

        one_of = schema.get("oneOf") or schema.get("anyOf")
        if one_of:
            if len(one_of) >= 2:
                branches = [
                    self._build_node(
                        branch,
                        None,
                        bool(branch.get("nullable", False)) if isinstance(branch, Mapping) else False,
                        f"{where}|{index}",
                    )
                    for index, branch in enumerate(one_of)
                ]
                return UnionNode(branches=branches, nullable=nullable)
            rest = {k: v for k, v in schema.items() if k not in ("oneOf", "anyOf")}
            schema = {**rest, **one_of[0]}

        if isinstance(type_ref, NamedRef):
            return ReferenceNode(type_name=type_ref.type_name, nullable=nullable)
        target = ref_target(schema)
        if target is not None:
            return ReferenceNode(type_name=target, nullable=nullable)

        kind = schema.get("type")
        if isinstance(kind, list):
            nullable = nullable or "null" in kind
            kinds = [k for k in kind if k != "null"]
            if len(kinds) > 1:
                return UnionNode(
                    branches=[
                        self._build_node({**schema, "type": k}, type_ref, False, where)
                        for k in kinds
                    ],
                    nullable=nullable,
                )
            kind = kinds[0] if kinds else None

        if schema.get("enum"):
            values = [v for v in schema["enum"] if v is not None]
            if not values:
                raise CompilationError(f"Enum schema for {where} declares no values")
            nullable = nullable or len(values) < len(schema["enum"])
            return EnumNode(values=values, nullable=nullable)

        if kind is None and isinstance(type_ref, ScalarRef):
            if type_ref.scalar == "date":
                return PrimitiveNode(kind="string", format="date-time", nullable=nullable)
            if type_ref.scalar != "object":
                return PrimitiveNode(kind=type_ref.scalar, nullable=nullable)
            kind = "object"

        if kind == "array" or (kind is None and isinstance(type_ref, ArrayRef)):
            items = schema.get("items")
            item_ref = type_ref.items if isinstance(type_ref, ArrayRef) else None
            if items is None:
                if item_ref is None:
                    raise CompilationError(f"Array schema for {where} has no items")
                items = {}
            element = self._build_node(
                items,
                item_ref,
                bool(items.get("nullable", False)) if isinstance(items, Mapping) else False,
                f"{where}[]",
            )
            return ArrayNode(
                element=element,
                min_items=schema.get("minItems"),
                max_items=schema.get("maxItems"),
                unique_items=schema.get("uniqueItems"),
                nullable=nullable,
            )

        if (
            kind == "object"
            or (kind is None and isinstance(type_ref, ShapeRef))
            or (kind is None and "properties" in schema)
        ):
            shape_fields = type_ref.fields if isinstance(type_ref, ShapeRef) else None
            fields = self._merge_fields(
                where,
                schema.get("properties") or {},
                set(schema.get("required") or []),
                shape_fields,
            )
            return ObjectNode(properties=fields, nullable=nullable)

        minimum = schema.get("minimum")
        maximum = schema.get("maximum")
        exclusive_minimum = schema.get("exclusiveMinimum")
        exclusive_maximum = schema.get("exclusiveMaximum")
        # OpenAPI 3.0 spells exclusive bounds as booleans on minimum/maximum
        if isinstance(exclusive_minimum, bool):
            exclusive_minimum, minimum = (minimum, None) if exclusive_minimum else (None, minimum)
        if isinstance(exclusive_maximum, bool):
            exclusive_maximum, maximum = (maximum, None) if exclusive_maximum else (None, maximum)

        return PrimitiveNode(
            kind=kind,
            format=schema.get("format"),
            minimum=minimum,
            maximum=maximum,
            exclusive_minimum=exclusive_minimum,
            exclusive_maximum=exclusive_maximum,
            multiple_of=schema.get("multipleOf"),
            min_length=schema.get("minLength"),
            max_length=schema.get("maxLength"),
            pattern=schema.get("pattern"),
            nullable=nullable,
        )


_UNSET: Any = object()


class SchemaProvider:
    """Publishes a :class:`SchemaStore` once its metadata has loaded.

    Until :meth:`load` (or :meth:`load_async`) completes, :meth:`get` blocks
    for at most ``ready_timeout`` seconds and then raises
    :class:`StoreNotReadyError`. ``ready_timeout=None`` blocks indefinitely
    and ``0`` fails immediately.

    Example:
        >>> provider = SchemaProvider(openapi_document, exclusions=["RawPayload"])
        >>> await provider.load_async(load_metadata())
        >>> store = provider.get()
    """

    def __init__(
        self,
        document: Mapping[str, Any],
        exclusions: ExclusionSet | Iterable[str] | None = None,
        ready_timeout: float | None = 0.0,
    ):
        self._document = document
        self._exclusions = exclusions
        self.ready_timeout = ready_timeout
        self._store: SchemaStore | None = None
        self._error: BaseException | None = None
        # Set once a load attempt finishes, whether it succeeded or failed
        self._settled = threading.Event()
        self._lock = threading.Lock()

    @classmethod
    def from_store(cls, store: SchemaStore) -> SchemaProvider:
        """Wrap an already built store."""
        provider = cls({}, store.exclusions)
        provider._store = store
        provider._settled.set()
        return provider

    @property
    def ready(self) -> bool:
        return self._store is not None

    def load(self, metadata: Mapping[str, Any]) -> SchemaStore:
        """Build the store from ``metadata`` and publish it.

        Loading twice returns the store published first. A failed load
        releases every waiting caller with :class:`StoreNotReadyError`.

        Raises:
            SchemaLoadError: If the document or metadata is malformed
        """
        with self._lock:
            if self._store is not None:
                logger.warning("Schema store already loaded; ignoring second load")
                return self._store
            try:
                store = SchemaStore.build(self._document, metadata, self._exclusions)
            except Exception as e:
                self._error = e
                self._settled.set()
                logger.error(f"Failed to load schema store: {e}")
                raise
            self._store = store
            self._error = None
            self._settled.set()
            return store

    async def load_async(
        self,
        source: Awaitable[Mapping[str, Any]] | Callable[[], Awaitable[Mapping[str, Any]]],
    ) -> SchemaStore:
        """Await the metadata source, then :meth:`load` it."""
        awaitable = source() if callable(source) else source
        metadata = await awaitable
        return self.load(metadata)

    def get(self, timeout: float | None = _UNSET) -> SchemaStore:
        """Return the store, waiting for it to load if necessary.

        Raises:
            StoreNotReadyError: If the store is not loaded within the timeout,
                or the load failed
        """
        if timeout is _UNSET:
            timeout = self.ready_timeout
        if self._store is None and self._error is None and not self._settled.wait(timeout):
            logger.warning(f"Schema store not ready after waiting {timeout}s")
            raise StoreNotReadyError("Schema store is not loaded yet")
        return self._published()

    async def wait_ready(self, timeout: float | None = None) -> SchemaStore:
        """Async counterpart of :meth:`get`."""
        if self._store is None and self._error is None:
            await asyncio.to_thread(self._settled.wait, timeout)
        return self.get(0)

    def _published(self) -> SchemaStore:
        store = self._store
        if store is not None:
            return store
        if self._error is not None:
            raise StoreNotReadyError(f"Schema store failed to load: {self._error}")
        raise StoreNotReadyError("Schema store is not loaded yet")
