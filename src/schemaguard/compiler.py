"""Node compiler: turns schema nodes into runtime validators.

The compiler walks a schema node graph and builds a validator for it:

1. unions compile every branch as required and accept the first match
2. references to excluded types accept anything; other references compile
   the named type from the schema store
3. arrays compile their element with the array's own required/nullable
   context
4. objects compile each property independently
5. primitives and enums get a base coercion plus their constraints

Every validator is then wrapped with required/nullable handling.

Named types are compiled once and cached. While a type is being compiled a
:class:`~schemaguard.validators.DeferredValidator` stands in for it, so self-
and mutually-recursive types compile without unbounded recursion. The
validators of one compilation pass are published to the cache only after
the pass succeeds; two threads compiling the same type at once both produce
complete validators and the first one published wins.
"""

import logging
import re
import threading
from collections.abc import Mapping

from .converters import SHAPE_FORMATS, TEMPORAL_FORMATS
from .errors import (
    CompilationError,
    IllegalConstraintError,
    UnknownPrimitiveKindError,
    UnknownTypeError,
)
from .nodes import (
    ArrayNode,
    EnumNode,
    FieldSpec,
    ObjectNode,
    PrimitiveNode,
    ReferenceNode,
    SchemaNode,
    UnionNode,
)
from .store import SchemaStore
from .validators import (
    AnyValidator,
    ArrayValidator,
    DeferredValidator,
    EnumValidator,
    FieldValidator,
    ObjectValidator,
    PrimitiveValidator,
    UnionValidator,
    Validator,
)

logger = logging.getLogger(__name__)

_NUMERIC_CONSTRAINTS = frozenset(
    {"format", "minimum", "maximum", "exclusive_minimum", "exclusive_maximum", "multiple_of"}
)

# Constraints each primitive kind may declare
LEGAL_CONSTRAINTS: dict[str, frozenset[str]] = {
    "string": frozenset({"format", "min_length", "max_length", "pattern"}),
    "number": _NUMERIC_CONSTRAINTS,
    "integer": _NUMERIC_CONSTRAINTS,
    "boolean": frozenset(),
}

KNOWN_FORMATS = TEMPORAL_FORMATS | frozenset(SHAPE_FORMATS)


class _CompilePass:
    """Bookkeeping for one top-level compile call."""

    def __init__(self) -> None:
        self.pending: dict[str, DeferredValidator] = {}
        self.built: dict[str, Validator] = {}


class NodeCompiler:
    """Compiles schema nodes against one schema store.

    Example:
        >>> compiler = NodeCompiler(store)
        >>> validator = compiler.compile_type("Query1")
        >>> validator.accepts({"str1": "a", "nbr1": "12", "date": "2025-01-01T00:00:00Z"})
        True
    """

    def __init__(self, store: SchemaStore, cache: bool = True):
        """Initialize the compiler.

        Args:
            store: Source of named types and exclusions
            cache: Whether compiled named types are memoized
        """
        self.store = store
        self.cache_enabled = cache
        self._cache: dict[str, Validator] = {}
        self._lock = threading.Lock()

    def compile(
        self, node: SchemaNode, required: bool = True, where: str = "<inline>"
    ) -> Validator:
        """Compile a node together with its field context.

        Args:
            node: The schema node to compile
            required: Whether a value must be present
            where: Location used in compilation error messages

        Returns:
            A validator wrapped with required/nullable handling

        Raises:
            CompilationError: If the node cannot be compiled
        """
        compile_pass = _CompilePass()
        validator = self._compile(node, required, where, compile_pass)
        self._publish(compile_pass)
        return validator

    def compile_field(self, field: FieldSpec, where: str = "<inline>") -> Validator:
        return self.compile(field.node, field.required, where)

    def compile_type(self, name: str) -> Validator:
        """Compile (or fetch from cache) the validator of a named type.

        The returned validator is not wrapped: callers decide whether the
        value itself may be missing.

        Raises:
            UnknownTypeError: If the type is not in the schema store
            CompilationError: If any part of the type cannot be compiled
        """
        if self.store.is_excluded(name):
            return AnyValidator(name)
        compile_pass = _CompilePass()
        validator = self._resolve(name, name, compile_pass)
        self._publish(compile_pass)
        return validator

    def compile_all(self) -> dict[str, Validator]:
        """Compile every named type of the store.

        Raises:
            CompilationError: On the first type that fails to compile
        """
        return {name: self.compile_type(name) for name in self.store.type_names()}

    def compile_errors(self) -> dict[str, CompilationError]:
        """Compile every named type and collect failures by type name."""
        errors: dict[str, CompilationError] = {}
        for name in self.store.type_names():
            try:
                self.compile_type(name)
            except CompilationError as e:
                logger.error(f"Failed to compile {name}: {e}")
                errors[name] = e
        return errors

    def cached_types(self) -> list[str]:
        return sorted(self._cache)

    def _publish(self, compile_pass: _CompilePass) -> None:
        if not self.cache_enabled or not compile_pass.built:
            return
        with self._lock:
            for name, validator in compile_pass.built.items():
                self._cache.setdefault(name, validator)
        logger.debug(f"Cached validators for {', '.join(sorted(compile_pass.built))}")

    def _compile(
        self, node: SchemaNode, required: bool, where: str, compile_pass: _CompilePass
    ) -> Validator:
        inner = self._compile_inner(node, required, where, compile_pass)
        return FieldValidator(inner, required=required, nullable=node.nullable)

    def _compile_inner(
        self, node: SchemaNode, required: bool, where: str, compile_pass: _CompilePass
    ) -> Validator:
        if isinstance(node, UnionNode):
            return UnionValidator(
                [
                    self._compile(branch, True, f"{where}|{index}", compile_pass)
                    for index, branch in enumerate(node.branches)
                ]
            )

        if isinstance(node, ReferenceNode):
            if self.store.is_excluded(node.type_name):
                logger.debug(f"Type {node.type_name} is excluded; accepting any value at {where}")
                return AnyValidator(node.type_name)
            return self._resolve(node.type_name, where, compile_pass)

        if isinstance(node, ArrayNode):
            element = self._compile(node.element, required, f"{where}[]", compile_pass)
            return ArrayValidator(
                element,
                min_items=node.min_items,
                max_items=node.max_items,
                unique_items=node.unique_items,
            )

        if isinstance(node, ObjectNode):
            return ObjectValidator(self._compile_fields(node.properties, where, compile_pass))

        if isinstance(node, EnumNode):
            return EnumValidator(node.values)

        if isinstance(node, PrimitiveNode):
            return self._compile_primitive(node, where)

        raise CompilationError(f"Unsupported schema node at {where}: {type(node).__name__}")

    def _compile_fields(
        self, fields: Mapping[str, FieldSpec], owner: str, compile_pass: _CompilePass
    ) -> dict[str, Validator]:
        return {
            name: self._compile(spec.node, spec.required, f"{owner}.{name}", compile_pass)
            for name, spec in fields.items()
        }

    def _resolve(self, name: str, where: str, compile_pass: _CompilePass) -> Validator:
        cached = self._cache.get(name)
        if cached is not None:
            return cached
        if name in compile_pass.built:
            return compile_pass.built[name]
        if name in compile_pass.pending:
            # Recursive reference: the type is still being compiled
            return compile_pass.pending[name]
        if not self.store.has_type(name):
            raise UnknownTypeError(name, where if where != name else None)

        logger.debug(f"Compiling named type {name}")
        placeholder = DeferredValidator(name)
        compile_pass.pending[name] = placeholder
        validator: Validator
        if self.store.is_object_type(name):
            named = self.store.named_type(name)
            validator = ObjectValidator(
                self._compile_fields(named.fields, name, compile_pass), name=name
            )
        else:
            node = self.store.node_from_schema(self.store.schema_definition(name), where=name)
            if isinstance(node, ReferenceNode):
                self._check_alias_chain(name, node)
            validator = self._compile(node, True, name, compile_pass)
        placeholder.bind(validator)
        del compile_pass.pending[name]
        compile_pass.built[name] = validator
        return validator

    def _check_alias_chain(self, name: str, node: ReferenceNode) -> None:
        """Reject named types that are only references leading back to themselves.

        Raises:
            CompilationError: If following the references leads back to a type
                already on the chain
        """
        chain = [name]
        while True:
            target = node.type_name
            if target in chain:
                raise CompilationError(
                    f"Type {name} is an alias cycle: {' -> '.join([*chain, target])}"
                )
            if (
                not self.store.has_type(target)
                or self.store.is_excluded(target)
                or self.store.is_object_type(target)
            ):
                return
            next_node = self.store.node_from_schema(
                self.store.schema_definition(target), where=target
            )
            if not isinstance(next_node, ReferenceNode):
                return
            chain.append(target)
            node = next_node

    def _compile_primitive(self, node: PrimitiveNode, where: str) -> Validator:
        kind = node.kind
        if kind not in LEGAL_CONSTRAINTS:
            raise UnknownPrimitiveKindError(kind, where)

        legal = LEGAL_CONSTRAINTS[kind]
        for constraint in node.declared_constraints():
            if constraint not in legal:
                raise IllegalConstraintError(constraint, kind, f"at {where}")

        fmt = node.format
        if fmt is not None and (kind != "string" or fmt not in KNOWN_FORMATS):
            logger.debug(f"Ignoring format '{fmt}' for {kind} at {where}")
            fmt = None

        pattern = None
        if node.pattern is not None:
            try:
                pattern = re.compile(node.pattern)
            except re.error as e:
                raise IllegalConstraintError("pattern", kind, f"{e} at {where}") from e

        return PrimitiveValidator(
            kind,
            format=fmt,
            minimum=node.minimum,
            maximum=node.maximum,
            exclusive_minimum=node.exclusive_minimum,
            exclusive_maximum=node.exclusive_maximum,
            multiple_of=node.multiple_of,
            min_length=node.min_length,
            max_length=node.max_length,
            pattern=pattern,
        )
