"""Exception hierarchy for schemaguard.

Two disjoint families are defined here:

- :class:`CompilationError` and its subclasses signal a mismatch between the
  schema document and the field metadata. They are raised while building a
  validator and indicate an authoring mistake, never a bad client value.
- :class:`RequestValidationError` carries a :class:`ViolationReport` for a
  value that failed a correctly compiled validator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .reporter import ViolationReport


class SchemaGuardError(Exception):
    """Base class for every error raised by schemaguard."""


class CompilationError(SchemaGuardError):
    """Raised when a schema node cannot be compiled into a validator."""


class UnknownTypeError(CompilationError):
    """A reference points to a type name the schema store does not know.

    Attributes:
        type_name: The unresolved type name.
    """

    def __init__(self, type_name: str, context: str | None = None):
        self.type_name = type_name
        message = f"Unknown type: {type_name}"
        if context:
            message = f"{message} (referenced from {context})"
        super().__init__(message)


class UnknownFieldError(CompilationError):
    """A field listed in the metadata table is missing from the schema document.

    Attributes:
        type_name: The named type holding the field.
        field_name: The field absent from the schema definition.
    """

    def __init__(self, type_name: str, field_name: str):
        self.type_name = type_name
        self.field_name = field_name
        super().__init__(
            f"Field '{field_name}' of type {type_name} has metadata but no schema property"
        )


class UnknownPrimitiveKindError(CompilationError):
    """A primitive node declares a kind outside string/number/integer/boolean."""

    def __init__(self, kind: str | None, where: str | None = None):
        self.kind = kind
        message = f"Unknown type: {kind}"
        if where:
            message = f"{message} for key {where}"
        super().__init__(message)


class IllegalConstraintError(CompilationError):
    """A constraint is declared on a kind that does not support it."""

    def __init__(self, constraint: str, kind: str, detail: str | None = None):
        self.constraint = constraint
        self.kind = kind
        message = f"Constraint '{constraint}' is not valid for {kind}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class StoreNotReadyError(SchemaGuardError):
    """Validation was requested before the schema store finished loading."""


class RegistryFrozenError(SchemaGuardError):
    """A type was registered after the registry was frozen."""


class SchemaLoadError(SchemaGuardError, ValueError):
    """A schema document or metadata file could not be parsed."""


class RequestValidationError(SchemaGuardError, ValueError):
    """Raised when a value does not satisfy its validator.

    Attributes:
        report: The aggregated violations for one channel.

    Example:
        >>> try:
        ...     session.validate_or_raise(params, "UserQuery", Channel.QUERY)
        ... except RequestValidationError as e:
        ...     body = e.report.to_error_body()
    """

    def __init__(self, report: ViolationReport):
        self.report = report
        super().__init__(report.summary())
