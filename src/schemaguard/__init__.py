"""schemaguard - compile OpenAPI schemas into runtime validators.

This package checks values crossing an HTTP boundary (path parameters,
query parameters, request bodies and responses) against the schemas of an
OpenAPI document:
- Field metadata decides which fields are required or nullable and which
  named type a nested field refers to
- Schema nodes are compiled once into validators that coerce text input
  (``"12"`` becomes ``12``) and enforce formats and constraints
- Failures are aggregated per channel into a violation report

## Key Components

- `SchemaStore`: The schema document, field metadata and exclusion set
- `SchemaProvider`: Publishes the store once metadata finished loading
- `NodeCompiler`: Turns schema nodes into validators, handling recursion
- `ValidationSession`: Validates values on a given channel
- `ViolationReport`: Issues found on one channel

## Quick Example

```python
from schemaguard import Channel, SchemaStore, ValidationSession

store = SchemaStore.build(
    openapi_document,
    {"Query1": {"str1": {"required": True, "type": "String"}}},
    exclusions=["RawPayload"],
)
session = ValidationSession(store)

result = session.validate({"str1": "a", "nbr1": "12"}, "Query1", Channel.QUERY)
if result.ok:
    params = result.value  # {"str1": "a", "nbr1": 12}
else:
    body = result.report.to_error_body()
```
"""

from ._types import MISSING, Channel
from .compiler import NodeCompiler
from .config import GuardSettingsModel, load_settings
from .errors import (
    CompilationError,
    IllegalConstraintError,
    RegistryFrozenError,
    RequestValidationError,
    SchemaGuardError,
    SchemaLoadError,
    StoreNotReadyError,
    UnknownFieldError,
    UnknownPrimitiveKindError,
    UnknownTypeError,
)
from .nodes import (
    ArrayNode,
    EnumNode,
    FieldMetadata,
    FieldSpec,
    NamedType,
    ObjectNode,
    PrimitiveNode,
    ReferenceNode,
    SchemaNode,
    TypeMetadata,
    UnionNode,
)
from .registry import ExclusionSet, TypeRegistry
from .reporter import ErrorReporter, Issue, IssueCode, ViolationReport
from .session import ValidationResult, ValidationSession
from .store import SchemaProvider, SchemaStore
from .validators import Validator

__all__ = [
    # Core
    "SchemaStore",
    "SchemaProvider",
    "NodeCompiler",
    "ValidationSession",
    "ValidationResult",
    "Validator",
    "Channel",
    "MISSING",
    # Nodes and metadata
    "SchemaNode",
    "PrimitiveNode",
    "EnumNode",
    "UnionNode",
    "ArrayNode",
    "ObjectNode",
    "ReferenceNode",
    "FieldSpec",
    "NamedType",
    "FieldMetadata",
    "TypeMetadata",
    # Exclusions
    "TypeRegistry",
    "ExclusionSet",
    # Reports
    "ErrorReporter",
    "Issue",
    "IssueCode",
    "ViolationReport",
    # Settings
    "GuardSettingsModel",
    "load_settings",
    # Errors
    "SchemaGuardError",
    "CompilationError",
    "UnknownTypeError",
    "UnknownFieldError",
    "UnknownPrimitiveKindError",
    "IllegalConstraintError",
    "StoreNotReadyError",
    "RegistryFrozenError",
    "SchemaLoadError",
    "RequestValidationError",
]
