"""Validation sessions.

A :class:`ValidationSession` validates values arriving on one of the
request channels (path parameters, query parameters, body) or leaving as a
response. It compiles the target through the node compiler, applies it and
returns either the coerced value or a violation report for that channel.

Example:
    >>> session = ValidationSession(SchemaStore.build(document, metadata))
    >>> result = session.validate(
    ...     {"str1": "a", "nbr1": "12", "date": "2025-01-01T00:00:00Z"}, "Query1", Channel.QUERY
    ... )
    >>> result.ok, result.value["nbr1"]
    (True, 12)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from ._types import MISSING, Channel
from .compiler import NodeCompiler
from .config import GuardSettingsModel
from .errors import RequestValidationError
from .nodes import PrimitiveNode, SchemaNode
from .reporter import ErrorReporter, Issue, ViolationReport
from .store import SchemaProvider, SchemaStore
from .validators import INVALID, FieldValidator, Validator

logger = logging.getLogger(__name__)

Target = Union[str, SchemaNode, Mapping[str, Any]]


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one value on one channel.

    Exactly one of ``value`` (on success) and ``report`` (on failure) is
    meaningful.
    """

    channel: Channel
    value: Any = None
    report: ViolationReport | None = None

    @property
    def ok(self) -> bool:
        return self.report is None

    def unwrap(self) -> Any:
        """Return the coerced value or raise the violation report.

        Raises:
            RequestValidationError: If validation failed
        """
        if self.report is not None:
            raise RequestValidationError(self.report)
        return self.value


class ValidationSession:
    """Validates values against named types or inline schemas."""

    def __init__(
        self,
        provider: SchemaProvider | SchemaStore,
        settings: GuardSettingsModel | None = None,
    ):
        """Initialize the session.

        Args:
            provider: Where the schema store comes from. A bare store is
                treated as already loaded.
            settings: Runtime settings; defaults apply when omitted
        """
        if isinstance(provider, SchemaStore):
            provider = SchemaProvider.from_store(provider)
        self.provider = provider
        self.settings = settings or GuardSettingsModel()
        self._compiler: NodeCompiler | None = None
        self._lock = threading.Lock()

    @property
    def compiler(self) -> NodeCompiler:
        """Compiler bound to the loaded store.

        Raises:
            StoreNotReadyError: If the store does not load in time
        """
        compiler = self._compiler
        if compiler is not None:
            return compiler
        store = self.provider.get(self.settings.ready_timeout)
        with self._lock:
            if self._compiler is None:
                self._compiler = NodeCompiler(store, cache=self.settings.cache_validators)
            return self._compiler

    def validator_for(self, target: Target) -> Validator:
        """Build the top-level validator for ``target``.

        The top-level value is always required.

        Raises:
            CompilationError: If the target cannot be compiled
            StoreNotReadyError: If the store is not loaded yet
        """
        compiler = self.compiler
        if isinstance(target, str):
            return FieldValidator(compiler.compile_type(target), required=True)
        if isinstance(target, Mapping):
            node = compiler.store.node_from_schema(target)
        else:
            node = target
        return compiler.compile(node, required=True)

    def validate(
        self, value: Any, target: Target, channel: Channel | str = Channel.BODY
    ) -> ValidationResult:
        """Validate ``value`` against ``target``.

        Args:
            value: The value to check
            target: A type name, a schema node or a raw OpenAPI schema
            channel: Where the value came from

        Returns:
            The coerced value, or a violation report tagged with ``channel``

        Raises:
            CompilationError: If the target cannot be compiled
            StoreNotReadyError: If the store is not loaded yet
        """
        channel = Channel(channel)
        validator = self.validator_for(target)
        issues: list[Issue] = []
        result = validator.check(value, (), issues)
        if result is INVALID or issues:
            reporter = ErrorReporter(channel)
            reporter.extend(issues)
            report = reporter.report()
            logger.debug(f"{report.summary()} against {_target_name(target)}")
            return ValidationResult(channel, report=report)
        if result is MISSING:
            result = None
        return ValidationResult(channel, value=result)

    def validate_or_raise(
        self, value: Any, target: Target, channel: Channel | str = Channel.BODY
    ) -> Any:
        """Like :meth:`validate` but raise :class:`RequestValidationError` on failure."""
        return self.validate(value, target, channel).unwrap()

    async def validate_async(
        self, value: Any, target: Target, channel: Channel | str = Channel.BODY
    ) -> ValidationResult:
        """Wait for the store without blocking the event loop, then validate."""
        await self.provider.wait_ready(self.settings.ready_timeout)
        return self.validate(value, target, channel)

    def validate_request(
        self,
        *,
        path: tuple[Any, Target] | None = None,
        query: tuple[Any, Target] | None = None,
        body: tuple[Any, Target] | None = None,
    ) -> dict[Channel, ValidationResult]:
        """Validate several channels of one request independently.

        Each argument is a ``(value, target)`` pair. Every channel gets its
        own result; a failure on one channel does not affect the others.
        """
        results: dict[Channel, ValidationResult] = {}
        for channel, pair in ((Channel.PATH, path), (Channel.QUERY, query), (Channel.BODY, body)):
            if pair is None:
                continue
            value, target = pair
            results[channel] = self.validate(value, target, channel)
        return results

    def validate_parameter(
        self, value: Any, type_name: str | None, channel: Channel | str
    ) -> ValidationResult:
        """Validate a parameter if its type has field metadata.

        Parameters typed with something the metadata table does not know
        (plain scalars, framework objects) pass through unchanged.
        """
        channel = Channel(channel)
        if not type_name or not self.compiler.store.has_metadata(type_name):
            return ValidationResult(channel, value=value)
        return self.validate(value, type_name, channel)

    def validate_response(
        self,
        value: Any,
        url: str,
        method: str,
        status_code: int = 200,
        content_type: str | None = None,
    ) -> ValidationResult:
        """Validate a response body against its documented type.

        Responses whose documented schema is not a named type pass through.
        """
        type_name = self.compiler.store.response_type(url, method, status_code, content_type)
        if type_name is None:
            logger.debug(f"No response type documented for {method.upper()} {url} {status_code}")
            return ValidationResult(Channel.RESPONSE, value=value)
        return self.validate(value, type_name, Channel.RESPONSE)


def _target_name(target: Target) -> str:
    if isinstance(target, str):
        return target
    if isinstance(target, PrimitiveNode):
        return target.kind or "primitive"
    if isinstance(target, Mapping):
        return str(target.get("type") or target.get("$ref") or "inline schema")
    return target.node_type
