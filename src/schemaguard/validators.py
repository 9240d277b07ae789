"""Runtime validators produced by the node compiler.

A validator checks one value and returns its coerced form. Failures are
appended to the ``issues`` list passed in, and the special :data:`INVALID`
marker is returned instead of a value. Validators never raise for a bad
value; they raise only for programming errors.

Object validators report every failing property and array validators report
every failing index, so one call yields the complete set of violations.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

from ._types import MISSING
from .converters import TEMPORAL_FORMATS, ConversionError, TypeConverter
from .reporter import Issue, IssueCode, PathElement, describe_received

Path = tuple[PathElement, ...]


class _Invalid:
    def __repr__(self) -> str:
        return "INVALID"


INVALID: Any = _Invalid()


def _issue(
    path: Path,
    code: IssueCode,
    message: str,
    value: Any,
    expected: str | None = None,
) -> Issue:
    return Issue(
        path=path,
        code=code,
        expected=expected,
        received=describe_received(value),
        message=message,
    )


class Validator(ABC):
    """Base class for all compiled validators.

    Attributes:
        expected: Short description of the accepted value space, used in
            reports ("integer", "Query1", "A | B", ...).
    """

    expected: str = "value"

    @abstractmethod
    def check(self, value: Any, path: Path, issues: list[Issue]) -> Any:
        """Validate ``value`` and return its coerced form or :data:`INVALID`."""

    def accepts(self, value: Any) -> bool:
        return self.check(value, (), []) is not INVALID

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.expected})"


class AnyValidator(Validator):
    """Accepts every value unchanged; used for excluded types."""

    def __init__(self, type_name: str | None = None):
        self.type_name = type_name
        self.expected = type_name or "any"

    def check(self, value: Any, path: Path, issues: list[Issue]) -> Any:
        return value


class FieldValidator(Validator):
    """Applies required/nullable handling around another validator.

    - not required: a missing value or ``None`` is valid as-is
    - required and nullable: ``None`` is valid, a missing value is not
    - required and not nullable: both fail with ``required``
    """

    def __init__(self, inner: Validator, required: bool = True, nullable: bool = False):
        self.inner = inner
        self.required = required
        self.nullable = nullable

    @property  # type: ignore[override]
    def expected(self) -> str:
        return self.inner.expected

    def check(self, value: Any, path: Path, issues: list[Issue]) -> Any:
        value = TypeConverter.normalize(value)
        if value is MISSING or value is None:
            if not self.required:
                return value
            if value is None and self.nullable:
                return None
            issues.append(
                _issue(path, IssueCode.REQUIRED, "required", value, expected=self.expected)
            )
            return INVALID
        return self.inner.check(value, path, issues)


class PrimitiveValidator(Validator):
    """Coerces a scalar to its kind and applies format and constraints.

    Checks run in order: format, numeric bounds, length, pattern. Once the
    base coercion succeeds every declared check runs, so one value can
    produce several issues.
    """

    def __init__(
        self,
        kind: str,
        format: str | None = None,
        minimum: int | float | None = None,
        maximum: int | float | None = None,
        exclusive_minimum: int | float | None = None,
        exclusive_maximum: int | float | None = None,
        multiple_of: int | float | None = None,
        min_length: int | None = None,
        max_length: int | None = None,
        pattern: re.Pattern[str] | None = None,
    ):
        self.kind = kind
        self.format = format
        self.minimum = minimum
        self.maximum = maximum
        self.exclusive_minimum = exclusive_minimum
        self.exclusive_maximum = exclusive_maximum
        self.multiple_of = multiple_of
        self.min_length = min_length
        self.max_length = max_length
        self.pattern = pattern
        self.expected = format if format in TEMPORAL_FORMATS else kind

    def _coerce(self, value: Any) -> Any:
        if self.kind == "string":
            if self.format in TEMPORAL_FORMATS:
                return TypeConverter.parse_temporal(value, self.format)
            return TypeConverter.to_string(value)
        if self.kind == "number":
            return TypeConverter.to_number(value)
        if self.kind == "integer":
            return TypeConverter.to_integer(value)
        return TypeConverter.to_boolean(value)

    def check(self, value: Any, path: Path, issues: list[Issue]) -> Any:
        if isinstance(value, (Mapping, list, tuple, set)):
            issues.append(
                _issue(
                    path,
                    IssueCode.INVALID_TYPE,
                    f"Expected {self.kind}, got "
                    f"{TypeConverter.python_type_to_schema_type(value)}",
                    value,
                    expected=self.expected,
                )
            )
            return INVALID
        try:
            result = self._coerce(value)
        except ConversionError as e:
            issues.append(_issue(path, e.code, str(e), value, expected=self.expected))
            return INVALID

        found: list[Issue] = []
        if self.kind == "string":
            text = TypeConverter.to_string(result)
            self._check_shape(text, value, path, found)
            self._check_length(text, value, path, found)
            self._check_pattern(text, value, path, found)
        elif self.kind in ("number", "integer"):
            self._check_bounds(result, value, path, found)
        if found:
            issues.extend(found)
            return INVALID
        return result

    def _check_shape(self, text: str, value: Any, path: Path, found: list[Issue]) -> None:
        if self.format is None or self.format in TEMPORAL_FORMATS:
            return
        try:
            TypeConverter.check_shape(text, self.format)
        except ConversionError as e:
            found.append(_issue(path, e.code, str(e), value, expected=self.format))

    def _check_bounds(self, number: Any, value: Any, path: Path, found: list[Issue]) -> None:
        if self.minimum is not None and number < self.minimum:
            found.append(
                _issue(
                    path,
                    IssueCode.TOO_SMALL,
                    f"Value must be >= {self.minimum}",
                    value,
                    expected=f">= {self.minimum}",
                )
            )
        if self.maximum is not None and number > self.maximum:
            found.append(
                _issue(
                    path,
                    IssueCode.TOO_BIG,
                    f"Value must be <= {self.maximum}",
                    value,
                    expected=f"<= {self.maximum}",
                )
            )
        if self.exclusive_minimum is not None and number <= self.exclusive_minimum:
            found.append(
                _issue(
                    path,
                    IssueCode.TOO_SMALL,
                    f"Value must be > {self.exclusive_minimum}",
                    value,
                    expected=f"> {self.exclusive_minimum}",
                )
            )
        if self.exclusive_maximum is not None and number >= self.exclusive_maximum:
            found.append(
                _issue(
                    path,
                    IssueCode.TOO_BIG,
                    f"Value must be < {self.exclusive_maximum}",
                    value,
                    expected=f"< {self.exclusive_maximum}",
                )
            )
        if self.multiple_of is not None:
            quotient = number / self.multiple_of
            if abs(quotient - round(quotient)) > 1e-9:
                found.append(
                    _issue(
                        path,
                        IssueCode.NOT_MULTIPLE_OF,
                        f"Value must be multiple of {self.multiple_of}",
                        value,
                        expected=f"multiple of {self.multiple_of}",
                    )
                )

    def _check_length(self, text: str, value: Any, path: Path, found: list[Issue]) -> None:
        if self.min_length is not None and len(text) < self.min_length:
            found.append(
                _issue(
                    path,
                    IssueCode.TOO_SMALL,
                    f"String must be at least {self.min_length} characters long",
                    value,
                    expected=f"length >= {self.min_length}",
                )
            )
        if self.max_length is not None and len(text) > self.max_length:
            found.append(
                _issue(
                    path,
                    IssueCode.TOO_BIG,
                    f"String must be at most {self.max_length} characters long",
                    value,
                    expected=f"length <= {self.max_length}",
                )
            )

    def _check_pattern(self, text: str, value: Any, path: Path, found: list[Issue]) -> None:
        if self.pattern is not None and not self.pattern.fullmatch(text):
            found.append(
                _issue(
                    path,
                    IssueCode.PATTERN_MISMATCH,
                    f"String does not match pattern {self.pattern.pattern}",
                    value,
                    expected=f"pattern {self.pattern.pattern}",
                )
            )


class EnumValidator(Validator):
    """Accepts one of a fixed set of values.

    Values are compared by their text form, so ``"1"`` from a query string
    matches a declared ``1``. The declared member is returned.
    """

    def __init__(self, values: Sequence[str | int | float]):
        self.values = list(values)
        self._members: dict[str, str | int | float] = {}
        for member in self.values:
            self._members.setdefault(TypeConverter.to_string(member), member)
        self.expected = " | ".join(repr(v) for v in self.values)

    def check(self, value: Any, path: Path, issues: list[Issue]) -> Any:
        candidate = value.value if isinstance(value, Enum) else value
        try:
            text = TypeConverter.to_string(candidate)
        except ConversionError:
            text = None
        if text is not None and text in self._members:
            return self._members[text]
        issues.append(
            _issue(
                path,
                IssueCode.INVALID_ENUM_VALUE,
                f"Invalid value. Must be one of: {self.values}",
                value,
                expected=self.expected,
            )
        )
        return INVALID


class UnionValidator(Validator):
    """Accepts a value if any branch does; the first accepting branch wins.

    Branch diagnostics are discarded: a failure is reported as a single
    ``invalid_union`` issue.
    """

    def __init__(self, branches: Sequence[Validator]):
        self.branches = list(branches)

    @property  # type: ignore[override]
    def expected(self) -> str:
        return " | ".join(branch.expected for branch in self.branches)

    def check(self, value: Any, path: Path, issues: list[Issue]) -> Any:
        for branch in self.branches:
            result = branch.check(value, path, [])
            if result is not INVALID:
                return result
        issues.append(
            _issue(
                path,
                IssueCode.INVALID_UNION,
                "No union branch matched",
                value,
                expected=self.expected,
            )
        )
        return INVALID


class ArrayValidator(Validator):
    """Applies the element validator to every member of a sequence."""

    def __init__(
        self,
        element: Validator,
        min_items: int | None = None,
        max_items: int | None = None,
        unique_items: bool | None = None,
    ):
        self.element = element
        self.min_items = min_items
        self.max_items = max_items
        self.unique_items = unique_items

    @property  # type: ignore[override]
    def expected(self) -> str:
        return f"array of {self.element.expected}"

    def check(self, value: Any, path: Path, issues: list[Issue]) -> Any:
        if isinstance(value, str):
            try:
                value = TypeConverter.parse_container(value, "array")
            except ConversionError as e:
                issues.append(_issue(path, e.code, str(e), value, expected=self.expected))
                return INVALID
        if not isinstance(value, (list, tuple)):
            issues.append(
                _issue(
                    path,
                    IssueCode.INVALID_TYPE,
                    f"Expected array, got {TypeConverter.python_type_to_schema_type(value)}",
                    value,
                    expected=self.expected,
                )
            )
            return INVALID

        found: list[Issue] = []
        if self.min_items is not None and len(value) < self.min_items:
            found.append(
                _issue(
                    path,
                    IssueCode.TOO_SMALL,
                    f"Array must have at least {self.min_items} items",
                    value,
                    expected=f"at least {self.min_items} items",
                )
            )
        if self.max_items is not None and len(value) > self.max_items:
            found.append(
                _issue(
                    path,
                    IssueCode.TOO_BIG,
                    f"Array must have at most {self.max_items} items",
                    value,
                    expected=f"at most {self.max_items} items",
                )
            )

        result = []
        for index, item in enumerate(value):
            checked = self.element.check(item, (*path, index), found)
            result.append(checked)

        if self.unique_items and not found:
            keys = [repr(item) for item in result]
            if len(set(keys)) != len(keys):
                found.append(
                    _issue(
                        path,
                        IssueCode.NOT_UNIQUE,
                        "Array must contain unique items",
                        value,
                        expected="unique items",
                    )
                )

        if found:
            issues.extend(found)
            return INVALID
        return result


class ObjectValidator(Validator):
    """Checks each declared property of a mapping.

    Properties not declared are passed through untouched. A property that is
    missing and optional stays missing in the result.
    """

    def __init__(self, fields: Mapping[str, Validator] | None = None, name: str | None = None):
        self.fields: dict[str, Validator] = dict(fields or {})
        self.name = name
        self.expected = name or "object"

    def check(self, value: Any, path: Path, issues: list[Issue]) -> Any:
        if isinstance(value, str):
            try:
                value = TypeConverter.parse_container(value, "object")
            except ConversionError as e:
                issues.append(_issue(path, e.code, str(e), value, expected=self.expected))
                return INVALID
        if not isinstance(value, Mapping):
            issues.append(
                _issue(
                    path,
                    IssueCode.INVALID_TYPE,
                    f"Expected object, got {TypeConverter.python_type_to_schema_type(value)}",
                    value,
                    expected=self.expected,
                )
            )
            return INVALID

        found: list[Issue] = []
        result = dict(value)
        for field_name, field_validator in self.fields.items():
            checked = field_validator.check(
                value.get(field_name, MISSING), (*path, field_name), found
            )
            if checked is MISSING:
                result.pop(field_name, None)
            elif checked is not INVALID:
                result[field_name] = checked

        if found:
            issues.extend(found)
            return INVALID
        return result


class DeferredValidator(Validator):
    """Stands in for a named type while that type is still being compiled.

    The compiler binds the finished validator once the type is complete, so
    references inside the type (direct or through other types) can point at
    it before it exists.
    """

    def __init__(self, type_name: str):
        self.type_name = type_name
        self.expected = type_name
        self.target: Validator | None = None

    def bind(self, target: Validator) -> None:
        self.target = target

    def check(self, value: Any, path: Path, issues: list[Issue]) -> Any:
        if self.target is None:
            raise RuntimeError(f"Validator for {self.type_name} used before compilation finished")
        return self.target.check(value, path, issues)
