"""Violation reports.

Validators record one :class:`Issue` per failed check. An
:class:`ErrorReporter` gathers the issues of a single validation call and
turns them into one :class:`ViolationReport` tagged with the channel the
value came from, so a bad path parameter and a bad body never share a
report.
"""

import json
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from pydantic import Field

from ._types import MISSING, Channel
from .models import GuardBaseModel

_MAX_RECEIVED_LENGTH = 80


class IssueCode(str, Enum):
    """Fixed reason codes for field-level failures."""

    REQUIRED = "required"
    INVALID_TYPE = "invalid_type"
    INVALID_DATE = "invalid_date"
    INVALID_ENUM_VALUE = "invalid_enum_value"
    INVALID_UNION = "invalid_union"
    INVALID_FORMAT = "invalid_format"
    PATTERN_MISMATCH = "pattern_mismatch"
    TOO_SMALL = "too_small"
    TOO_BIG = "too_big"
    NOT_MULTIPLE_OF = "not_multiple_of"
    NOT_UNIQUE = "not_unique"


PathElement = str | int


class Issue(GuardBaseModel):
    """One failed check.

    Attributes:
        path: Field names and array indices leading to the failing value.
        code: Reason code.
        expected: Expected type or constraint, in words.
        received: Textual form of the received value.
        message: Human-readable description.
    """

    path: tuple[PathElement, ...] = ()
    code: IssueCode
    expected: str | None = None
    received: str | None = None
    message: str

    @property
    def location(self) -> str:
        return format_path(self.path)

    def describe(self) -> str:
        parts = [f"{self.location or '<root>'}: {self.message}"]
        details = []
        if self.expected is not None:
            details.append(f"expected {self.expected}")
        if self.received is not None:
            details.append(f"received {self.received}")
        if details:
            parts.append(f"({', '.join(details)})")
        return " ".join(parts)


class ViolationReport(GuardBaseModel):
    """All issues found while validating one value on one channel."""

    channel: Channel
    issues: list[Issue] = Field(default_factory=list)

    @property
    def fields(self) -> list[str]:
        """Distinct failing field paths, in report order."""
        seen: dict[str, None] = {}
        for issue in self.issues:
            seen.setdefault(issue.location, None)
        return list(seen)

    def codes_at(self, path: str) -> list[IssueCode]:
        return [issue.code for issue in self.issues if issue.location == path]

    def summary(self) -> str:
        count = len(self.issues)
        noun = "issue" if count == 1 else "issues"
        head = f"Invalid {self.channel.value}: {count} {noun}"
        if not self.issues:
            return head
        return f"{head}; {self.issues[0].describe()}"

    def describe(self) -> list[str]:
        """One human-readable line per issue."""
        return [issue.describe() for issue in self.issues]

    def to_error_body(self) -> dict[str, Any]:
        """JSON-serialisable error body keyed by channel."""
        return {
            "error": {
                self.channel.value: {
                    "issues": [
                        {
                            "path": list(issue.path),
                            "code": issue.code.value,
                            "expected": issue.expected,
                            "received": issue.received,
                            "message": issue.message,
                        }
                        for issue in self.issues
                    ]
                }
            }
        }


class ErrorReporter:
    """Collects issues for one validation call."""

    def __init__(self, channel: Channel):
        self.channel = channel
        self.issues: list[Issue] = []

    def __bool__(self) -> bool:
        return bool(self.issues)

    def add(self, issue: Issue) -> None:
        self.issues.append(issue)

    def extend(self, issues: Iterable[Issue]) -> None:
        self.issues.extend(issues)

    def report(self) -> ViolationReport:
        return ViolationReport(channel=self.channel, issues=list(self.issues))


def format_path(path: Sequence[PathElement]) -> str:
    """Render a path as ``a.b[2].c``."""
    out = ""
    for element in path:
        if isinstance(element, int):
            out += f"[{element}]"
        elif out:
            out += f".{element}"
        else:
            out = str(element)
    return out


def describe_received(value: Any) -> str:
    """Textual form of a received value for reports."""
    if value is MISSING:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        text = value
    elif isinstance(value, (datetime, date, time)):
        text = value.isoformat()
    else:
        try:
            text = json.dumps(value, default=str)
        except (TypeError, ValueError):
            text = repr(value)
    if len(text) > _MAX_RECEIVED_LENGTH:
        text = text[: _MAX_RECEIVED_LENGTH - 3] + "..."
    return text
