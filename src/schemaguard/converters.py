"""Type coercion utilities for schemaguard.

Query strings and path segments arrive as text, so numeric and boolean
fields accept string representations. Response payloads may come straight
out of pandas or numpy; they are normalised to plain Python values before
any check runs.
"""

import json
import math
import re
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd

from .reporter import IssueCode

EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")
URI_PATTERN = re.compile(r"[a-zA-Z][a-zA-Z0-9+.-]*:\S+")
UUID_PATTERN = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)
DURATION_PATTERN = re.compile(r"P(?:\d+Y)?(?:\d+M)?(?:\d+D)?(?:T(?:\d+H)?(?:\d+M)?(?:\d+S)?)?")

# Numeric text: ASCII digits only, no digit-group underscores
INTEGER_TEXT_PATTERN = re.compile(r"[+-]?[0-9]+", re.ASCII)
DECIMAL_TEXT_PATTERN = re.compile(
    r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?", re.ASCII
)

SHAPE_FORMATS: dict[str, re.Pattern[str]] = {
    "email": EMAIL_PATTERN,
    "uri": URI_PATTERN,
    "url": URI_PATTERN,
    "uuid": UUID_PATTERN,
    "duration": DURATION_PATTERN,
}

TEMPORAL_FORMATS = frozenset({"date-time", "date", "time"})


class ConversionError(ValueError):
    """A value could not be coerced to the requested type."""

    def __init__(self, message: str, code: IssueCode = IssueCode.INVALID_TYPE):
        self.code = code
        super().__init__(message)


class TypeConverter:
    """Utility class for type coercion and format checks."""

    @staticmethod
    def python_type_to_schema_type(value: Any) -> str:
        """Map a Python value to the schema type it would be reported as."""
        if isinstance(value, bool):
            return "boolean"
        if isinstance(value, int):
            return "integer"
        if isinstance(value, (float, Decimal)):
            return "number"
        if isinstance(value, str):
            return "string"
        if isinstance(value, (list, tuple)):
            return "array"
        if isinstance(value, dict):
            return "object"
        if isinstance(value, (datetime, date, time)):
            return "date"
        return type(value).__name__

    @staticmethod
    def normalize(value: Any) -> Any:
        """Turn pandas/numpy containers and scalars into plain Python values."""
        if value is pd.NaT:
            return None
        if isinstance(value, pd.DataFrame):
            return value.replace({pd.NaT: None}).to_dict("records")
        if isinstance(value, pd.Series):
            return value.replace({pd.NaT: None}).tolist()
        if isinstance(value, np.ndarray):
            return value.tolist()
        if isinstance(value, np.generic):
            return value.item()
        if isinstance(value, float) and math.isnan(value):
            # pandas uses NaN for missing values in numeric columns
            return None
        return value

    @staticmethod
    def to_string(value: Any) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, Enum):
            return str(value.value)
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        if isinstance(value, (datetime, date, time)):
            return value.isoformat()
        raise ConversionError(
            f"Expected string, got {TypeConverter.python_type_to_schema_type(value)}"
        )

    @staticmethod
    def to_number(value: Any) -> int | float:
        if isinstance(value, bool):
            raise ConversionError("Expected number, got boolean")
        if isinstance(value, int):
            return value
        if isinstance(value, (float, Decimal)):
            result = float(value)
        elif isinstance(value, str):
            text = value.strip()
            if not text:
                raise ConversionError("Expected number, got empty string")
            if INTEGER_TEXT_PATTERN.fullmatch(text):
                return int(text)
            if not DECIMAL_TEXT_PATTERN.fullmatch(text):
                raise ConversionError(f"Expected number, got '{value}'")
            result = float(text)
        else:
            raise ConversionError(
                f"Expected number, got {TypeConverter.python_type_to_schema_type(value)}"
            )
        if not math.isfinite(result):
            raise ConversionError(f"Expected finite number, got {value}")
        return result

    @staticmethod
    def to_integer(value: Any) -> int:
        try:
            number = TypeConverter.to_number(value)
        except ConversionError as e:
            raise ConversionError(str(e).replace("Expected number", "Expected integer")) from e
        if isinstance(number, float):
            if not number.is_integer():
                raise ConversionError(f"Expected integer, got {value}")
            return int(number)
        return number

    @staticmethod
    def to_boolean(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() == "true"
        if isinstance(value, (int, float, Decimal)):
            return bool(value)
        raise ConversionError(
            f"Expected boolean, got {TypeConverter.python_type_to_schema_type(value)}"
        )

    @staticmethod
    def parse_temporal(value: Any, fmt: str) -> datetime | date | time:
        """Parse a date-time, date or time value.

        Already parsed values of the right type are returned unchanged.
        """
        if fmt == "date-time":
            if isinstance(value, datetime):
                return value
            if isinstance(value, date):
                return datetime(value.year, value.month, value.day)
        elif fmt == "date":
            if isinstance(value, datetime):
                return value.date()
            if isinstance(value, date):
                return value
        elif isinstance(value, time):
            return value

        text = TypeConverter.to_string(value).strip()
        try:
            if fmt == "date-time":
                return datetime.fromisoformat(text.replace("Z", "+00:00"))
            if fmt == "date":
                return date.fromisoformat(text)
            return time.fromisoformat(text)
        except ValueError:
            raise ConversionError(f"Invalid {fmt}: {text}", IssueCode.INVALID_DATE) from None

    @staticmethod
    def check_shape(text: str, fmt: str) -> None:
        """Check a string against a named shape format (email, url, ...)."""
        pattern = SHAPE_FORMATS[fmt]
        if not pattern.fullmatch(text):
            raise ConversionError(f"Invalid {fmt} format: {text}", IssueCode.INVALID_FORMAT)

    @staticmethod
    def parse_container(value: str, expected: str) -> Any:
        """Decode a JSON-encoded array or object sent as text."""
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            raise ConversionError(f"Invalid JSON {expected}: {value}") from None
        return decoded
