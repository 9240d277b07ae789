"""Tests for schemaguard.converters module."""

import math
from datetime import date, datetime, time

import numpy as np
import pandas as pd
import pytest

from schemaguard.converters import ConversionError, TypeConverter
from schemaguard.reporter import IssueCode


class TestTypeConverter:
    """Test the TypeConverter class."""

    def test_to_number(self):
        assert TypeConverter.to_number("12") == 12
        assert isinstance(TypeConverter.to_number("12"), int)
        assert TypeConverter.to_number(" 1.5 ") == 1.5
        assert TypeConverter.to_number("-2.5e3") == -2500.0
        assert TypeConverter.to_number("+7") == 7
        assert TypeConverter.to_number(3) == 3

        for bad in ("abc", "", True, [1], "nan", float("inf"), "1_000", "\u0661\u0662", "1e"):
            with pytest.raises(ConversionError):
                TypeConverter.to_number(bad)

    def test_to_integer(self):
        assert TypeConverter.to_integer("42") == 42
        assert TypeConverter.to_integer(4.0) == 4

        with pytest.raises(ConversionError, match="Expected integer"):
            TypeConverter.to_integer("4.2")
        with pytest.raises(ConversionError, match="Expected integer"):
            TypeConverter.to_integer("four")

    def test_to_boolean(self):
        assert TypeConverter.to_boolean("true") is True
        assert TypeConverter.to_boolean(" True ") is True
        assert TypeConverter.to_boolean("false") is False
        assert TypeConverter.to_boolean("1") is False
        assert TypeConverter.to_boolean(1) is True

        with pytest.raises(ConversionError):
            TypeConverter.to_boolean({"a": 1})

    def test_to_string(self):
        assert TypeConverter.to_string(5) == "5"
        assert TypeConverter.to_string(False) == "false"
        assert TypeConverter.to_string(date(2025, 1, 2)) == "2025-01-02"

        with pytest.raises(ConversionError):
            TypeConverter.to_string(object())

    def test_parse_temporal(self):
        parsed = TypeConverter.parse_temporal("2025-01-02T03:04:05Z", "date-time")
        assert parsed == datetime.fromisoformat("2025-01-02T03:04:05+00:00")
        assert TypeConverter.parse_temporal(parsed, "date-time") is parsed

        assert TypeConverter.parse_temporal("2025-01-02", "date") == date(2025, 1, 2)
        assert TypeConverter.parse_temporal(parsed, "date") == date(2025, 1, 2)
        assert TypeConverter.parse_temporal("12:30:00", "time") == time(12, 30)

        with pytest.raises(ConversionError) as exc_info:
            TypeConverter.parse_temporal("2025-13-45", "date")
        assert exc_info.value.code == IssueCode.INVALID_DATE

    @pytest.mark.parametrize(
        "fmt,good,bad",
        [
            ("email", "a@b.co", "a@b"),
            ("uri", "https://example.com/x", "example.com"),
            ("uuid", "123e4567-e89b-12d3-a456-426614174000", "123e4567"),
            ("duration", "P1DT2H", "1 day"),
        ],
    )
    def test_check_shape(self, fmt, good, bad):
        TypeConverter.check_shape(good, fmt)

        with pytest.raises(ConversionError) as exc_info:
            TypeConverter.check_shape(bad, fmt)
        assert exc_info.value.code == IssueCode.INVALID_FORMAT

    def test_normalize_pandas_and_numpy(self):
        assert TypeConverter.normalize(pd.NaT) is None
        assert TypeConverter.normalize(float("nan")) is None
        assert TypeConverter.normalize(np.int64(3)) == 3
        assert type(TypeConverter.normalize(np.int64(3))) is int
        assert TypeConverter.normalize(np.array([1, 2])) == [1, 2]
        assert TypeConverter.normalize(pd.Series(["a", "b"])) == ["a", "b"]

        records = TypeConverter.normalize(pd.DataFrame({"id": [1, 2]}))
        assert records == [{"id": 1}, {"id": 2}]

        assert TypeConverter.normalize("unchanged") == "unchanged"

    def test_python_type_to_schema_type(self):
        assert TypeConverter.python_type_to_schema_type(True) == "boolean"
        assert TypeConverter.python_type_to_schema_type(1) == "integer"
        assert TypeConverter.python_type_to_schema_type(1.5) == "number"
        assert TypeConverter.python_type_to_schema_type([]) == "array"
        assert TypeConverter.python_type_to_schema_type({}) == "object"
        assert TypeConverter.python_type_to_schema_type(date.today()) == "date"

    def test_parse_container(self):
        assert TypeConverter.parse_container('{"a": 1}', "object") == {"a": 1}

        with pytest.raises(ConversionError, match="Invalid JSON array"):
            TypeConverter.parse_container("[1,", "array")

    def test_infinity_is_rejected(self):
        with pytest.raises(ConversionError):
            TypeConverter.to_number(math.inf)
