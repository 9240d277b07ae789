"""Shared enums and markers for schemaguard."""

from enum import Enum


class Channel(str, Enum):
    """Origin of a value being validated.

    The values match the parameter types used by the HTTP layer so a
    violation report can be keyed by them directly.
    """

    PATH = "param"
    QUERY = "query"
    BODY = "body"
    RESPONSE = "response"


class _Missing:
    """Marker for a value that is absent, as opposed to present and None."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()

__all__ = [
    "Channel",
    "MISSING",
]
