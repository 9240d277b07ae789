"""
Global pytest configuration and fixtures.
"""

import copy
import logging

import pytest

from schemaguard import SchemaStore, ValidationSession


def _ref(name: str) -> dict:
    return {"$ref": f"#/components/schemas/{name}"}


OPENAPI_DOCUMENT = {
    "openapi": "3.0.0",
    "info": {"title": "test-api", "version": "1.0.0"},
    "paths": {
        "/users/{id}": {
            "get": {
                "responses": {
                    "200": {"content": {"application/json": {"schema": _ref("User")}}},
                    "404": {"description": "Not found"},
                }
            }
        },
        "/users": {
            "get": {
                "responses": {
                    "200": {
                        "content": {
                            "application/json": {"schema": {"type": "array", "items": _ref("User")}}
                        }
                    }
                }
            },
            "post": {
                "responses": {
                    "201": {"content": {"application/json": {"schema": {"allOf": [_ref("User")]}}}}
                }
            },
        },
    },
    "components": {
        "schemas": {
            "Query1": {
                "type": "object",
                "properties": {
                    "str1": {"type": "string", "minLength": 1, "maxLength": 10},
                    "nbr1": {"type": "number", "minimum": -3, "maximum": 23},
                    "date": {"type": "string", "format": "date-time"},
                    "phone": {"type": "string", "pattern": "^[0-9]{10}$"},
                    "email": {"type": "string", "format": "email"},
                    "count": {"type": "integer", "format": "int32"},
                    "active": {"type": "boolean"},
                },
                "required": ["str1", "nbr1"],
            },
            "Profile": {
                "type": "object",
                "properties": {
                    "nickname": {"type": "string"},
                    "bio": {"type": "string", "nullable": True},
                },
            },
            "Status": {"type": "string", "enum": ["active", "disabled"]},
            "Point": {
                "type": "object",
                "properties": {"x": {"type": "number"}},
                "required": ["x"],
            },
            "Line": {
                "type": "object",
                "properties": {"y": {"type": "number"}},
                "required": ["y"],
            },
            "Shape": {
                "type": "object",
                "properties": {"geometry": {"oneOf": [_ref("Point"), _ref("Line")]}},
            },
            "Grid": {
                "type": "object",
                "properties": {
                    "cells": {"type": "array", "items": {"type": "array", "items": {"type": "string"}}}
                },
            },
            "TreeNode": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "children": {"type": "array", "items": _ref("TreeNode")},
                    "folder": _ref("Folder"),
                },
            },
            "Folder": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "root": _ref("TreeNode"),
                },
            },
            "User": {
                "type": "object",
                "properties": {
                    "id": {"type": "integer", "minimum": 1},
                    "name": {"type": "string"},
                    "status": _ref("Status"),
                    "tags": {"type": "array", "items": {"type": "string"}},
                    "address": {
                        "type": "object",
                        "properties": {
                            "city": {"type": "string"},
                            "zip": {"type": "string", "pattern": "^[0-9]{5}$"},
                        },
                    },
                },
                "required": ["id", "name"],
            },
            "RawPayload": {
                "type": "object",
                "properties": {"data": {"type": "integer"}},
                "required": ["data"],
            },
            "Envelope": {
                "type": "object",
                "properties": {"payload": _ref("RawPayload")},
            },
        }
    },
}


FIELD_METADATA = {
    "Query1": {
        "str1": {"required": True, "type": "String"},
        "nbr1": {"required": True, "type": "Number"},
        "date": {"required": False, "type": "Date"},
        "phone": {"required": False, "type": "String"},
        "email": {"required": False, "type": "String"},
        "count": {"required": False, "type": "Number"},
        "active": {"required": False, "type": "Boolean"},
    },
    "Profile": {
        "nickname": {"required": True, "nullable": True, "type": "String"},
        "bio": {"required": True, "type": "String"},
    },
    "Shape": {"geometry": {"required": True}},
    "Grid": {"cells": {"required": True, "type": [["String"]]}},
    "TreeNode": {
        "name": {"required": True, "type": "String"},
        "children": {"required": False, "type": ["TreeNode"]},
        "folder": {"required": False, "type": "Folder"},
    },
    "Folder": {
        "title": {"required": True, "type": "String"},
        "root": {"required": False, "type": "TreeNode"},
    },
    "User": {
        "id": {"required": True, "type": "Number"},
        "name": {"required": True, "type": "String"},
        "status": {"required": False, "type": "Status"},
        "tags": {"required": False, "type": ["String"]},
        "address": {
            "required": False,
            "type": {
                "city": {"required": True, "type": "String"},
                "zip": {"required": False, "type": "String"},
            },
        },
    },
    "Envelope": {"payload": {"required": True, "type": "RawPayload"}},
}


VALID_QUERY = {
    "str1": "hello",
    "nbr1": "12",
    "date": "2025-01-01T10:00:00Z",
    "phone": "1234567890",
    "email": "user@example.com",
    "count": "3",
    "active": "TRUE",
}


@pytest.fixture
def openapi_document():
    return copy.deepcopy(OPENAPI_DOCUMENT)


@pytest.fixture
def field_metadata():
    return copy.deepcopy(FIELD_METADATA)


@pytest.fixture
def store(openapi_document, field_metadata) -> SchemaStore:
    """Schema store with RawPayload excluded from validation."""
    return SchemaStore.build(openapi_document, field_metadata, exclusions=["RawPayload"])


@pytest.fixture
def session(store) -> ValidationSession:
    return ValidationSession(store)


@pytest.fixture
def valid_query():
    return dict(VALID_QUERY)


@pytest.fixture
def restore_logging():
    """Restore root logger handlers replaced by CLI logging setup."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(level)
