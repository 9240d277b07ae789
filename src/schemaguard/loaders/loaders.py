"""Schema and metadata loading utilities for schemaguard."""

import asyncio
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

import jsonschema
import yaml
from pydantic import Field

from ..errors import SchemaLoadError
from ..models import GuardBaseModel

logger = logging.getLogger(__name__)

METADATA_SCHEMA_PATH = Path(__file__).parent / "schemas" / "field-metadata-1.json"


class MetadataFileModel(GuardBaseModel):
    """Contents of a field-metadata file.

    Attributes:
        exclude: Type names excluded from validation.
        types: Field-metadata table keyed by type name.
    """

    exclude: list[str] = Field(default_factory=list)
    types: dict[str, dict[str, Any]] = Field(default_factory=dict)


SUFFIX_FORMATS = {".yaml": "yaml", ".yml": "yaml", ".json": "json"}


def parse_text(content: str, fmt: str = "yaml") -> Any:
    """Parse YAML or JSON text.

    Raises:
        SchemaLoadError: On an unknown ``fmt`` or unparseable text
    """
    if fmt not in ("yaml", "json"):
        raise SchemaLoadError(f"Unsupported format '{fmt}', expected yaml or json")
    try:
        return yaml.safe_load(content) if fmt == "yaml" else json.loads(content)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise SchemaLoadError(f"Cannot parse {fmt.upper()} text: {e}") from e


def read_file(path: str | Path) -> Any:
    """Read a ``.yaml``/``.yml``/``.json`` file, picking the parser by suffix.

    Raises:
        FileNotFoundError: If ``path`` does not exist
        SchemaLoadError: On an unknown suffix or unparseable content
    """
    path = Path(path)
    fmt = SUFFIX_FORMATS.get(path.suffix.lower())
    if fmt is None:
        raise SchemaLoadError(f"Cannot read {path.name}: expected one of {sorted(SUFFIX_FORMATS)}")
    if not path.exists():
        raise FileNotFoundError(f"No such file: {path}")
    logger.debug(f"Reading {fmt} file {path}")
    try:
        return parse_text(path.read_text(encoding="utf-8"), fmt)
    except SchemaLoadError as e:
        raise SchemaLoadError(f"{path}: {e}") from e.__cause__


def load_document(path: str | Path) -> dict[str, Any]:
    """Load an OpenAPI document (or a bare type-name mapping)."""
    document = read_file(path)
    if not isinstance(document, dict):
        raise SchemaLoadError(f"Schema document {path} must contain a mapping")
    return document


@lru_cache(maxsize=1)
def _metadata_schema() -> dict[str, Any]:
    with open(METADATA_SCHEMA_PATH) as f:
        return cast(dict[str, Any], json.load(f))


def _normalize_metadata(raw: Any) -> dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise SchemaLoadError("Metadata must be a mapping")
    if "types" in raw or "exclude" in raw:
        return raw
    return {"types": raw}


def validate_metadata_structure(raw: Any) -> MetadataFileModel:
    """Check a metadata document against the bundled JSON Schema.

    Args:
        raw: Parsed metadata, either ``{"exclude": [...], "types": {...}}``
            or a bare type table

    Returns:
        The validated metadata file model

    Raises:
        SchemaLoadError: If the structure is invalid
    """
    normalized = _normalize_metadata(raw)
    try:
        jsonschema.validate(instance=normalized, schema=_metadata_schema())
    except jsonschema.ValidationError as e:
        # Convert JSON schema error to a more user-friendly message
        if e.absolute_path:
            location = ".".join(str(p) for p in e.absolute_path)
            raise SchemaLoadError(f"Metadata validation error at '{location}': {e.message}") from e
        raise SchemaLoadError(f"Metadata validation error: {e.message}") from e
    return MetadataFileModel.model_validate(normalized)


def load_metadata(path: str | Path) -> tuple[dict[str, dict[str, Any]], list[str]]:
    """Load a field-metadata file.

    Returns:
        The type table and the list of excluded type names
    """
    model = validate_metadata_structure(read_file(path))
    logger.info(
        f"Loaded metadata for {len(model.types)} type(s) and {len(model.exclude)} exclusion(s)"
    )
    return model.types, model.exclude


async def load_metadata_async(path: str | Path) -> dict[str, dict[str, Any]]:
    """Read the type table of a metadata file without blocking the event loop.

    Suitable as the source of :meth:`SchemaProvider.load_async`.
    """
    types, _ = await asyncio.to_thread(load_metadata, path)
    return types


def load_exclusions(path: str | Path) -> list[str]:
    """Load a list of excluded type names from a YAML/JSON list or metadata file."""
    raw = read_file(path)
    if isinstance(raw, list):
        if not all(isinstance(name, str) for name in raw):
            raise SchemaLoadError(f"Exclusion list {path} must only contain type names")
        return list(raw)
    return validate_metadata_structure(raw).exclude
