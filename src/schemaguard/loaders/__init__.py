"""Loading schema documents and field metadata from files.

Example:
    >>> from schemaguard.loaders import load_document, load_metadata
    >>>
    >>> document = load_document("openapi.json")
    >>> metadata, exclusions = load_metadata("metadata.yaml")
    >>> store = SchemaStore.build(document, metadata, exclusions)
"""

from .loaders import (
    MetadataFileModel,
    load_document,
    load_exclusions,
    load_metadata,
    load_metadata_async,
    parse_text,
    read_file,
    validate_metadata_structure,
)

__all__ = [
    "MetadataFileModel",
    "load_document",
    "load_exclusions",
    "load_metadata",
    "load_metadata_async",
    "parse_text",
    "read_file",
    "validate_metadata_structure",
]
