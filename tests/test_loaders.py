"""Tests for schemaguard.loaders module."""

import json

import pytest
import yaml

from schemaguard import SchemaLoadError, SchemaProvider, SchemaStore
from schemaguard.loaders import (
    load_document,
    load_exclusions,
    load_metadata,
    load_metadata_async,
    parse_text,
    read_file,
    validate_metadata_structure,
)


class TestParseAndRead:
    """Test parsing documents from strings and files."""

    def test_yaml_and_json(self):
        assert parse_text("a: 1") == {"a": 1}
        assert parse_text('{"a": 1}', "json") == {"a": 1}

    def test_parse_errors(self):
        with pytest.raises(SchemaLoadError, match="Cannot parse YAML"):
            parse_text("a: [1,")
        with pytest.raises(SchemaLoadError, match="Cannot parse JSON"):
            parse_text("{", "json")
        with pytest.raises(SchemaLoadError, match="Unsupported format"):
            parse_text("a", "toml")

    def test_file_suffixes(self, tmp_path):
        (tmp_path / "doc.yml").write_text("a: 1")
        (tmp_path / "doc.JSON").write_text('{"a": 2}')
        (tmp_path / "doc.txt").write_text("a: 1")
        (tmp_path / "broken.json").write_text("{")

        assert read_file(tmp_path / "doc.yml") == {"a": 1}
        assert read_file(tmp_path / "doc.JSON") == {"a": 2}
        with pytest.raises(SchemaLoadError, match="Cannot read doc.txt"):
            read_file(tmp_path / "doc.txt")
        with pytest.raises(SchemaLoadError, match="broken.json: Cannot parse JSON"):
            read_file(tmp_path / "broken.json")
        with pytest.raises(FileNotFoundError):
            read_file(tmp_path / "missing.json")

    def test_document_must_be_mapping(self, tmp_path, openapi_document):
        good = tmp_path / "openapi.json"
        good.write_text(json.dumps(openapi_document))
        bad = tmp_path / "list.yaml"
        bad.write_text("- a\n- b\n")

        assert load_document(good)["openapi"] == "3.0.0"
        with pytest.raises(SchemaLoadError, match="must contain a mapping"):
            load_document(bad)


class TestLoadMetadata:
    """Test loading and checking field-metadata files."""

    def test_full_form(self, tmp_path, field_metadata):
        path = tmp_path / "metadata.yaml"
        path.write_text(yaml.safe_dump({"exclude": ["RawPayload"], "types": field_metadata}))

        types, exclusions = load_metadata(path)

        assert types == field_metadata
        assert exclusions == ["RawPayload"]

    def test_bare_type_table(self, tmp_path, field_metadata):
        path = tmp_path / "metadata.json"
        path.write_text(json.dumps(field_metadata))

        types, exclusions = load_metadata(path)

        assert set(types) == set(field_metadata)
        assert exclusions == []

    def test_structure_errors_name_location(self):
        with pytest.raises(SchemaLoadError, match="at 'types.Query1.str1'"):
            validate_metadata_structure({"types": {"Query1": {"str1": {"requird": True}}}})
        with pytest.raises(SchemaLoadError, match="at 'exclude.0'"):
            validate_metadata_structure({"exclude": [1]})
        with pytest.raises(SchemaLoadError, match="must be a mapping"):
            validate_metadata_structure(["Query1"])

    def test_empty_file(self):
        model = validate_metadata_structure(None)

        assert model.types == {}
        assert model.exclude == []

    def test_loaded_metadata_builds_store(self, tmp_path, openapi_document, field_metadata):
        path = tmp_path / "metadata.yaml"
        path.write_text(yaml.safe_dump({"exclude": ["RawPayload"], "types": field_metadata}))

        types, exclusions = load_metadata(path)
        store = SchemaStore.build(openapi_document, types, exclusions)

        assert store.named_type("Grid").fields["cells"].required
        assert store.is_excluded("RawPayload")

    async def test_async_load_feeds_provider(self, tmp_path, openapi_document, field_metadata):
        path = tmp_path / "metadata.json"
        path.write_text(json.dumps(field_metadata))
        provider = SchemaProvider(openapi_document)

        store = await provider.load_async(load_metadata_async(path))

        assert provider.ready
        assert store.has_metadata("Query1")


class TestLoadExclusions:
    def test_list_file(self, tmp_path):
        path = tmp_path / "exclude.yaml"
        path.write_text("- RawPayload\n- Blob\n")

        assert load_exclusions(path) == ["RawPayload", "Blob"]

    def test_metadata_file(self, tmp_path):
        path = tmp_path / "metadata.yaml"
        path.write_text("exclude:\n  - RawPayload\ntypes: {}\n")

        assert load_exclusions(path) == ["RawPayload"]

    def test_rejects_non_names(self, tmp_path):
        path = tmp_path / "exclude.json"
        path.write_text("[1, 2]")

        with pytest.raises(SchemaLoadError):
            load_exclusions(path)
