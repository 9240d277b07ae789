"""Tests for schemaguard.registry module."""

import pytest

from schemaguard import ExclusionSet, RegistryFrozenError, SchemaStore, TypeRegistry


class TestTypeRegistry:
    """Test the exclusion registry build step."""

    def test_register_and_freeze(self):
        registry = TypeRegistry()
        registry.register("RawPayload")
        registry.register("RawPayload")

        assert registry.is_excluded("RawPayload")
        assert not registry.frozen

        exclusions = registry.freeze()
        assert registry.frozen
        assert exclusions.is_excluded("RawPayload")
        assert not exclusions.is_excluded("User")
        assert len(exclusions) == 1

    def test_register_after_freeze(self):
        registry = TypeRegistry(["A"])
        registry.freeze()

        with pytest.raises(RegistryFrozenError, match="'B'"):
            registry.register("B")
        assert not registry.is_excluded("B")

    def test_freeze_is_idempotent(self):
        registry = TypeRegistry(["A"])

        assert registry.freeze() is registry.freeze()

    def test_frozen_set_feeds_store(self, openapi_document):
        exclusions = TypeRegistry(["Point", "Line"]).freeze()
        store = SchemaStore.build(openapi_document, exclusions=exclusions)

        assert store.exclusions is exclusions
        assert store.is_excluded("Line")


class TestExclusionSet:
    """Test the immutable exclusion set."""

    def test_set_protocol(self):
        exclusions = ExclusionSet(["b", "a"])

        assert "a" in exclusions
        assert "c" not in exclusions
        assert list(exclusions) == ["a", "b"]
        assert repr(exclusions) == "ExclusionSet(['a', 'b'])"

    def test_empty(self):
        assert len(ExclusionSet()) == 0
