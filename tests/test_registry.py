"""
Tests for the Grepsight processor registry.
"""

import pytest

from grepsight.tools.errors import InputError
from grepsight.tools.processors.base import NullProcessor
from grepsight.tools.processors.structured import JsonProcessor
from grepsight.tools.registry import ProcessorRegistry, default_registry


class TestProcessorRegistry:
    """Tests for ProcessorRegistry."""

    def test_default_types(self, registry):
        for declared_type in ("txt", "json", "yaml", "yml", "csv", "xml", "html", "xlsx",
                              "md", "rb", "py", "js", "tsx", "css", "pdf", "docx", "rtf", "msg"):
            assert declared_type in registry

    def test_labels(self, registry):
        assert registry.get("json").label == "JSON"
        assert registry.get("yml").label == "YAML"
        assert registry.get("tsx").label == "JavaScript"

    def test_unknown_type_falls_back(self, registry):
        assert isinstance(registry.get("unknown"), NullProcessor)
        assert isinstance(registry.get(None), NullProcessor)

    def test_case_insensitive(self, registry):
        assert registry.get("JSON") is registry.get("json")

    def test_copy_is_independent(self, registry):
        clone = registry.copy()
        clone.unregister("json")
        assert "json" not in clone
        assert "json" in registry

    def test_register_requires_analyze(self):
        with pytest.raises(InputError):
            ProcessorRegistry().register("json", object())

    def test_register_override(self):
        registry = default_registry()
        custom = JsonProcessor()
        registry.register("json", custom)
        assert registry.get("json") is custom

    def test_types_sorted(self, registry):
        assert registry.types() == sorted(registry.types())
        assert len(registry) == len(registry.types())

    def test_fresh_registries(self):
        assert default_registry() is not default_registry()
