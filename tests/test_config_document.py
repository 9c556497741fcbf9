#!/usr/bin/env python3
# CUI // SP-CTI
"""Tests for archrecon/modernization/config_document.py — hierarchical key lookup."""

import sys
from pathlib import Path

import pytest

# Ensure project root on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from archrecon.modernization.config_document import ConfigDocument
from archrecon.resilience.errors import ConfigurationError


@pytest.fixture
def document():
    return ConfigDocument.from_mapping({
        "svc": {"host": "10.0.0.1", "port": 8080, "nested": {"path": "/v1"}},
        "flat": "value",
    })


class TestResolve:

    def test_full_path_string_leaf(self, document):
        assert document.resolve("svc.host") == "10.0.0.1"
        assert document.resolve("svc.nested.path") == "/v1"
        assert document.resolve("flat") == "value"

    def test_missing_key(self, document):
        assert document.resolve("svc.missing") is None

    def test_partial_path_is_unresolved(self, document):
        """A path ending on a mapping does not resolve."""
        assert document.resolve("svc") is None
        assert document.resolve("svc.nested") is None

    def test_path_through_leaf_is_unresolved(self, document):
        assert document.resolve("flat.more") is None

    def test_non_string_leaf_is_unresolved(self, document):
        assert document.resolve("svc.port") is None

    def test_empty_path(self, document):
        assert document.resolve("") is None

    def test_empty_document(self):
        assert ConfigDocument.empty().resolve("svc.host") is None


class TestConstruction:

    def test_snapshot_is_independent_of_source(self):
        tree = {"svc": {"host": "a"}}
        doc = ConfigDocument.from_mapping(tree)
        tree["svc"]["host"] = "b"
        assert doc.resolve("svc.host") == "a"

    def test_non_mapping_root_rejected(self):
        with pytest.raises(ConfigurationError):
            ConfigDocument(["not", "a", "mapping"])

    def test_equality(self):
        assert ConfigDocument({"a": "1"}) == ConfigDocument({"a": "1"})
        assert ConfigDocument({"a": "1"}) != ConfigDocument({"a": "2"})

    def test_from_yaml(self, tmp_path):
        p = tmp_path / "application.yml"
        p.write_text("svc:\n  host: api.internal\n  port: '9000'\n", encoding="utf-8")
        doc = ConfigDocument.from_file(p)
        assert doc.resolve("svc.host") == "api.internal"
        assert doc.resolve("svc.port") == "9000"

    def test_from_empty_yaml(self, tmp_path):
        p = tmp_path / "application.yml"
        p.write_text("", encoding="utf-8")
        assert ConfigDocument.from_yaml(p).to_dict() == {}

    def test_invalid_yaml(self, tmp_path):
        p = tmp_path / "application.yml"
        p.write_text("svc: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            ConfigDocument.from_yaml(p)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ConfigDocument.from_file(tmp_path / "absent.yml")

    def test_from_properties(self, tmp_path):
        p = tmp_path / "application.properties"
        p.write_text(
            "# comment\n"
            "svc.host=10.0.0.2\n"
            "svc.port : 8080\n"
            "! also a comment\n"
            "svc.base=/a\\\n"
            "/b\n",
            encoding="utf-8",
        )
        doc = ConfigDocument.from_file(p)
        assert doc.resolve("svc.host") == "10.0.0.2"
        assert doc.resolve("svc.port") == "8080"
        assert doc.resolve("svc.base") == "/a/b"

    def test_properties_longer_key_wins(self, tmp_path):
        p = tmp_path / "application.properties"
        p.write_text("svc=leaf\nsvc.host=h\n", encoding="utf-8")
        doc = ConfigDocument.from_properties(p)
        assert doc.resolve("svc.host") == "h"
        assert doc.resolve("svc") is None
