#!/usr/bin/env python3
# CUI // SP-CTI
"""Tests for archrecon/modernization/architecture_recovery.py — end-to-end extraction pass and CLI."""

import json
import sys
from pathlib import Path

import pytest

# Ensure project root on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from archrecon.catalog.snapshot_catalog import SnapshotCatalog
from archrecon.modernization.architecture_recovery import (
    ArchitectureRecovery,
    main,
    recover_architecture,
)
from archrecon.modernization.expression_resolver import CROSS_METHOD_ORIGIN
from archrecon.modernization.recovery_settings import RecoverySettings
from archrecon.schemas.architecture import Endpoint
from archrecon.schemas.expressions import Concat, ConfigValue, Literal, Unknown, render_expression
from conftest import REST_GET, REST_POST


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def module(cms_catalog, settings, app_config):
    return recover_architecture(cms_catalog, settings, app_config)


@pytest.fixture
def snapshot_file(tmp_path, cms_snapshot):
    p = tmp_path / "catalog.json"
    p.write_text(json.dumps(cms_snapshot), encoding="utf-8")
    return p


@pytest.fixture
def config_file(tmp_path):
    p = tmp_path / "application.yml"
    p.write_text("svc:\n  host: 10.0.0.1\n", encoding="utf-8")
    return p


def _calls_by_method(module):
    return {r.method: r for r in module.rest_calls}


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

class TestSelection:

    def test_excluded_packages(self, cms_catalog, settings):
        recovery = ArchitectureRecovery(cms_catalog, settings)
        assert not recovery.is_relevant("org.graalvm.internal.Shim")
        assert recovery.is_relevant("edu.cms.model.Course")
        assert "org.graalvm.internal.Shim" not in recovery.relevant_declarations()

    def test_base_package(self, cms_catalog):
        recovery = ArchitectureRecovery(cms_catalog, RecoverySettings(base_package="edu.cms.model"))
        assert recovery.relevant_declarations() == ["edu.cms.model.Course", "edu.cms.model.Student"]


# ---------------------------------------------------------------------------
# Module contents
# ---------------------------------------------------------------------------

class TestRecoveredModule:

    def test_summary(self, module):
        assert module.summary() == {"module": "cms", "entities": 2, "services": 1,
                                    "controllers": 1, "endpoints": 2, "rest_calls": 3}

    def test_entities(self, module):
        assert [e.name.qualified for e in module.entities] == ["edu.cms.model.Course", "edu.cms.model.Student"]

    def test_components(self, module):
        assert module.services[0].name.qualified == "edu.cms.service.CourseService"
        assert module.controllers[0].name.qualified == "edu.cms.controller.CourseController"

    def test_endpoints(self, module):
        controller = "edu.cms.controller.CourseController"
        assert set(module.endpoints) == {
            Endpoint("GET", "/courses", controller, "list"),
            Endpoint("POST", "/courses/new", controller, "create"),
        }

    def test_concatenated_address(self, module):
        call = _calls_by_method(module)["edu.cms.service.CourseService.fetchItems"]
        assert call.target == REST_GET
        assert call.address == Concat((Literal("/api/"), ConfigValue("svc.host", "10.0.0.1"), Literal("/items")))
        assert render_expression(call.address) == "/api/10.0.0.1/items"

    def test_literal_address(self, module):
        call = _calls_by_method(module)["edu.cms.service.CourseService.ping"]
        assert call.address == Literal("http://status/ping")

    def test_controller_calls_are_extracted(self, module):
        call = _calls_by_method(module)["edu.cms.controller.CourseController.create"]
        assert call.target == REST_POST
        assert call.address == Unknown(CROSS_METHOD_ORIGIN)

    def test_without_config_document(self, cms_catalog, settings):
        module = recover_architecture(cms_catalog, settings)
        call = _calls_by_method(module)["edu.cms.service.CourseService.fetchItems"]
        assert render_expression(call.address) == "/api/${svc.host}/items"

    def test_rest_calls_disabled(self, cms_catalog, app_config):
        module = recover_architecture(cms_catalog, RecoverySettings(extract_rest_calls=False), app_config)
        assert module.rest_calls == ()
        assert len(module.services) == 1

    def test_json_serializable(self, module):
        data = json.loads(json.dumps(module.to_dict()))
        assert data["name"] == {"name": "cms"}
        assert len(data["rest_calls"]) == 3


class TestRunProperties:

    def test_idempotent(self, cms_catalog, settings, app_config):
        first = recover_architecture(cms_catalog, settings, app_config)
        second = recover_architecture(cms_catalog, settings, app_config)
        assert first == second

    def test_workers_do_not_change_result(self, cms_catalog, settings, app_config, module):
        parallel = recover_architecture(cms_catalog, settings.replace(workers=4), app_config)
        assert parallel == module

    def test_broken_declaration_is_skipped(self, cms_snapshot, settings, app_config):
        cms_snapshot["declarations"].append({"name": "edu.cms.model.Broken", "fields": [{"name": "x"}]})
        module = recover_architecture(SnapshotCatalog.from_dict(cms_snapshot), settings, app_config)
        assert len(module.entities) == 2
        assert len(module.rest_calls) == 3

    def test_wrongly_typed_records_are_skipped(self, cms_snapshot, settings, app_config):
        cms_snapshot["declarations"].extend([
            {"name": "edu.cms.model.Odd", "annotations": ["javax.persistence.Entity"],
             "fields": [{"name": "tags", "type": "java.util.List", "type_arguments": 5}]},
            {"name": "edu.cms.service.Flagged", "interface": "false",
             "annotations": ["org.springframework.stereotype.Service"]},
        ])
        module = recover_architecture(SnapshotCatalog.from_dict(cms_snapshot), settings, app_config)
        assert [e.name.simple for e in module.entities] == ["Course", "Student"]
        assert [s.name.simple for s in module.services] == ["CourseService"]
        assert len(module.rest_calls) == 3

    def test_extract_unknown_declaration(self, cms_catalog, settings):
        assert ArchitectureRecovery(cms_catalog, settings).extract_declaration("edu.cms.Nope").is_empty()

    def test_entity_has_no_rest_calls(self, cms_catalog, settings):
        result = ArchitectureRecovery(cms_catalog, settings).extract_declaration("edu.cms.model.Course")
        assert len(result.entities) == 1
        assert result.rest_calls == []

    def test_empty_catalog(self, settings):
        module = recover_architecture(SnapshotCatalog.from_dict({"declarations": []}), settings)
        assert module.summary()["entities"] == 0


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

class TestMain:

    def test_output_file(self, tmp_path, snapshot_file, config_file):
        out = tmp_path / "out" / "cms.json"
        rc = main(["--catalog", str(snapshot_file), "--config-doc", str(config_file),
                   "--module-name", "cms", "--output-file", str(out)])
        assert rc == 0
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["name"]["name"] == "cms"
        assert len(data["entities"]) == 2
        addresses = [c["address"] for c in data["rest_calls"]]
        assert {"kind": "literal", "value": "http://status/ping"} in addresses

    def test_json_to_stdout(self, snapshot_file, capsys):
        rc = main(["--catalog", str(snapshot_file), "--no-rest", "--json"])
        assert rc == 0
        data = json.loads(capsys.readouterr().out)
        assert data["rest_calls"] == []
        assert data["name"]["name"] == "module"

    def test_human_report(self, snapshot_file, config_file, capsys):
        rc = main(["--catalog", str(snapshot_file), "--config-doc", str(config_file),
                   "--module-name", "cms", "--human"])
        assert rc == 0
        out = capsys.readouterr().out
        assert "Architecture: cms" in out
        assert "/api/10.0.0.1/items" in out

    def test_base_package_flag(self, snapshot_file, capsys):
        rc = main(["--catalog", str(snapshot_file), "--base-package", "edu.cms.service", "--workers", "2"])
        assert rc == 0
        data = json.loads(capsys.readouterr().out)
        assert data["entities"] == []
        assert len(data["services"]) == 1

    def test_missing_catalog(self, tmp_path, capsys):
        rc = main(["--catalog", str(tmp_path / "absent.json")])
        assert rc == 1
        assert "ERROR" in capsys.readouterr().err

    def test_invalid_settings(self, tmp_path, snapshot_file, capsys):
        bad = tmp_path / "settings.yaml"
        bad.write_text("architecture_recovery:\n  workers: 0\n", encoding="utf-8")
        rc = main(["--catalog", str(snapshot_file), "--settings", str(bad)])
        assert rc == 1
        assert "CONFIGURATION ERROR" in capsys.readouterr().err
