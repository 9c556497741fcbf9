#!/usr/bin/env python3
# CUI // SP-CTI
"""Shared pytest fixtures for the archrecon test suite.

Centralizes the sample catalog snapshot (a small course-management
application), settings and configuration documents used across the
component tests.
"""

import copy
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path
BASE_DIR = Path(__file__).resolve().parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from archrecon.catalog.snapshot_catalog import SnapshotCatalog  # noqa: E402
from archrecon.modernization.config_document import ConfigDocument  # noqa: E402
from archrecon.modernization.recovery_settings import RecoverySettings  # noqa: E402

ENTITY = "javax.persistence.Entity"
ID = "javax.persistence.Id"
ONE_TO_MANY = "javax.persistence.OneToMany"
MANY_TO_ONE = "javax.persistence.ManyToOne"
SERVICE = "org.springframework.stereotype.Service"
REST_CONTROLLER = "org.springframework.web.bind.annotation.RestController"
REQUEST_MAPPING = "org.springframework.web.bind.annotation.RequestMapping"
GET_MAPPING = "org.springframework.web.bind.annotation.GetMapping"
POST_MAPPING = "org.springframework.web.bind.annotation.PostMapping"
VALUE = "org.springframework.beans.factory.annotation.Value"
AUTOWIRED = "org.springframework.beans.factory.annotation.Autowired"

SB = "java.lang.StringBuilder"
SB_APPEND = "java.lang.StringBuilder.append(java.lang.String)"
SB_TO_STRING = "java.lang.StringBuilder.toString()"
REST_GET = "org.springframework.web.client.RestTemplate.getForObject(java.lang.String,java.lang.Class,java.lang.Object[])"
REST_POST = "org.springframework.web.client.RestTemplate.postForObject(java.lang.String,java.lang.Object,java.lang.Class,java.lang.Object[])"


# ---------------------------------------------------------------------------
# Sample snapshot
# ---------------------------------------------------------------------------

CMS_SNAPSHOT = {
    "declarations": [
        {
            "name": "edu.cms.model.Course",
            "annotations": [ENTITY],
            "fields": [
                {"name": "id", "type": "java.lang.Long", "annotations": [ID]},
                {"name": "title", "type": "java.lang.String"},
                {"name": "students", "type": "java.util.Set",
                 "type_arguments": ["edu.cms.model.Student"], "annotations": [ONE_TO_MANY]},
                {"name": "instructor", "type": "edu.cms.model.Instructor", "annotations": [MANY_TO_ONE]},
            ],
            "methods": [{"name": "getId"}],
        },
        {
            # accessor-synthesized entity: no markers retained
            "name": "edu.cms.model.Student",
            "fields": [
                {"name": "name", "type": "java.lang.String"},
                {"name": "isActive", "type": "boolean"},
            ],
            "methods": [
                {"name": "getName"},
                {"name": "setName", "parameter_types": ["java.lang.String"]},
                {"name": "isActive"},
                {"name": "setActive", "parameter_types": ["boolean"]},
            ],
        },
        {
            "name": "edu.cms.service.CourseService",
            "annotations": [SERVICE],
            "fields": [
                {"name": "restTemplate", "type": "org.springframework.web.client.RestTemplate",
                 "annotations": [AUTOWIRED]},
                {"name": "host", "type": "java.lang.String",
                 "annotations": [{"name": VALUE, "value": "${svc.host}"}]},
            ],
            "methods": [
                {
                    "name": "fetchItems",
                    "parameter_types": ["java.lang.String"],
                    "return_type": "java.lang.String",
                    "graph": [
                        {"id": 0, "kind": "parameter", "index": 0, "type": "java.lang.String"},
                        {"id": 1, "kind": "field_load", "field": "edu.cms.service.CourseService.restTemplate"},
                        {"id": 2, "kind": "allocation", "type": SB},
                        {"id": 3, "kind": "constant", "value": "/api/"},
                        {"id": 4, "kind": "invoke", "target": SB_APPEND, "receiver": 2, "arguments": [3]},
                        {"id": 5, "kind": "field_load", "field": "edu.cms.service.CourseService.host"},
                        {"id": 6, "kind": "invoke", "target": SB_APPEND, "receiver": 2, "arguments": [5]},
                        {"id": 7, "kind": "constant", "value": "/items"},
                        {"id": 8, "kind": "invoke", "target": SB_APPEND, "receiver": 2, "arguments": [7]},
                        {"id": 9, "kind": "invoke", "target": SB_TO_STRING, "receiver": 2},
                        {"id": 10, "kind": "invoke", "target": REST_GET, "receiver": 1, "arguments": [9]},
                    ],
                },
                {
                    "name": "ping",
                    "graph": [
                        {"id": 0, "kind": "field_load", "field": "edu.cms.service.CourseService.restTemplate"},
                        {"id": 1, "kind": "constant", "value": "http://status/ping"},
                        {"id": 2, "kind": "invoke", "target": REST_GET, "receiver": 0, "arguments": [1]},
                    ],
                },
                # no graph in the snapshot
                {"name": "helper"},
            ],
        },
        {
            "name": "edu.cms.controller.CourseController",
            "annotations": [REST_CONTROLLER, {"name": REQUEST_MAPPING, "value": "/courses"}],
            "fields": [
                {"name": "courseService", "type": "edu.cms.service.CourseService", "annotations": [AUTOWIRED]},
            ],
            "methods": [
                {"name": "list", "annotations": [GET_MAPPING], "graph": []},
                {"name": "create", "parameter_types": ["edu.cms.model.Course"],
                 "annotations": [{"name": POST_MAPPING, "value": "/new"}],
                 "graph": [
                     {"id": 0, "kind": "parameter", "index": 0, "type": "edu.cms.model.Course"},
                     {"id": 1, "kind": "invoke", "target": REST_POST, "arguments": [7]},
                 ]},
            ],
        },
        {
            "name": "edu.cms.repository.CourseRepository",
            "interface": True,
            "annotations": ["org.springframework.stereotype.Repository"],
        },
        {
            "name": "edu.cms.util.Helpers",
            "fields": [{"name": "cache", "type": "java.util.Map"}],
            "methods": [{"name": "clear"}],
        },
        {
            "name": "org.graalvm.internal.Shim",
            "annotations": [SERVICE],
        },
    ]
}


@pytest.fixture
def cms_snapshot():
    """A fresh deep copy of the sample snapshot document."""
    return copy.deepcopy(CMS_SNAPSHOT)


@pytest.fixture
def cms_catalog(cms_snapshot):
    return SnapshotCatalog.from_dict(cms_snapshot)


@pytest.fixture
def settings():
    return RecoverySettings(module_name="cms")


@pytest.fixture
def app_config():
    """Configuration document with ``svc.host`` resolved."""
    return ConfigDocument.from_mapping({"svc": {"host": "10.0.0.1", "port": "8080"}})
