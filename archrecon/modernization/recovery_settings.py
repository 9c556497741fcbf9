#!/usr/bin/env python3
# CUI // SP-CTI
"""Settings for the architecture recovery pass.

Marker names, container types, the outbound-call prefix and traversal
limits are configuration, never hardcoded in the core. Defaults target
Spring / JPA applications; ``args/architecture_recovery_config.yaml``
overrides them, and the CLI overrides the file.

Usage:
    from archrecon.modernization.recovery_settings import load_settings

    settings = load_settings()                       # args/ file or defaults
    settings = load_settings("custom.yaml", overrides={"max_depth": 32})
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Tuple, Union

import yaml

from archrecon.resilience.errors import ConfigurationError

logger = logging.getLogger("archrecon.modernization.recovery_settings")

BASE_DIR = Path(__file__).resolve().parent.parent.parent
CONFIG_PATH = BASE_DIR / "args" / "architecture_recovery_config.yaml"

DEFAULT_MAX_DEPTH = 64
# the walk recurses a few frames per hop; keeps it under the interpreter recursion limit
MAX_DEPTH_LIMIT = 200

_DEFAULT_ENDPOINT_MAPPINGS = {
    "GetMapping": "GET",
    "PostMapping": "POST",
    "PutMapping": "PUT",
    "DeleteMapping": "DELETE",
    "PatchMapping": "PATCH",
    "RequestMapping": None,
}


@dataclass(frozen=True)
class RecoverySettings:
    """Caller-supplied configuration threaded into every component."""

    module_name: str = "module"
    base_package: str = ""
    excluded_packages: Tuple[str, ...] = ("org.graalvm", "com.oracle", "jdk.vm")
    extract_rest_calls: bool = True
    workers: int = 1

    # roles
    controller_marker: str = "controller"
    service_markers: Tuple[str, ...] = ("springframework", "Service")
    entity_marker_prefix: str = "javax.persistence.Entity"
    structural_entity_heuristic: bool = True

    # entities
    relation_markers: FrozenSet[str] = frozenset({"ManyToOne", "OneToMany", "OneToOne", "ManyToMany"})
    collection_type_names: FrozenSet[str] = frozenset(
        {"Set", "List", "Collection", "Queue", "Deque", "Map", "Iterable", "SortedSet", "Array"}
    )

    # rest calls
    call_signature_prefix: str = "org.springframework.web.client.RestTemplate"
    call_target_methods: FrozenSet[str] = frozenset()
    config_key_marker: str = "org.springframework.beans.factory.annotation.Value"
    accumulator_types: Tuple[str, ...] = ("java.lang.StringBuilder", "java.lang.StringBuffer")
    append_method_names: FrozenSet[str] = frozenset({"append"})
    finish_method_names: FrozenSet[str] = frozenset({"toString"})
    max_depth: int = DEFAULT_MAX_DEPTH

    # endpoints
    class_path_marker: str = "RequestMapping"
    endpoint_mappings: Dict[str, Optional[str]] = field(
        default_factory=lambda: dict(_DEFAULT_ENDPOINT_MAPPINGS)
    )

    def replace(self, **changes: Any) -> "RecoverySettings":
        return dataclasses.replace(self, **_coerce(changes))


# key in YAML section -> RecoverySettings attribute
_SECTION_KEYS = {
    "architecture_recovery": {
        "module_name": "module_name",
        "base_package": "base_package",
        "excluded_packages": "excluded_packages",
        "extract_rest_calls": "extract_rest_calls",
        "workers": "workers",
    },
    "roles": {
        "controller_marker": "controller_marker",
        "service_markers": "service_markers",
        "entity_marker_prefix": "entity_marker_prefix",
        "structural_entity_heuristic": "structural_entity_heuristic",
    },
    "entities": {
        "relation_markers": "relation_markers",
        "collection_types": "collection_type_names",
    },
    "rest_calls": {
        "signature_prefix": "call_signature_prefix",
        "target_methods": "call_target_methods",
        "config_key_marker": "config_key_marker",
        "accumulator_types": "accumulator_types",
        "append_methods": "append_method_names",
        "finish_methods": "finish_method_names",
        "max_depth": "max_depth",
    },
    "endpoints": {
        "class_path_marker": "class_path_marker",
        "mappings": "endpoint_mappings",
    },
}

_TUPLE_KEYS = {"excluded_packages", "service_markers", "accumulator_types"}
_SET_KEYS = {"relation_markers", "collection_type_names", "call_target_methods",
             "append_method_names", "finish_method_names"}
_INT_KEYS = {"workers", "max_depth"}
_BOOL_KEYS = {"extract_rest_calls", "structural_entity_heuristic"}


def _coerce(values: Dict[str, Any]) -> Dict[str, Any]:
    """Convert YAML/CLI values to the attribute types; raise ConfigurationError on mismatch."""
    out: Dict[str, Any] = {}
    for key, value in values.items():
        if key in _TUPLE_KEYS or key in _SET_KEYS:
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, (list, tuple, set, frozenset)):
                raise ConfigurationError(f"'{key}' must be a list of strings", config_key=key)
            items = [str(v) for v in value]
            out[key] = tuple(items) if key in _TUPLE_KEYS else frozenset(items)
        elif key in _INT_KEYS:
            if isinstance(value, bool):
                raise ConfigurationError(f"'{key}' must be an integer", config_key=key)
            try:
                number = int(value)
            except (TypeError, ValueError):
                raise ConfigurationError(f"'{key}' must be an integer, got {value!r}", config_key=key)
            if number < 1:
                raise ConfigurationError(f"'{key}' must be at least 1", config_key=key)
            if key == "max_depth" and number > MAX_DEPTH_LIMIT:
                raise ConfigurationError(f"'max_depth' must be at most {MAX_DEPTH_LIMIT}", config_key=key)
            out[key] = number
        elif key in _BOOL_KEYS:
            if not isinstance(value, bool):
                raise ConfigurationError(f"'{key}' must be true or false", config_key=key)
            out[key] = value
        elif key == "endpoint_mappings":
            if not isinstance(value, dict):
                raise ConfigurationError("'mappings' must map marker names to HTTP verbs", config_key=key)
            out[key] = {str(k): (None if v is None else str(v).upper()) for k, v in value.items()}
        else:
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise ConfigurationError(f"'{key}' must be a string", config_key=key)
            out[key] = value
    return out


def settings_from_dict(data: Dict[str, Any]) -> RecoverySettings:
    """Build settings from the YAML document shape (unknown keys ignored)."""
    if not isinstance(data, dict):
        raise ConfigurationError("Settings document must be a mapping")
    root = data.get("architecture_recovery", data)
    if not isinstance(root, dict):
        raise ConfigurationError("'architecture_recovery' must be a mapping", config_key="architecture_recovery")
    flat: Dict[str, Any] = {}
    for section, keys in _SECTION_KEYS.items():
        block = root if section == "architecture_recovery" else root.get(section) or {}
        if not isinstance(block, dict):
            raise ConfigurationError(f"'{section}' must be a mapping", config_key=section)
        for yaml_key, attr in keys.items():
            if yaml_key in block:
                flat[attr] = block[yaml_key]
    return RecoverySettings(**_coerce(flat))


def load_settings(
    path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> RecoverySettings:
    """Load settings from *path* (default args/architecture_recovery_config.yaml).

    A missing default file yields the built-in defaults; a missing explicit
    path is a ConfigurationError.
    """
    config_path = Path(path) if path else CONFIG_PATH
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                settings = settings_from_dict(yaml.safe_load(f) or {})
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Settings file {config_path} is not valid YAML: {e}")
        logger.debug("Loaded recovery settings from %s", config_path)
    elif path:
        raise ConfigurationError(f"Settings file not found: {config_path}")
    else:
        settings = RecoverySettings()
    if overrides:
        settings = settings.replace(**{k: v for k, v in overrides.items() if v is not None})
    return settings
