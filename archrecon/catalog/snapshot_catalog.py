#!/usr/bin/env python3
# CUI // SP-CTI
"""Snapshot-backed MetadataCatalog.

Loads a JSON or YAML dump of the analysis engine's declaration catalog and
per-method program graphs. Declarations are parsed lazily on first lookup,
so one malformed record only costs that declaration.

Snapshot layout:

    declarations:
      - name: com.acme.orders.OrderClient
        interface: false
        annotations:
          - org.springframework.stereotype.Service
        fields:
          - name: host
            type: java.lang.String
            annotations:
              - {name: org.springframework.beans.factory.annotation.Value, value: "${svc.host}"}
        methods:
          - name: fetchItems
            parameter_types: [java.lang.String]
            graph:
              - {id: 0, kind: allocation, type: java.lang.StringBuilder}
              - {id: 1, kind: constant, value: "/api/"}
              - {id: 2, kind: invoke, target: "java.lang.StringBuilder.append(java.lang.String)", receiver: 0, arguments: [1]}
              - {id: 3, kind: field_load, field: com.acme.orders.OrderClient.host}

A method without a ``graph`` entry has no program graph in the snapshot;
``program_graph_of`` raises CatalogUnavailableError for it.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from archrecon.catalog.interface import (
    Declaration,
    Element,
    FieldDecl,
    GraphNode,
    MetadataCatalog,
    MethodDecl,
    NodeKind,
    ProgramGraph,
)
from archrecon.resilience.errors import CatalogUnavailableError, MalformedInputError
from archrecon.schemas.architecture import Annotation

logger = logging.getLogger("archrecon.catalog.snapshot_catalog")

_KIND_ALIASES = {
    "const": NodeKind.CONSTANT.value,
    "param": NodeKind.PARAMETER.value,
    "load_field": NodeKind.FIELD_LOAD.value,
    "new": NodeKind.ALLOCATION.value,
    "new_instance": NodeKind.ALLOCATION.value,
    "call": NodeKind.INVOKE.value,
}


# ---------------------------------------------------------------------------
# Record parsing
# ---------------------------------------------------------------------------

def _parse_annotation(raw: Union[str, Dict[str, Any]]) -> Annotation:
    if isinstance(raw, str):
        return Annotation(name=raw)
    if isinstance(raw, dict) and raw.get("name"):
        payload = raw.get("value", raw.get("payload"))
        return Annotation(name=str(raw["name"]), payload=None if payload is None else str(payload))
    raise MalformedInputError(f"Annotation record has no name: {raw!r}", detail=repr(raw))


def _parse_annotations(raw: Any) -> Tuple[Annotation, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise MalformedInputError(f"Annotations must be a list, got {type(raw).__name__}", detail=repr(raw))
    return tuple(_parse_annotation(a) for a in raw)


def _record_list(raw: Dict[str, Any], key: str, where: str) -> list:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedInputError(f"'{key}' of {where} must be a list, got {type(value).__name__}", detail=repr(value))
    return value


def _string_list(raw: Dict[str, Any], key: str, where: str) -> Tuple[str, ...]:
    return tuple(str(v) for v in _record_list(raw, key, where))


def _require_name(raw: Dict[str, Any], what: str) -> str:
    if not isinstance(raw, dict) or not raw.get("name"):
        raise MalformedInputError(f"{what} record has no name", detail=repr(raw))
    return str(raw["name"])


def _parse_field(owner: str, raw: Dict[str, Any]) -> FieldDecl:
    name = _require_name(raw, "Field")
    type_name = raw.get("type")
    if not type_name:
        raise MalformedInputError(f"Field {owner}.{name} has no type", detail=repr(raw))
    return FieldDecl(
        owner=owner,
        name=name,
        type_name=str(type_name),
        type_arguments=_string_list(raw, "type_arguments", f"{owner}.{name}"),
        annotations=_parse_annotations(raw.get("annotations")),
    )


def _parse_method(owner: str, raw: Dict[str, Any]) -> MethodDecl:
    name = _require_name(raw, "Method")
    return MethodDecl(
        owner=owner,
        name=name,
        parameter_types=_string_list(raw, "parameter_types", f"{owner}.{name}"),
        return_type=str(raw.get("return_type") or "void"),
        annotations=_parse_annotations(raw.get("annotations")),
    )


def _parse_declaration(raw: Dict[str, Any]) -> Declaration:
    name = _require_name(raw, "Declaration")
    is_interface = raw.get("interface")
    if is_interface is None:
        is_interface = False
    if not isinstance(is_interface, bool):
        raise MalformedInputError(f"'interface' of {name} must be true or false", detail=repr(is_interface))
    return Declaration(
        name=name,
        is_interface=is_interface,
        annotations=_parse_annotations(raw.get("annotations")),
        fields=tuple(_parse_field(name, f) for f in _record_list(raw, "fields", name)),
        methods=tuple(_parse_method(name, m) for m in _record_list(raw, "methods", name)),
    )


def _int_or_none(value: Any) -> Optional[int]:
    return None if value is None else int(value)


# ---------------------------------------------------------------------------
# SnapshotCatalog
# ---------------------------------------------------------------------------

class SnapshotCatalog(MetadataCatalog):
    """MetadataCatalog over an in-memory snapshot document."""

    def __init__(self, data: Dict[str, Any], source: str = "<memory>"):
        if not isinstance(data, dict) or not isinstance(data.get("declarations", []), list):
            raise CatalogUnavailableError(f"Catalog snapshot {source} has no declarations list")
        self.source = source
        self._raw: Dict[str, Dict[str, Any]] = {}
        for entry in data.get("declarations") or []:
            if isinstance(entry, dict) and entry.get("name"):
                self._raw.setdefault(str(entry["name"]), entry)
            else:
                logger.warning("Skipping unnamed declaration record in %s", source)
        self._parsed: Dict[str, Declaration] = {}
        self._lock = threading.Lock()

    # ---- construction ----

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SnapshotCatalog":
        return cls(data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "SnapshotCatalog":
        """Load a snapshot from ``.json``, ``.yml`` or ``.yaml``."""
        p = Path(path)
        if not p.exists():
            raise CatalogUnavailableError(f"Catalog snapshot not found at {p}")
        try:
            with open(p, "r", encoding="utf-8") as f:
                if p.suffix.lower() in (".yml", ".yaml"):
                    data = yaml.safe_load(f) or {}
                else:
                    data = json.load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise CatalogUnavailableError(f"Catalog snapshot {p} is unreadable: {e}")
        logger.info("Loaded catalog snapshot %s", p)
        return cls(data, source=str(p))

    # ---- MetadataCatalog ----

    def declaration_names(self) -> List[str]:
        return list(self._raw)

    def lookup_declaration(self, name: str) -> Declaration:
        with self._lock:
            cached = self._parsed.get(name)
        if cached is not None:
            return cached
        raw = self._raw.get(name)
        if raw is None:
            raise CatalogUnavailableError("", declaration=name)
        declaration = _parse_declaration(raw)
        with self._lock:
            self._parsed[name] = declaration
        return declaration

    def declared_fields(self, declaration: Declaration) -> List[FieldDecl]:
        return list(declaration.fields)

    def declared_methods(self, declaration: Declaration) -> List[MethodDecl]:
        return list(declaration.methods)

    def annotations_of(self, element: Element) -> List[Annotation]:
        return list(element.annotations)

    def program_graph_of(self, method: MethodDecl) -> ProgramGraph:
        raw_decl = self._raw.get(method.owner)
        if raw_decl is None:
            raise CatalogUnavailableError("", declaration=method.owner)
        raw_nodes = None
        for raw_method in _record_list(raw_decl, "methods", method.owner):
            if isinstance(raw_method, dict) and raw_method.get("name") == method.name \
                    and _string_list(raw_method, "parameter_types", method.qualified_name) == method.parameter_types:
                raw_nodes = raw_method.get("graph")
                break
        if raw_nodes is None:
            raise CatalogUnavailableError(
                f"No program graph for {method.qualified_name}", declaration=method.owner
            )
        if not isinstance(raw_nodes, list):
            raise MalformedInputError(f"Graph of {method.qualified_name} is not a node list")
        try:
            nodes = [self._parse_node(method, n) for n in raw_nodes]
        except (TypeError, ValueError) as e:
            raise MalformedInputError(f"Graph of {method.qualified_name} has a non-integer node reference: {e}")
        return ProgramGraph(method.qualified_name, nodes)

    # ---- graph parsing ----

    def _parse_node(self, method: MethodDecl, raw: Dict[str, Any]) -> GraphNode:
        if not isinstance(raw, dict) or "id" not in raw or not raw.get("kind"):
            raise MalformedInputError(f"Graph node in {method.qualified_name} lacks id or kind", detail=repr(raw))
        kind = str(raw["kind"]).lower()
        kind = _KIND_ALIASES.get(kind, kind)
        field_ref = str(raw.get("field") or "")
        return GraphNode(
            node_id=int(raw["id"]),
            kind=kind,
            value=None if raw.get("value") is None else str(raw["value"]),
            index=_int_or_none(raw.get("index")),
            declared_type=str(raw.get("type") or ""),
            field=self._bind_field(field_ref) if kind == NodeKind.FIELD_LOAD.value else None,
            field_ref=field_ref,
            target=str(raw.get("target") or ""),
            receiver=_int_or_none(raw.get("receiver")),
            arguments=tuple(int(a) for a in raw.get("arguments") or ()),
            inputs=tuple(int(a) for a in raw.get("inputs") or ()),
        )

    def _bind_field(self, field_ref: str) -> Optional[FieldDecl]:
        """Resolve ``Owner.field`` to its declaration; None when not in the snapshot."""
        owner, _, name = field_ref.rpartition(".")
        if not owner:
            return None
        try:
            declaration = self.lookup_declaration(owner)
        except (CatalogUnavailableError, MalformedInputError) as e:
            logger.debug("Cannot bind field reference %s: %s", field_ref, e)
            return None
        for f in declaration.fields:
            if f.name == name:
                return f
        return None
