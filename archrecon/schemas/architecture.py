#!/usr/bin/env python3
# CUI // SP-CTI
"""Architecture model records.

Name, Annotation, Field, Entity, MethodSignature, Service, Controller,
Endpoint, RestCall and Module. Every record is a frozen dataclass: records
are built once per declaration and folded into a Module by
ArchitectureAssembler, never mutated afterwards. ``to_dict()`` keys are the
stable serialization contract.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

from archrecon.schemas.expressions import ResolvedExpression


def _sorted_dicts(items) -> list:
    return [i.to_dict() for i in sorted(items, key=lambda x: x.sort_key())]


@dataclass(frozen=True)
class Name:
    """Simple identifier with an optional fully-qualified form."""

    simple: str
    full: Optional[str] = None

    @property
    def qualified(self) -> str:
        return self.full or self.simple

    @classmethod
    def from_qualified(cls, qualified_name: str) -> "Name":
        """Build a Name from ``com.acme.Order`` (simple part = last segment)."""
        simple = qualified_name.rsplit(".", 1)[-1]
        return cls(simple=simple, full=qualified_name if simple != qualified_name else None)

    def sort_key(self) -> Tuple[str, str]:
        return (self.qualified, self.simple)

    def to_dict(self) -> dict:
        data = {"name": self.simple}
        if self.full:
            data["full_name"] = self.full
        return data


@dataclass(frozen=True)
class Annotation:
    """Metadata tag instance: tag name plus optional literal payload."""

    name: str
    payload: Optional[str] = None

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1].lstrip("@")

    def sort_key(self) -> Tuple[str, str]:
        return (self.name, self.payload or "")

    def to_dict(self) -> dict:
        data = {"name": "@" + self.simple_name, "type": self.name}
        if self.payload is not None:
            data["value"] = self.payload
        return data


@dataclass(frozen=True)
class Field:
    """A declared field; scalar, collection, or relation to another entity."""

    name: str
    type_name: str
    is_collection: bool = False
    is_reference: bool = False
    referenced_entity_name: Optional[str] = None
    annotations: FrozenSet[Annotation] = field(default_factory=frozenset)

    def sort_key(self) -> Tuple:
        return (self.name, self.type_name, self.is_collection, self.is_reference,
                self.referenced_entity_name or "",
                tuple(a.sort_key() for a in sorted(self.annotations, key=Annotation.sort_key)))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type_name,
            "is_collection": self.is_collection,
            "is_reference": self.is_reference,
            "entity_ref_name": self.referenced_entity_name,
            "annotations": _sorted_dicts(self.annotations),
        }


@dataclass(frozen=True)
class Entity:
    """Persistent entity. Identity for deduplication is ``name.qualified``."""

    name: Name
    fields: FrozenSet[Field] = field(default_factory=frozenset)

    def sort_key(self) -> Tuple:
        return (self.name.sort_key(), tuple(f.sort_key() for f in sorted(self.fields, key=Field.sort_key)))

    def to_dict(self) -> dict:
        return {"entity_name": self.name.to_dict(), "fields": _sorted_dicts(self.fields)}


@dataclass(frozen=True)
class MethodSignature:
    name: str
    parameter_types: Tuple[str, ...] = ()

    def sort_key(self) -> Tuple:
        return (self.name, self.parameter_types)

    def to_dict(self) -> dict:
        return {"name": self.name, "parameter_types": list(self.parameter_types)}


@dataclass(frozen=True)
class Service:
    """Service component: state fields plus declared behavior."""

    name: Name
    fields: FrozenSet[Field] = field(default_factory=frozenset)
    methods: FrozenSet[MethodSignature] = field(default_factory=frozenset)

    def sort_key(self) -> Tuple:
        return (self.name.sort_key(),
                tuple(f.sort_key() for f in sorted(self.fields, key=Field.sort_key)),
                tuple(sorted(m.sort_key() for m in self.methods)))

    def to_dict(self) -> dict:
        return {
            "service_name": self.name.to_dict(),
            "fields": _sorted_dicts(self.fields),
            "methods": _sorted_dicts(self.methods),
        }


@dataclass(frozen=True)
class Controller:
    """Controller component; same shape as Service, different role."""

    name: Name
    fields: FrozenSet[Field] = field(default_factory=frozenset)
    methods: FrozenSet[MethodSignature] = field(default_factory=frozenset)

    def sort_key(self) -> Tuple:
        return (self.name.sort_key(),
                tuple(f.sort_key() for f in sorted(self.fields, key=Field.sort_key)),
                tuple(sorted(m.sort_key() for m in self.methods)))

    def to_dict(self) -> dict:
        return {
            "controller_name": self.name.to_dict(),
            "fields": _sorted_dicts(self.fields),
            "methods": _sorted_dicts(self.methods),
        }


@dataclass(frozen=True)
class Endpoint:
    """Controller method exposed externally. ``verb`` is None when unknown."""

    verb: Optional[str]
    path: str
    controller: str
    method: str = ""

    def sort_key(self) -> Tuple:
        return (self.controller, self.path, self.verb or "", self.method)

    def to_dict(self) -> dict:
        return {"http_method": self.verb, "path": self.path,
                "controller": self.controller, "handler": self.method}


@dataclass(frozen=True)
class RestCall:
    """Outbound call site with its reconstructed address argument."""

    method: str
    target: str
    address: ResolvedExpression

    def sort_key(self) -> Tuple:
        return (self.method, self.target, repr(self.address))

    def to_dict(self) -> dict:
        return {"method": self.method, "target": self.target, "address": self.address.to_dict()}


@dataclass(frozen=True)
class Module:
    """Assembled architecture model. Members are held in sorted order."""

    name: Name
    entities: Tuple[Entity, ...] = ()
    services: Tuple[Service, ...] = ()
    controllers: Tuple[Controller, ...] = ()
    endpoints: Tuple[Endpoint, ...] = ()
    rest_calls: Tuple[RestCall, ...] = ()

    def summary(self) -> Dict[str, Any]:
        return {
            "module": self.name.simple,
            "entities": len(self.entities),
            "services": len(self.services),
            "controllers": len(self.controllers),
            "endpoints": len(self.endpoints),
            "rest_calls": len(self.rest_calls),
        }

    def to_dict(self) -> dict:
        return {
            "name": self.name.to_dict(),
            "entities": [e.to_dict() for e in self.entities],
            "services": [s.to_dict() for s in self.services],
            "controllers": [c.to_dict() for c in self.controllers],
            "endpoints": [e.to_dict() for e in self.endpoints],
            "rest_calls": [r.to_dict() for r in self.rest_calls],
        }
