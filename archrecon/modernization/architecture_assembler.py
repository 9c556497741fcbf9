#!/usr/bin/env python3
# CUI // SP-CTI
"""ArchitectureAssembler — fold partial extraction results into one Module.

Merge policy:
  - Entities are identified by qualified name. Two records for the same
    name merge into one Entity; same-named fields fold into one field
    (annotation union, flags OR-ed, first non-empty referenced name).
  - Services, controllers, endpoints and REST calls are deduplicated by
    structural equality.

Output members are sorted, so assembling the same inputs in any order
yields equal Modules. Assembly cannot fail; no input gives an empty Module.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from archrecon.schemas.architecture import (
    Controller,
    Endpoint,
    Entity,
    Field,
    Module,
    Name,
    RestCall,
    Service,
)

logger = logging.getLogger("archrecon.modernization.architecture_assembler")


@dataclass
class ExtractionResult:
    """Partial output of one declaration or one worker shard."""

    entities: List[Entity] = field(default_factory=list)
    services: List[Service] = field(default_factory=list)
    controllers: List[Controller] = field(default_factory=list)
    endpoints: List[Endpoint] = field(default_factory=list)
    rest_calls: List[RestCall] = field(default_factory=list)

    def extend(self, other: "ExtractionResult") -> "ExtractionResult":
        self.entities.extend(other.entities)
        self.services.extend(other.services)
        self.controllers.extend(other.controllers)
        self.endpoints.extend(other.endpoints)
        self.rest_calls.extend(other.rest_calls)
        return self

    def is_empty(self) -> bool:
        return not (self.entities or self.services or self.controllers
                    or self.endpoints or self.rest_calls)


def merge_fields(fields: Iterable[Field]) -> frozenset:
    """Fold fields sharing a name into one field each."""
    by_name: Dict[str, List[Field]] = {}
    for f in sorted(fields, key=Field.sort_key):
        by_name.setdefault(f.name, []).append(f)
    merged = []
    for name, group in by_name.items():
        if len(set(group)) == 1:
            merged.append(group[0])
            continue
        first = group[0]
        referenced = next((f.referenced_entity_name for f in group if f.referenced_entity_name), None)
        if referenced is None and any(f.referenced_entity_name == "" for f in group):
            referenced = ""
        annotations = frozenset().union(*(f.annotations for f in group))
        merged.append(Field(
            name=name,
            type_name=first.type_name,
            is_collection=any(f.is_collection for f in group),
            is_reference=any(f.is_reference for f in group),
            referenced_entity_name=referenced,
            annotations=annotations,
        ))
    return frozenset(merged)


def merge_entities(entities: Iterable[Entity]) -> List[Entity]:
    """Deduplicate entities by qualified name, merging their fields."""
    groups: Dict[str, List[Entity]] = {}
    for e in entities:
        groups.setdefault(e.name.qualified, []).append(e)
    out = []
    for qualified, group in groups.items():
        if len(group) > 1:
            logger.debug("Merging %d records for entity %s", len(group), qualified)
        name = min((e.name for e in group), key=Name.sort_key)
        fields = merge_fields(f for e in group for f in e.fields)
        out.append(Entity(name=name, fields=fields))
    return sorted(out, key=Entity.sort_key)


class ArchitectureAssembler:
    """Pure aggregation of builder output into an immutable Module."""

    def assemble(self, module_name: str, results: Iterable[ExtractionResult]) -> Module:
        combined = ExtractionResult()
        for r in results:
            combined.extend(r)
        module = Module(
            name=Name(module_name),
            entities=tuple(merge_entities(combined.entities)),
            services=tuple(sorted(set(combined.services), key=Service.sort_key)),
            controllers=tuple(sorted(set(combined.controllers), key=Controller.sort_key)),
            endpoints=tuple(sorted(set(combined.endpoints), key=Endpoint.sort_key)),
            rest_calls=tuple(sorted(set(combined.rest_calls), key=RestCall.sort_key)),
        )
        logger.info("Assembled module %s: %s", module_name, module.summary())
        return module
