#!/usr/bin/env python3
# CUI // SP-CTI
"""RoleClassifier — map a declaration's metadata tags to an architectural role.

Rules, first match wins:
  1. interfaces never receive a role
  2. a tag name containing the controller marker (case-insensitive) -> CONTROLLER
  3. a tag whose qualified name contains every service marker -> SERVICE
  4. a tag whose qualified name starts with the entity prefix -> ENTITY
  5. every declared field has an accessor and a mutator -> ENTITY

Rule 5 covers frameworks that synthesize accessors at compile time and do
not retain their markers in the compiled class. Classification never
raises; a declaration that matches nothing gets None and is left out of
the Module.
"""

import logging
from enum import Enum
from typing import Iterable, Optional, Sequence

from archrecon.catalog.interface import Declaration, FieldDecl, MetadataCatalog, MethodDecl
from archrecon.modernization.recovery_settings import RecoverySettings
from archrecon.schemas.architecture import Annotation

logger = logging.getLogger("archrecon.modernization.role_classifier")


class Role(str, Enum):
    ENTITY = "entity"
    SERVICE = "service"
    CONTROLLER = "controller"


def has_accessor_pairs(fields: Sequence[FieldDecl], methods: Sequence[MethodDecl]) -> bool:
    """True when there is at least one field and each has a getter and a setter.

    Getter: ``get<f>``, ``is<f>`` or ``<f>``. Setter: ``set<f>``, or
    ``set<f>`` with a leading ``is`` dropped (``isActive`` -> ``setActive``).
    Names are compared case-insensitively.
    """
    if not fields:
        return False
    method_names = {m.name.lower() for m in methods}
    for f in fields:
        name = f.name.lower()
        getters = {"get" + name, "is" + name, name}
        setters = {"set" + name}
        if name.startswith("is") and len(name) > 2:
            setters.add("set" + name[2:])
        if not (getters & method_names and setters & method_names):
            return False
    return True


class RoleClassifier:
    """Deterministic, total role classification driven by RecoverySettings."""

    def __init__(self, settings: RecoverySettings):
        self.settings = settings
        self._controller_marker = settings.controller_marker.lower()

    def classify(self, declaration: Declaration, catalog: MetadataCatalog) -> Optional[Role]:
        if declaration.is_interface:
            return None
        annotations = catalog.annotations_of(declaration)
        role = self.classify_tags(annotations)
        if role is not None:
            return role
        if self.settings.structural_entity_heuristic and has_accessor_pairs(
            catalog.declared_fields(declaration), catalog.declared_methods(declaration)
        ):
            logger.debug("%s classified as entity by accessor heuristic", declaration.name)
            return Role.ENTITY
        return None

    def classify_tags(self, annotations: Iterable[Annotation]) -> Optional[Role]:
        """Apply rules 2-4 to a tag set."""
        names = [a.name for a in annotations]
        if self._controller_marker and any(self._controller_marker in n.lower() for n in names):
            return Role.CONTROLLER
        markers = self.settings.service_markers
        if markers and any(all(m in n for m in markers) for n in names):
            return Role.SERVICE
        prefix = self.settings.entity_marker_prefix
        if prefix and any(n.startswith(prefix) for n in names):
            return Role.ENTITY
        return None
