#!/usr/bin/env python3
# CUI // SP-CTI
"""EntityModelBuilder — entity, field and relation records.

One Entity per ENTITY-classified declaration, one Field per declared
field. A field is a collection when its declared type's simple name is in
the configured container set; the element type then comes from its single
type argument. A field tagged with a relation marker is a reference to the
entity named by its (element) type.

Malformed generics (no type argument, or several) never raise: the field
is emitted with ``is_collection=True``, element type ``Unknown`` and an
empty referenced-entity name.
"""

import logging
from typing import Optional

from archrecon.catalog.interface import Declaration, FieldDecl, MetadataCatalog, simple_type_name
from archrecon.modernization.recovery_settings import RecoverySettings
from archrecon.schemas.architecture import Entity, Field, Name

logger = logging.getLogger("archrecon.modernization.entity_builder")

UNKNOWN_TYPE = "Unknown"


class EntityModelBuilder:

    def __init__(self, settings: RecoverySettings):
        self.collection_types = settings.collection_type_names
        self.relation_markers = settings.relation_markers

    def build(self, declaration: Declaration, catalog: MetadataCatalog) -> Entity:
        fields = frozenset(
            self.build_field(f, catalog) for f in catalog.declared_fields(declaration)
        )
        return Entity(name=Name.from_qualified(declaration.name), fields=fields)

    def build_field(self, decl: FieldDecl, catalog: MetadataCatalog) -> Field:
        annotations = frozenset(catalog.annotations_of(decl))
        is_relation = any(
            a.simple_name in self.relation_markers or a.name in self.relation_markers
            for a in annotations
        )
        type_name = decl.simple_type
        is_collection = type_name in self.collection_types
        malformed = False
        if is_collection:
            element = self._element_type(decl)
            malformed = element is None
            type_name = UNKNOWN_TYPE if malformed else element

        referenced: Optional[str] = None
        if malformed:
            referenced = ""
        elif is_relation:
            referenced = type_name
        return Field(
            name=decl.name,
            type_name=type_name,
            is_collection=is_collection,
            is_reference=is_relation,
            referenced_entity_name=referenced,
            annotations=annotations,
        )

    def _element_type(self, decl: FieldDecl) -> Optional[str]:
        if len(decl.type_arguments) != 1:
            logger.warning(
                "Collection field %s has %d type arguments; element type unknown",
                decl.qualified_name, len(decl.type_arguments),
            )
            return None
        return simple_type_name(decl.type_arguments[0])
