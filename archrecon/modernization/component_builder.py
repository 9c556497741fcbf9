#!/usr/bin/env python3
# CUI // SP-CTI
"""ComponentCatalogBuilder — service, controller and endpoint records.

Pure projection of declared fields (name, simple type, annotations) and
method signatures (name, parameter types). Method bodies are not looked
at here; outbound calls are the CallSiteLocator's job.

Endpoints: a controller method carrying a configured mapping marker
(GetMapping, PostMapping, ...) becomes an Endpoint. The marker's payload
is the path; a class-level RequestMapping payload is the path prefix.
RequestMapping on a method leaves the verb unknown (None).
"""

import logging
from typing import List

from archrecon.catalog.interface import Declaration, FieldDecl, MetadataCatalog, MethodDecl
from archrecon.modernization.recovery_settings import RecoverySettings
from archrecon.resilience.errors import MalformedInputError
from archrecon.schemas.architecture import (
    Controller,
    Endpoint,
    Field,
    MethodSignature,
    Name,
    Service,
)

logger = logging.getLogger("archrecon.modernization.component_builder")


def join_paths(*segments: str) -> str:
    """Join URL path segments with single slashes; always starts with '/'."""
    parts = [s.strip("/") for s in segments if s and s.strip("/")]
    return "/" + "/".join(parts)


class ComponentCatalogBuilder:

    def __init__(self, settings: RecoverySettings):
        self.class_path_marker = settings.class_path_marker
        self.endpoint_mappings = dict(settings.endpoint_mappings)

    def build_service(self, declaration: Declaration, catalog: MetadataCatalog) -> Service:
        return Service(
            name=Name.from_qualified(declaration.name),
            fields=self._fields(declaration, catalog),
            methods=self._methods(declaration, catalog),
        )

    def build_controller(self, declaration: Declaration, catalog: MetadataCatalog) -> Controller:
        return Controller(
            name=Name.from_qualified(declaration.name),
            fields=self._fields(declaration, catalog),
            methods=self._methods(declaration, catalog),
        )

    def build_endpoints(self, declaration: Declaration, catalog: MetadataCatalog) -> List[Endpoint]:
        prefix = ""
        for a in catalog.annotations_of(declaration):
            if a.simple_name == self.class_path_marker and a.payload:
                prefix = a.payload
                break

        endpoints = []
        for method in catalog.declared_methods(declaration):
            for a in catalog.annotations_of(method):
                if a.simple_name not in self.endpoint_mappings:
                    continue
                endpoints.append(Endpoint(
                    verb=self.endpoint_mappings[a.simple_name],
                    path=join_paths(prefix, a.payload or ""),
                    controller=declaration.name,
                    method=method.name,
                ))
        return endpoints

    # ---- projection ----

    def _fields(self, declaration: Declaration, catalog: MetadataCatalog):
        out = []
        for f in catalog.declared_fields(declaration):
            _check_named(f, declaration)
            out.append(Field(
                name=f.name,
                type_name=f.simple_type,
                annotations=frozenset(catalog.annotations_of(f)),
            ))
        return frozenset(out)

    def _methods(self, declaration: Declaration, catalog: MetadataCatalog):
        out = []
        for m in catalog.declared_methods(declaration):
            _check_named(m, declaration)
            out.append(MethodSignature(name=m.name, parameter_types=tuple(m.parameter_types)))
        return frozenset(out)


def _check_named(element, declaration: Declaration) -> None:
    if not element.name:
        kind = "field" if isinstance(element, FieldDecl) else "method" if isinstance(element, MethodDecl) else "member"
        raise MalformedInputError(f"Unnamed {kind} in {declaration.name}", detail=declaration.name)
