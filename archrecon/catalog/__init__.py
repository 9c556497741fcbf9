#!/usr/bin/env python3
# CUI // SP-CTI
"""Catalog package — read-only access to the analysis engine's output."""

from archrecon.catalog.interface import (  # noqa: F401
    Declaration,
    FieldDecl,
    GraphNode,
    MetadataCatalog,
    MethodDecl,
    NodeKind,
    ProgramGraph,
    simple_type_name,
)
from archrecon.catalog.snapshot_catalog import SnapshotCatalog  # noqa: F401
