#!/usr/bin/env python3
# CUI // SP-CTI
"""Shared schema models for the architecture recovery output.

Frozen stdlib dataclasses; ``to_dict()`` is the serialization contract.
"""

from archrecon.schemas.expressions import (
    Concat,
    ConfigValue,
    Literal,
    Parameter,
    ResolvedExpression,
    Unknown,
    find_unknowns,
    render_expression,
)
from archrecon.schemas.architecture import (
    Annotation,
    Controller,
    Endpoint,
    Entity,
    Field,
    MethodSignature,
    Module,
    Name,
    RestCall,
    Service,
)

__all__ = [
    "Annotation",
    "Concat",
    "ConfigValue",
    "Controller",
    "Endpoint",
    "Entity",
    "Field",
    "Literal",
    "MethodSignature",
    "Module",
    "Name",
    "Parameter",
    "ResolvedExpression",
    "RestCall",
    "Service",
    "Unknown",
    "find_unknowns",
    "render_expression",
]
