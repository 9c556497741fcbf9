#!/usr/bin/env python3
# CUI // SP-CTI
"""ResolvedExpression — how far static resolution reconstructed a value.

Closed variant: Literal, Parameter, ConfigValue, Concat, Unknown. Every
resolution terminates in exactly one of these. ``Unknown`` and an
unresolved ``ConfigValue`` (value None) are expected outcomes, not failures.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

EXPRESSION_KINDS = ("literal", "parameter", "config_value", "concat", "unknown")


class ResolvedExpression:
    """Base of the closed expression variant."""

    kind = ""

    def to_dict(self) -> dict:
        raise NotImplementedError


@dataclass(frozen=True)
class Literal(ResolvedExpression):
    value: str
    kind = "literal"

    def to_dict(self) -> dict:
        return {"kind": self.kind, "value": self.value}


@dataclass(frozen=True)
class Parameter(ResolvedExpression):
    """Formal parameter of the enclosing method (0-based ``index``)."""

    index: int
    declared_type: str = ""
    kind = "parameter"

    def to_dict(self) -> dict:
        return {"kind": self.kind, "index": self.index, "declared_type": self.declared_type}


@dataclass(frozen=True)
class ConfigValue(ResolvedExpression):
    """Configuration lookup; ``value`` is None when the key is unresolved."""

    key: str
    value: Optional[str] = None
    kind = "config_value"

    @property
    def resolved(self) -> bool:
        return self.value is not None

    def to_dict(self) -> dict:
        return {"kind": self.kind, "key": self.key, "value": self.value, "resolved": self.resolved}


@dataclass(frozen=True)
class Concat(ResolvedExpression):
    """Sequential concatenation; ``parts`` keep program order."""

    parts: Tuple[ResolvedExpression, ...] = ()
    kind = "concat"

    def to_dict(self) -> dict:
        return {"kind": self.kind, "parts": [p.to_dict() for p in self.parts]}


@dataclass(frozen=True)
class Unknown(ResolvedExpression):
    reason: str
    kind = "unknown"

    def to_dict(self) -> dict:
        return {"kind": self.kind, "reason": self.reason}


def render_expression(expr: ResolvedExpression) -> str:
    """Join an expression into a display string.

    Literal -> value, resolved ConfigValue -> value, unresolved ConfigValue
    -> ``${key}``, Parameter -> ``{arg<index>}``, Unknown -> ``{?}``.
    """
    if isinstance(expr, Literal):
        return expr.value
    if isinstance(expr, ConfigValue):
        return expr.value if expr.value is not None else "${" + expr.key + "}"
    if isinstance(expr, Parameter):
        return "{arg%d}" % expr.index
    if isinstance(expr, Concat):
        return "".join(render_expression(p) for p in expr.parts)
    return "{?}"


def find_unknowns(expr: ResolvedExpression) -> Tuple[Unknown, ...]:
    """Collect every Unknown inside *expr*, depth first, left to right."""
    found = []
    stack = [expr]
    while stack:
        current = stack.pop()
        if isinstance(current, Unknown):
            found.append(current)
        elif isinstance(current, Concat):
            stack.extend(reversed(current.parts))
    return tuple(found)
