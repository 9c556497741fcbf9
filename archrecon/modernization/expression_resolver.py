#!/usr/bin/env python3
# CUI // SP-CTI
"""ExpressionResolver — backward data-flow reconstruction of a call argument.

Given an argument-producing node and its program graph, walks strictly
backward along data-dependence edges and returns exactly one
ResolvedExpression. Case analysis on the node kind:

  constant            -> Literal(value)
  parameter           -> Parameter(index, declared_type)
  field_load, tagged  -> ConfigValue(key, value-or-None) via ConfigDocument
  field_load, untagged-> Unknown("untagged field load")
  accumulator         -> Concat(appended parts in program order); no appends -> Literal("")
  anything else       -> Unknown("unsupported node kind: <kind>")

An invocation of an append or finishing method (``append``/``toString``)
on an accumulator chain is followed back through its receivers to the
allocation, so ``new StringBuilder().append(a).append(b).toString()``
resolves the same way as the statement-per-append form.

Termination: every hop increases the depth; past ``max_depth`` (default 64)
the sub-expression becomes Unknown("traversal depth exceeded") and the rest
of the expression is still resolved. An accumulator re-entered while its own
parts are being resolved also yields that Unknown, and each accumulator is
resolved at most once per walk, so the work stays linear in the graph size.
``max_depth`` is capped at MAX_DEPTH_LIMIT.
"""

import logging
import re
from typing import List, Optional, Tuple

from archrecon.catalog.interface import GraphNode, NodeKind, ProgramGraph
from archrecon.modernization.config_document import ConfigDocument
from archrecon.modernization.recovery_settings import MAX_DEPTH_LIMIT, RecoverySettings
from archrecon.schemas.expressions import (
    Concat,
    ConfigValue,
    Literal,
    Parameter,
    ResolvedExpression,
    Unknown,
)

logger = logging.getLogger("archrecon.modernization.expression_resolver")

DEPTH_EXCEEDED = "traversal depth exceeded"
CROSS_METHOD_ORIGIN = "cross-method origin"
MALFORMED_CONFIG_KEY = "malformed config key"
UNTAGGED_FIELD_LOAD = "untagged field load"
MISSING_ADDRESS = "missing address argument"
RUNTIME_EXPRESSION = "runtime expression"

_PLACEHOLDER_RE = re.compile(r"\$\{([^{}]*)\}")


class _Walk:
    """Per-resolution bookkeeping: deepest hop reached, open and finished accumulators."""

    __slots__ = ("max_hops", "open_accumulators", "accumulators")

    def __init__(self):
        self.max_hops = 0
        self.open_accumulators = set()
        self.accumulators = {}


def _owner_of(target: str) -> str:
    return target.split("(", 1)[0].rsplit(".", 1)[0]


class ExpressionResolver:

    def __init__(self, settings: RecoverySettings, config_document: Optional[ConfigDocument] = None):
        self.max_depth = min(settings.max_depth, MAX_DEPTH_LIMIT)
        self.config_document = config_document or ConfigDocument.empty()
        self.config_key_marker = settings.config_key_marker
        self.accumulator_types = frozenset(settings.accumulator_types)
        self.append_names = settings.append_method_names
        self.finish_names = settings.finish_method_names

    # ---- public API ----

    def resolve(self, node_id: Optional[int], graph: ProgramGraph) -> ResolvedExpression:
        return self.resolve_with_hops(node_id, graph)[0]

    def resolve_with_hops(self, node_id: Optional[int], graph: ProgramGraph) -> Tuple[ResolvedExpression, int]:
        """Resolve and also report the deepest hop count the walk reached."""
        if node_id is None:
            return Unknown(MISSING_ADDRESS), 0
        walk = _Walk()
        expr = self._resolve(node_id, graph, 0, walk)
        return expr, walk.max_hops

    def resolve_placeholder(self, payload: Optional[str]) -> ResolvedExpression:
        """Resolve a configuration-key tag payload such as ``${svc.host}``.

        ``${key:default}`` falls back to ``default`` when the key is
        unresolved. A payload without the ``${`` opener is injected verbatim
        and becomes a Literal; placeholders embedded in text
        (``http://${svc.host}/x``) become a Concat. ``#{...}`` expressions
        are evaluated at runtime and stay Unknown.
        """
        if payload is None:
            return Unknown(MALFORMED_CONFIG_KEY)
        if "#{" in payload:
            logger.debug("Config payload %r is a runtime expression", payload)
            return Unknown(RUNTIME_EXPRESSION)
        if "${" not in payload:
            return Literal(payload)

        text = payload.strip()
        parts: List[ResolvedExpression] = []
        position = 0
        for match in _PLACEHOLDER_RE.finditer(text):
            parts.append(Literal(text[position:match.start()]))
            parts.append(self._lookup_placeholder(match.group(1), payload))
            position = match.end()
        parts.append(Literal(text[position:]))
        if any(isinstance(p, Literal) and "${" in p.value for p in parts):
            logger.warning("Config placeholder %r is unbalanced or nested", payload)
            return Unknown(MALFORMED_CONFIG_KEY)
        parts = [p for p in parts if not (isinstance(p, Literal) and p.value == "")]
        if len(parts) == 1:
            return parts[0]
        return Concat(tuple(parts))

    def _lookup_placeholder(self, body: str, payload: str) -> ResolvedExpression:
        key, sep, default = body.partition(":")
        key = key.strip()
        if not key or any(not seg for seg in key.split(".")):
            logger.warning("Config placeholder %r has an empty or invalid path segment", payload)
            return Unknown(MALFORMED_CONFIG_KEY)
        value = self.config_document.resolve(key)
        if value is None and sep:
            value = default
        return ConfigValue(key=key, value=value)

    # ---- walk ----

    def _resolve(self, node_id: int, graph: ProgramGraph, depth: int, walk: _Walk) -> ResolvedExpression:
        if depth > self.max_depth:
            return Unknown(DEPTH_EXCEEDED)
        walk.max_hops = max(walk.max_hops, depth)
        node = graph.node(node_id)
        if node is None:
            return Unknown(CROSS_METHOD_ORIGIN)

        kind = node.kind
        if kind == NodeKind.CONSTANT.value:
            if node.value is None:
                return Unknown("constant without value")
            return Literal(node.value)
        if kind == NodeKind.PARAMETER.value:
            if node.index is None:
                return Unknown("parameter without index")
            return Parameter(index=node.index, declared_type=node.declared_type)
        if kind == NodeKind.FIELD_LOAD.value:
            return self._resolve_field_load(node)
        if kind == NodeKind.ALLOCATION.value and node.declared_type in self.accumulator_types:
            return self._resolve_accumulator(node, graph, depth, walk)
        if kind == NodeKind.INVOKE.value and self._is_chain_call(node):
            return self._resolve_chain_call(node, graph, depth, walk)

        logger.debug("Unsupported node kind %s (node %s in %s)", kind, node_id, graph.method_name)
        return Unknown(f"unsupported node kind: {kind}")

    def _resolve_field_load(self, node: GraphNode) -> ResolvedExpression:
        if node.field is None:
            logger.debug("Field reference %s not bound to a declaration", node.field_ref)
            return Unknown("unresolved field reference")
        marker_simple = self.config_key_marker.rsplit(".", 1)[-1]
        for a in node.field.annotations:
            if a.name == self.config_key_marker or a.name == marker_simple:
                return self.resolve_placeholder(a.payload)
        return Unknown(UNTAGGED_FIELD_LOAD)

    # ---- accumulator pattern ----

    def _is_append(self, node: GraphNode) -> bool:
        return (node.kind == NodeKind.INVOKE.value
                and node.target_method_name in self.append_names
                and _owner_of(node.target) in self.accumulator_types)

    def _is_chain_call(self, node: GraphNode) -> bool:
        if node.receiver is None or _owner_of(node.target) not in self.accumulator_types:
            return False
        return node.target_method_name in self.append_names or node.target_method_name in self.finish_names

    def _resolve_chain_call(self, node: GraphNode, graph: ProgramGraph, depth: int,
                            walk: _Walk) -> ResolvedExpression:
        """Follow append/finish results back through their receivers."""
        current = node
        while current.receiver is not None and self._is_chain_call(current):
            depth += 1
            if depth > self.max_depth:
                return Unknown(DEPTH_EXCEEDED)
            walk.max_hops = max(walk.max_hops, depth)
            receiver = graph.node(current.receiver)
            if receiver is None:
                return Unknown(CROSS_METHOD_ORIGIN)
            current = receiver
        if current.kind == NodeKind.ALLOCATION.value and current.declared_type in self.accumulator_types:
            return self._resolve_accumulator(current, graph, depth, walk)
        return Unknown(f"unsupported node kind: {current.kind}")

    def _collect_appends(self, root: GraphNode, graph: ProgramGraph) -> List[GraphNode]:
        """Append calls on *root* and on its fluent chain, in program order."""
        found = {}
        frontier = [root.node_id]
        seen = {root.node_id}
        while frontier:
            current = frontier.pop()
            for user in graph.usages_of(current):
                if user.receiver != current or not self._is_append(user):
                    continue
                found[user.node_id] = user
                if user.node_id not in seen:
                    seen.add(user.node_id)
                    frontier.append(user.node_id)
        return sorted(found.values(), key=lambda n: graph.program_order(n.node_id))

    def _resolve_accumulator(self, root: GraphNode, graph: ProgramGraph, depth: int,
                             walk: _Walk) -> ResolvedExpression:
        cached = walk.accumulators.get(root.node_id)
        if cached is not None:
            return cached
        if root.node_id in walk.open_accumulators:
            logger.debug("Accumulator %s re-entered in %s", root.node_id, graph.method_name)
            return Unknown(DEPTH_EXCEEDED)
        appends = self._collect_appends(root, graph)
        if not appends:
            return Literal("")
        walk.open_accumulators.add(root.node_id)
        try:
            parts = []
            for call in appends:
                if not call.arguments:
                    parts.append(Unknown("append without argument"))
                    continue
                parts.append(self._resolve(call.arguments[0], graph, depth + 1, walk))
        finally:
            walk.open_accumulators.discard(root.node_id)
        expr = Concat(tuple(parts))
        walk.accumulators[root.node_id] = expr
        return expr
