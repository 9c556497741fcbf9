#!/usr/bin/env python3
# CUI // SP-CTI
"""Read-only view of the whole-program analysis engine.

The analysis engine (external) produces a declaration catalog and one
program graph per method. This module defines the records the extraction
pass consumes and the abstract ``MetadataCatalog`` every backend
implements. The snapshot backend lives in snapshot_catalog.py.

Program graph conventions:
  - ``ProgramGraph.nodes`` is in program order (instruction stream order).
  - A node's data-dependence edges point at its producers: ``receiver``,
    ``arguments`` and ``inputs`` hold producer node ids.
  - ``usages_of`` is the reverse relation, used only to enumerate the
    append calls consuming an accumulator.
"""

import abc
import collections
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Union

from archrecon.resilience.errors import MalformedInputError
from archrecon.schemas.architecture import Annotation


class NodeKind(str, Enum):
    """Node kinds the resolver understands. Anything else is kept as a raw string."""

    CONSTANT = "constant"
    PARAMETER = "parameter"
    FIELD_LOAD = "field_load"
    ALLOCATION = "allocation"
    INVOKE = "invoke"


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldDecl:
    """Declared field. ``type_name`` is qualified; ``type_arguments`` too."""

    owner: str
    name: str
    type_name: str
    type_arguments: Tuple[str, ...] = ()
    annotations: Tuple[Annotation, ...] = ()

    @property
    def qualified_name(self) -> str:
        return f"{self.owner}.{self.name}"

    @property
    def simple_type(self) -> str:
        return simple_type_name(self.type_name)


@dataclass(frozen=True)
class MethodDecl:
    owner: str
    name: str
    parameter_types: Tuple[str, ...] = ()
    return_type: str = "void"
    annotations: Tuple[Annotation, ...] = ()

    @property
    def qualified_name(self) -> str:
        return f"{self.owner}.{self.name}"


@dataclass(frozen=True)
class Declaration:
    """Class or interface declaration as reported by the analysis engine."""

    name: str
    is_interface: bool = False
    annotations: Tuple[Annotation, ...] = ()
    fields: Tuple[FieldDecl, ...] = ()
    methods: Tuple[MethodDecl, ...] = ()

    @property
    def simple_name(self) -> str:
        return simple_type_name(self.name)


def simple_type_name(type_name: str) -> str:
    """``java.util.List`` -> ``List``; ``Outer$Inner`` -> ``Inner``; strips generics."""
    base = type_name.split("<", 1)[0].strip()
    base = base.rsplit(".", 1)[-1]
    return base.rsplit("$", 1)[-1]


# ---------------------------------------------------------------------------
# Program graph
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GraphNode:
    """One instruction node of a method's program graph.

    Which attributes are meaningful depends on ``kind``:
      constant    -> value
      parameter   -> index, declared_type
      field_load  -> field (None when the reference could not be bound), field_ref
      allocation  -> declared_type
      invoke      -> target, receiver, arguments
      other kinds -> inputs
    """

    node_id: int
    kind: str
    value: Optional[str] = None
    index: Optional[int] = None
    declared_type: str = ""
    field: Optional[FieldDecl] = None
    field_ref: str = ""
    target: str = ""
    receiver: Optional[int] = None
    arguments: Tuple[int, ...] = ()
    inputs: Tuple[int, ...] = ()

    @property
    def target_method_name(self) -> str:
        """``java.lang.StringBuilder.append(String)`` -> ``append``."""
        return self.target.split("(", 1)[0].rsplit(".", 1)[-1]

    def producers(self) -> Tuple[int, ...]:
        head = (self.receiver,) if self.receiver is not None else ()
        return head + self.arguments + self.inputs


class ProgramGraph:
    """Per-method graph of instruction nodes and data-dependence edges."""

    def __init__(self, method_name: str, nodes: Sequence[GraphNode]):
        self.method_name = method_name
        self._nodes: Tuple[GraphNode, ...] = tuple(nodes)
        self._by_id: Dict[int, GraphNode] = {}
        self._order: Dict[int, int] = {}
        for position, node in enumerate(self._nodes):
            if node.node_id in self._by_id:
                raise MalformedInputError(
                    f"Duplicate node id {node.node_id} in graph of {method_name}",
                    detail=str(node.node_id),
                )
            self._by_id[node.node_id] = node
            self._order[node.node_id] = position

        usages: Dict[int, List[GraphNode]] = collections.defaultdict(list)
        for node in self._nodes:
            for producer in dict.fromkeys(node.producers()):
                usages[producer].append(node)
        self._usages = dict(usages)

    @property
    def nodes(self) -> Tuple[GraphNode, ...]:
        return self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._by_id

    def node(self, node_id: int) -> Optional[GraphNode]:
        return self._by_id.get(node_id)

    def program_order(self, node_id: int) -> int:
        return self._order[node_id]

    def invocations(self) -> List[GraphNode]:
        return [n for n in self._nodes if n.kind == NodeKind.INVOKE.value]

    def producers_of(self, node_id: int) -> List[GraphNode]:
        """Nodes *node_id* depends on; producers outside the graph are left out."""
        node = self._by_id.get(node_id)
        if node is None:
            return []
        return [self._by_id[p] for p in node.producers() if p in self._by_id]

    def usages_of(self, node_id: int) -> List[GraphNode]:
        """Consumers of *node_id*, in program order."""
        return list(self._usages.get(node_id, ()))


# ---------------------------------------------------------------------------
# Catalog interface
# ---------------------------------------------------------------------------

Element = Union[Declaration, FieldDecl, MethodDecl]


class MetadataCatalog(abc.ABC):
    """Read-only queries over declarations and program graphs.

    Implementations raise CatalogUnavailableError when a declaration or a
    graph cannot be supplied.
    """

    @abc.abstractmethod
    def declaration_names(self) -> List[str]:
        """Qualified names of every reachable declaration."""

    @abc.abstractmethod
    def lookup_declaration(self, name: str) -> Declaration:
        ...

    @abc.abstractmethod
    def declared_fields(self, declaration: Declaration) -> List[FieldDecl]:
        ...

    @abc.abstractmethod
    def declared_methods(self, declaration: Declaration) -> List[MethodDecl]:
        ...

    @abc.abstractmethod
    def annotations_of(self, element: Element) -> List[Annotation]:
        ...

    @abc.abstractmethod
    def program_graph_of(self, method: MethodDecl) -> ProgramGraph:
        ...
