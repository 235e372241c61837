"""Route graph: controllers declare routes, routes carry documentation tags."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


NodeKind = Literal["controller", "route", "tag"]
Relation = Literal["DECLARES", "TAGGED"]


@dataclass(frozen=True)
class GraphNode:
    id: str
    type: NodeKind
    label: str


@dataclass(frozen=True, order=True)
class GraphEdge:
    # field order is the sort order of exported edges
    type: Relation
    src: str
    dst: str


@dataclass
class RouteGraph:
    nodes: dict[str, GraphNode] = field(default_factory=dict)
    edges: set[GraphEdge] = field(default_factory=set)

    def node(self, node_id: str, kind: NodeKind, label: str) -> str:
        """Add a node unless one with this id exists; returns the id."""
        self.nodes.setdefault(node_id, GraphNode(id=node_id, type=kind, label=label))
        return node_id

    def link(self, src: str, dst: str, relation: Relation) -> None:
        self.edges.add(GraphEdge(type=relation, src=src, dst=dst))

    def count(self, kind: NodeKind) -> int:
        return sum(1 for n in self.nodes.values() if n.type == kind)

    def ordered_nodes(self) -> list[GraphNode]:
        return sorted(self.nodes.values(), key=lambda n: (n.type, n.id))

    def ordered_edges(self) -> list[GraphEdge]:
        return sorted(self.edges)
