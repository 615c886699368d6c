from __future__ import annotations

from dataclasses import dataclass

from .graph_model import Edge, Node


@dataclass
class GraphState:
    nodes: list[Node]
    edges: list[Edge]

    @classmethod
    def capture(cls, nodes: list[Node], edges: list[Edge]) -> "GraphState":
        # edges are frozen; nodes carry mutable arrays
        return cls([n.copy() for n in nodes], list(edges))

    def restore(self) -> tuple[list[Node], list[Edge]]:
        return [n.copy() for n in self.nodes], list(self.edges)
