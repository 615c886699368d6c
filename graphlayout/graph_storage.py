from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Tuple

from .graph_model import Edge, EdgeKind, Node

logger = logging.getLogger("graphlayout")

NODES_FILE = "graphNodes.json"
EDGES_FILE = "graphEdges.json"


def node_to_dict(node: Node) -> dict:
    return {
        "id": node.id,
        "label": node.label,
        "positionX": float(node.position[0]),
        "positionY": float(node.position[1]),
        "velocityX": float(node.velocity[0]),
        "velocityY": float(node.velocity[1]),
    }


def node_from_dict(data: dict) -> Node:
    label = data["label"]
    if isinstance(label, bool) or not isinstance(label, int) or label < 1:
        raise ValueError(f"Node label must be a positive integer, got {label!r}")
    return Node(
        label=label,
        position=(data["positionX"], data["positionY"]),
        velocity=(data.get("velocityX", 0.0), data.get("velocityY", 0.0)),
        id=str(data["id"]),
    )


def edge_to_dict(edge: Edge) -> dict:
    return {"id": edge.id, "from": edge.source, "to": edge.target, "type": edge.kind.value}


def edge_from_dict(data: dict) -> Edge:
    return Edge(
        source=str(data["from"]),
        target=str(data["to"]),
        kind=EdgeKind(data.get("type", EdgeKind.ASSOCIATION.value)),
        id=str(data["id"]),
    )


class GraphStorage:
    """Keeps nodes and edges as two JSON documents in ``directory``."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    @property
    def nodes_path(self) -> Path:
        return self.directory / NODES_FILE

    @property
    def edges_path(self) -> Path:
        return self.directory / EDGES_FILE

    def save(self, nodes: List[Node], edges: List[Edge]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self.nodes_path.write_text(json.dumps([node_to_dict(n) for n in nodes]), encoding="utf-8")
        self.edges_path.write_text(json.dumps([edge_to_dict(e) for e in edges]), encoding="utf-8")

    def load(self) -> Tuple[List[Node], List[Edge]]:
        nodes = self._read(self.nodes_path, node_from_dict)
        edges = self._read(self.edges_path, edge_from_dict)
        return nodes, edges

    @staticmethod
    def _read(path: Path, decode) -> list:
        if not path.is_file():
            return []
        try:
            return [decode(item) for item in json.loads(path.read_text(encoding="utf-8"))]
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable graph file {path}: {e}")
            return []
