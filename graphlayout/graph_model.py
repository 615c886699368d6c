from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple

import numpy as np


def new_id() -> str:
    return uuid.uuid4().hex


def as_vector(value) -> np.ndarray:
    """Return ``value`` as a fresh float64 array of shape (2,)."""
    return np.array(value, dtype=np.float64).reshape(2)


class EdgeKind(str, Enum):
    ASSOCIATION = "association"
    HIERARCHY = "hierarchy"


@dataclass(eq=False)
class Node:
    """A point mass in model space.

    ``id`` and ``label`` never change after creation; the simulator only
    rewrites ``position`` and ``velocity``.
    """

    label: int
    position: np.ndarray
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(2))
    id: str = field(default_factory=new_id)

    def __post_init__(self):
        self.position = as_vector(self.position)
        self.velocity = as_vector(self.velocity)

    def copy(self) -> "Node":
        return Node(self.label, self.position.copy(), self.velocity.copy(), self.id)

    @property
    def speed(self) -> float:
        return float(np.hypot(*self.velocity))

    def __repr__(self) -> str:
        x, y = self.position
        return f"Node(label={self.label}, position=({x:.2f}, {y:.2f}), id={self.id[:8]})"


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    kind: EdgeKind = EdgeKind.ASSOCIATION
    id: str = field(default_factory=new_id)

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id


class Rect(NamedTuple):
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def zero(cls) -> "Rect":
        return cls(0.0, 0.0, 0.0, 0.0)

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def contains(self, point) -> bool:
        px, py = point
        return self.min_x <= px <= self.max_x and self.min_y <= py <= self.max_y
