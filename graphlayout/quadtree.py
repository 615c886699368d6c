from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np

from .graph_model import Rect


def opening_angle(node_count: int) -> float:
    """Barnes-Hut theta; larger graphs trade accuracy for speed."""
    if node_count > 100:
        return 1.5
    if node_count > 50:
        return 1.2
    return 0.8


def pair_repulsion(source, target, mass, repulsion, epsilon, jitter, rng) -> np.ndarray:
    """Force pushing ``target`` away from a mass at ``source``."""
    delta = np.asarray(target, dtype=np.float64) - source
    dist_sq = float(delta @ delta)
    if dist_sq < epsilon * epsilon:
        angle = rng.uniform(0.0, 2 * np.pi)
        return np.array([np.cos(angle), np.sin(angle)]) * repulsion * jitter
    dist = np.sqrt(dist_sq)
    return delta / dist * (repulsion * mass / dist_sq)


class Quadtree:
    """Region quadtree carrying the centre of mass of every cell."""

    def __init__(self, bounds: Rect, max_depth: int = 64, min_size: float = 1e-3):
        self.bounds = bounds
        self.max_depth = max_depth
        self.min_size = min_size
        self.center_of_mass = np.zeros(2)
        self.total_mass = 0.0
        self.children: Optional[List["Quadtree"]] = None
        self.points: List[Tuple[int, np.ndarray]] = []

    # ------------------------------------------------------------------
    def insert(self, index: int, position, depth: int = 0) -> None:
        position = np.asarray(position, dtype=np.float64)

        if self.children is not None:
            self.children[self._quadrant(position)].insert(index, position, depth + 1)
            self._add_mass(position)
            return

        same_spot = all(np.array_equal(p, position) for _, p in self.points)
        if not self.points or same_spot or depth >= self.max_depth or not self._subdivide():
            self.points.append((index, position))
            self._add_mass(position)
            return

        existing, self.points = self.points, []
        for i, p in existing:
            self.children[self._quadrant(p)].insert(i, p, depth + 1)
        self.children[self._quadrant(position)].insert(index, position, depth + 1)
        self._add_mass(position)

    def compute_force(self, index: int, position, theta: float, repulsion: float,
                      epsilon: float, jitter: float, rng) -> np.ndarray:
        """Approximate repulsion on point ``index`` from everything in this cell."""
        force = np.zeros(2)
        if self.total_mass == 0:
            return force

        if self.children is None:
            for i, p in self.points:
                if i != index:
                    force += pair_repulsion(p, position, 1.0, repulsion, epsilon, jitter, rng)
            return force

        delta = self.center_of_mass - position
        dist = max(float(np.hypot(*delta)), epsilon)
        if self.bounds.width / dist < theta and not self.bounds.contains(position):
            return pair_repulsion(self.center_of_mass, position, self.total_mass,
                                  repulsion, epsilon, jitter, rng)

        for child in self.children:
            force += child.compute_force(index, position, theta, repulsion, epsilon, jitter, rng)
        return force

    # ------------------------------------------------------------------
    def _add_mass(self, position: np.ndarray) -> None:
        self.center_of_mass = (self.center_of_mass * self.total_mass + position) / (self.total_mass + 1)
        self.total_mass += 1

    def _subdivide(self) -> bool:
        half_w = self.bounds.width / 2
        half_h = self.bounds.height / 2
        if half_w < self.min_size or half_h < self.min_size:
            return False
        x, y = self.bounds.x, self.bounds.y
        self.children = [
            Quadtree(Rect(x, y, half_w, half_h), self.max_depth, self.min_size),
            Quadtree(Rect(x + half_w, y, half_w, half_h), self.max_depth, self.min_size),
            Quadtree(Rect(x, y + half_h, half_w, half_h), self.max_depth, self.min_size),
            Quadtree(Rect(x + half_w, y + half_h, half_w, half_h), self.max_depth, self.min_size),
        ]
        return True

    def _quadrant(self, point) -> int:
        mid_x, mid_y = self.bounds.center
        if point[0] < mid_x:
            return 0 if point[1] < mid_y else 2
        return 1 if point[1] < mid_y else 3
