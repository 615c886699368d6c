from __future__ import annotations

import logging
from typing import Dict, List, Sequence

import numpy as np

from .graph_model import Edge, Node, Rect
from .physics_constants import DEFAULT_CONSTANTS, SIMULATION_BOUNDS, PhysicsConstants
from .quadtree import Quadtree, opening_angle

logger = logging.getLogger("graphlayout")


class LayoutSimulator:
    """Spring embedder over a caller-owned node list.

    ``step`` borrows the node list mutably for the duration of the call and
    rewrites every node's position and velocity in place. It must run on the
    same thread that mutates the graph.
    """

    def __init__(self, bounds=SIMULATION_BOUNDS, constants: PhysicsConstants = DEFAULT_CONSTANTS,
                 seed: int | None = None):
        width, height = (float(v) for v in bounds)
        if width <= 0 or height <= 0:
            raise ValueError(f"Simulation bounds must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.constants = constants
        self.rng = np.random.default_rng(seed)
        self._steps = 0

    @property
    def center(self) -> np.ndarray:
        return np.array([self.width / 2, self.height / 2])

    @property
    def steps_taken(self) -> int:
        return self._steps

    @property
    def budget_exhausted(self) -> bool:
        return self._steps >= self.constants.max_steps

    def reset_step_counter(self) -> None:
        self._steps = 0

    # ------------------------------------------------------------------
    def step(self, nodes: List[Node], edges: Sequence[Edge]) -> bool:
        """Advance the system by one time step.

        Returns False once the step budget is used up (the call that reaches
        ``max_steps`` already returns False) or when the summed node speed
        after integration is below the stability threshold.
        """
        if not nodes:
            return False
        c = self.constants
        if self._steps >= c.max_steps:
            return False
        self._steps += 1

        positions = np.array([n.position for n in nodes], dtype=np.float64)
        velocities = np.array([n.velocity for n in nodes], dtype=np.float64)
        forces = self._accumulate(positions, nodes, edges)

        # semi-implicit Euler, then hard containment
        velocities = (velocities + forces * c.time_step) * c.damping
        positions += velocities * c.time_step
        np.clip(positions[:, 0], 0.0, self.width, out=positions[:, 0])
        np.clip(positions[:, 1], 0.0, self.height, out=positions[:, 1])

        for node, p, v in zip(nodes, positions, velocities):
            node.position[:] = p
            node.velocity[:] = v

        if self._steps >= c.max_steps:
            logger.debug(f"Step budget of {c.max_steps} exhausted for {len(nodes)} nodes")
            return False

        total_speed = float(np.hypot(velocities[:, 0], velocities[:, 1]).sum())
        return total_speed >= c.stability_threshold(len(nodes))

    def compute_forces(self, nodes: Sequence[Node], edges: Sequence[Edge]) -> np.ndarray:
        """Net force per node, index-aligned with ``nodes``."""
        if not nodes:
            return np.zeros((0, 2))
        positions = np.array([n.position for n in nodes], dtype=np.float64)
        return self._accumulate(positions, nodes, edges)

    def _accumulate(self, positions: np.ndarray, nodes: Sequence[Node], edges: Sequence[Edge]) -> np.ndarray:
        index = {node.id: i for i, node in enumerate(nodes)}
        if self.constants.use_barnes_hut:
            forces = self.barnes_hut_forces(positions)
        else:
            forces = self.repulsion_forces(positions)
        forces += self.spring_forces(positions, index, edges)
        forces += self.centering_forces(positions)
        return forces

    # --- force terms ---------------------------------------------------
    def repulsion_forces(self, positions: np.ndarray) -> np.ndarray:
        c = self.constants
        delta = positions[None, :, :] - positions[:, None, :]   # [i, j] = p_j - p_i
        dist = np.hypot(delta[..., 0], delta[..., 1])
        floored = np.maximum(dist, c.distance_epsilon)
        pair = delta / floored[..., None] * (c.repulsion / floored ** 2)[..., None]

        close = np.triu(dist < c.distance_epsilon, 1)
        if close.any():
            rows, cols = np.nonzero(close)
            angles = self.rng.uniform(0.0, 2 * np.pi, size=len(rows))
            push = np.column_stack([np.cos(angles), np.sin(angles)]) * c.repulsion * c.coincident_jitter
            pair[rows, cols] = push
            pair[cols, rows] = -push

        return -pair.sum(axis=1)

    def barnes_hut_forces(self, positions: np.ndarray) -> np.ndarray:
        c = self.constants
        lo = np.minimum(positions.min(axis=0), 0.0)
        hi = np.maximum(positions.max(axis=0), [self.width, self.height])
        side = float(max(hi - lo))
        tree = Quadtree(Rect(lo[0], lo[1], side, side), c.barnes_hut_max_depth, c.distance_epsilon)
        for i, p in enumerate(positions):
            tree.insert(i, p)

        theta = opening_angle(len(positions))
        return np.array([
            tree.compute_force(i, p, theta, c.repulsion, c.distance_epsilon, c.coincident_jitter, self.rng)
            for i, p in enumerate(positions)
        ])

    def spring_forces(self, positions: np.ndarray, index: Dict[str, int], edges: Sequence[Edge]) -> np.ndarray:
        c = self.constants
        forces = np.zeros_like(positions)
        pairs = [(index[e.source], index[e.target]) for e in edges
                 if e.source in index and e.target in index]
        if not pairs:
            return forces

        src, dst = np.array(pairs, dtype=np.int64).T
        delta = positions[dst] - positions[src]
        dist = np.maximum(np.hypot(delta[:, 0], delta[:, 1]), c.distance_epsilon)
        spring = delta / dist[:, None] * (c.stiffness * (dist - c.ideal_length))[:, None]

        w_src, w_dst = (0.5, 1.5) if c.asymmetric_attraction else (1.0, 1.0)
        np.add.at(forces, src, spring * w_src)
        np.add.at(forces, dst, -spring * w_dst)
        return forces

    def centering_forces(self, positions: np.ndarray) -> np.ndarray:
        return (self.center - positions) * self.constants.centering_force

    # --- queries -------------------------------------------------------
    @staticmethod
    def bounding_box(nodes: Sequence[Node]) -> Rect:
        if not nodes:
            return Rect.zero()
        positions = np.array([n.position for n in nodes])
        x0, y0 = positions.min(axis=0)
        x1, y1 = positions.max(axis=0)
        return Rect(float(x0), float(y0), float(x1 - x0), float(y1 - y0))

    @staticmethod
    def query_nearby(position, radius: float, nodes: Sequence[Node]) -> List[Node]:
        """Nodes within ``radius`` of ``position``, nearest first."""
        point = np.asarray(position, dtype=np.float64)
        hits = []
        for node in nodes:
            dist = float(np.hypot(*(node.position - point)))
            if dist <= radius:
                hits.append((dist, node))
        hits.sort(key=lambda item: item[0])
        return [node for _, node in hits]
