from __future__ import annotations

import logging
from typing import List, Optional

from PyQt5.QtCore import QObject, QTimer, pyqtSignal as Signal

from .graph_model import Edge, EdgeKind, Node, Rect
from .graph_storage import GraphStorage
from .history import GraphState
from .sim_engine import LayoutSimulator

logger = logging.getLogger("graphlayout")

MAX_UNDO = 10
MAX_NODES = 100
VELOCITY_HISTORY = 5
VELOCITY_CHANGE_THRESHOLD = 0.01    # relative spread of recent total speeds
DEFAULT_POSITIONS = [(100.0, 100.0), (200.0, 200.0), (150.0, 300.0)]


class GraphStore(QObject):
    """Owns the graph and drives the layout simulator from a ``QTimer``.

    All mutations and ticks must happen on the thread that owns the store;
    the simulator iterates ``nodes`` in place while it steps.
    """

    # ─── signals any view can subscribe to ──────────────────────────────
    graphChanged = Signal()              # structure edited, undone or reloaded
    layoutChanged = Signal()             # positions moved by a tick
    simulationStopped = Signal(str)      # "settled", "budget", "plateau" or "stopped"
    nodeLimitReached = Signal(int)

    def __init__(self,
                 simulator: Optional[LayoutSimulator] = None,
                 storage: Optional[GraphStorage] = None,
                 *,
                 auto_simulate: bool = True,
                 detect_plateau: bool = True,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self.simulator = simulator or LayoutSimulator()
        self.storage = storage
        self.auto_simulate = auto_simulate
        self.detect_plateau = detect_plateau

        self.nodes: List[Node] = []
        self.edges: List[Edge] = []
        self.next_label = 1

        self._undo_stack: List[GraphState] = []
        self._redo_stack: List[GraphState] = []
        self._recent_speeds: List[float] = []
        self._paused = False

        self._timer = QTimer(self)
        self._timer.timeout.connect(self.tick)

        if storage is not None:
            self.load()

    # ─── persistence ────────────────────────────────────────────────────
    def load(self) -> None:
        """Read the graph from storage, seeding the default triangle if empty."""
        if self.storage is None:
            return
        try:
            nodes, edges = self.storage.load()
        except OSError as e:
            logger.error(f"Failed to load graph: {e}")
            nodes, edges = [], []

        ids = {n.id for n in nodes}
        self.nodes = nodes
        self.edges = [e for e in edges if e.source in ids and e.target in ids]
        if len(self.edges) != len(edges):
            logger.warning(f"Dropped {len(edges) - len(self.edges)} edges with missing endpoints")

        if not self.nodes:
            nodes = [Node(label, pos) for label, pos in enumerate(DEFAULT_POSITIONS, start=1)]
            self.nodes = nodes
            self.edges = [
                Edge(nodes[0].id, nodes[1].id),
                Edge(nodes[1].id, nodes[2].id),
                Edge(nodes[2].id, nodes[0].id),
            ]
            self._save()

        self.next_label = max((n.label for n in self.nodes), default=0) + 1
        self._undo_stack.clear()
        self._redo_stack.clear()
        self.simulator.reset_step_counter()
        self.graphChanged.emit()

    def _save(self) -> None:
        if self.storage is None:
            return
        try:
            self.storage.save(self.nodes, self.edges)
        except OSError as e:
            logger.error(f"Failed to save graph: {e}")

    # ─── lookups ────────────────────────────────────────────────────────
    def node(self, node_id: str) -> Optional[Node]:
        return next((n for n in self.nodes if n.id == node_id), None)

    def edge(self, edge_id: str) -> Optional[Edge]:
        return next((e for e in self.edges if e.id == edge_id), None)

    def bounding_box(self) -> Rect:
        return self.simulator.bounding_box(self.nodes)

    def query_nearby(self, position, radius: float) -> List[Node]:
        return self.simulator.query_nearby(position, radius, self.nodes)

    # ─── structural mutations ───────────────────────────────────────────
    def add_node(self, position) -> Optional[Node]:
        if len(self.nodes) >= MAX_NODES:
            logger.warning(f"Node limit of {MAX_NODES} reached; node not added")
            self.nodeLimitReached.emit(MAX_NODES)
            return None
        self.snapshot()
        node = Node(self.next_label, position)
        self.next_label += 1
        self.nodes.append(node)
        self._structure_changed()
        return node

    def add_edge(self, source: str, target: str, kind: EdgeKind = EdgeKind.ASSOCIATION) -> Optional[Edge]:
        """Return the new edge, or None for unknown endpoints, self-loops and duplicates."""
        if source == target or self.node(source) is None or self.node(target) is None:
            return None
        if any(e.source == source and e.target == target for e in self.edges):
            return None
        self.snapshot()
        edge = Edge(source, target, kind)
        self.edges.append(edge)
        self._structure_changed()
        return edge

    def delete_node(self, node_id: str) -> bool:
        if self.node(node_id) is None:
            return False
        self.snapshot()
        self.nodes = [n for n in self.nodes if n.id != node_id]
        self.edges = [e for e in self.edges if not e.touches(node_id)]
        self._structure_changed()
        return True

    def delete_edge(self, edge_id: str) -> bool:
        if self.edge(edge_id) is None:
            return False
        self.snapshot()
        self.edges = [e for e in self.edges if e.id != edge_id]
        self._structure_changed()
        return True

    def clear_graph(self) -> None:
        self.snapshot()
        self.nodes = []
        self.edges = []
        self._structure_changed()

    def _structure_changed(self, resume: bool = True) -> None:
        self.simulator.reset_step_counter()
        self._save()
        self.graphChanged.emit()
        if self.auto_simulate and resume:
            self.start_simulation()

    # ─── undo / redo ────────────────────────────────────────────────────
    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def snapshot(self) -> None:
        self._undo_stack.append(GraphState.capture(self.nodes, self.edges))
        if len(self._undo_stack) > MAX_UNDO:
            self._undo_stack.pop(0)
        self._redo_stack.clear()

    def undo(self, resume: bool = True) -> bool:
        if not self._undo_stack:
            return False
        self._redo_stack.append(GraphState.capture(self.nodes, self.edges))
        self.nodes, self.edges = self._undo_stack.pop().restore()
        self._structure_changed(resume)
        return True

    def redo(self, resume: bool = True) -> bool:
        if not self._redo_stack:
            return False
        self._undo_stack.append(GraphState.capture(self.nodes, self.edges))
        self.nodes, self.edges = self._redo_stack.pop().restore()
        self._structure_changed(resume)
        return True

    # ─── simulation clock ───────────────────────────────────────────────
    @property
    def is_running(self) -> bool:
        return self._timer.isActive()

    @property
    def is_paused(self) -> bool:
        return self._paused

    def start_simulation(self) -> None:
        if self._paused:
            return
        self.simulator.reset_step_counter()
        self._recent_speeds.clear()
        # bigger graphs tick less often
        interval_ms = 1000 // 30 if len(self.nodes) < 20 else 1000 // 15
        self._timer.start(interval_ms)
        logger.debug(f"Simulation started for {len(self.nodes)} nodes every {interval_ms} ms")

    def stop_simulation(self) -> None:
        if self._timer.isActive():
            self._finish("stopped")

    def pause_simulation(self) -> None:
        self._paused = True
        self.stop_simulation()

    def resume_simulation(self) -> None:
        self._paused = False
        self.start_simulation()

    def tick(self) -> bool:
        """Advance the layout by one clock tick; return whether the run continues."""
        count = len(self.nodes)
        sub_steps = 5 if count < 10 else (3 if count < 30 else 1)
        running = True
        for _ in range(sub_steps):
            if not self.simulator.step(self.nodes, self.edges):
                running = False
                break
        self.layoutChanged.emit()

        if not running:
            self._finish("budget" if self.simulator.budget_exhausted else "settled")
            return False

        self._recent_speeds.append(sum(n.speed for n in self.nodes))
        if len(self._recent_speeds) > VELOCITY_HISTORY:
            self._recent_speeds.pop(0)
        if self.detect_plateau and len(self._recent_speeds) == VELOCITY_HISTORY:
            high, low = max(self._recent_speeds), min(self._recent_speeds)
            if high == 0 or (high - low) / high < VELOCITY_CHANGE_THRESHOLD:
                self._finish("plateau")
                return False
        return True

    def _finish(self, reason: str) -> None:
        self._timer.stop()
        logger.debug(f"Simulation stopped ({reason}) after {self.simulator.steps_taken} steps")
        self.simulationStopped.emit(reason)
