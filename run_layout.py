# run_layout.py -------------------------------------------------------------
import argparse
import logging
import sys

import numpy as np
from PyQt5.QtCore import QCoreApplication

from graphlayout.graph_storage import GraphStorage
from graphlayout.graph_store import GraphStore
from graphlayout.physics_constants import PRESETS, SIMULATION_BOUNDS, preset
from graphlayout.sim_engine import LayoutSimulator

logger = logging.getLogger("graphlayout")


def get_args_parser():
    parser = argparse.ArgumentParser(description="Run the force-directed layout until it settles")
    parser.add_argument('--storage', type=str, default=None,
                        help="directory holding graphNodes.json / graphEdges.json")
    parser.add_argument('--nodes', type=int, default=6, help="random ring size when no storage is given")
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument('--preset', choices=sorted(PRESETS), default="default")
    parser.add_argument('--barnes-hut', action='store_true')
    parser.add_argument('--no-plateau', action='store_true', help="only stop on settling or step budget")
    parser.add_argument('--verbose', action='store_true')
    return parser


def build_ring(store: GraphStore, count: int, rng: np.random.Generator) -> None:
    width, height = SIMULATION_BOUNDS
    nodes = [store.add_node(rng.uniform((0, 0), (width, height))) for _ in range(count)]
    nodes = [n for n in nodes if n is not None]
    if len(nodes) < 2:
        return
    for a, b in zip(nodes, nodes[1:] + nodes[:1]):
        store.add_edge(a.id, b.id)


def report(store: GraphStore, reason: str) -> None:
    print(f"Stopped ({reason}) after {store.simulator.steps_taken} steps")
    for node in sorted(store.nodes, key=lambda n: n.label):
        x, y = node.position
        print(f"  node {node.label:3d}  ({x:7.2f}, {y:7.2f})  speed {node.speed:.4f}")
    box = store.bounding_box()
    print(f"Bounding box: x={box.x:.2f} y={box.y:.2f} w={box.width:.2f} h={box.height:.2f}")


def main(argv=None) -> int:
    args = get_args_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = QCoreApplication(sys.argv[:1])
    constants = preset(args.preset)
    if args.barnes_hut:
        constants = constants.with_changes(use_barnes_hut=True)
    simulator = LayoutSimulator(SIMULATION_BOUNDS, constants, seed=args.seed)
    storage = GraphStorage(args.storage) if args.storage else None

    store = GraphStore(simulator, storage, auto_simulate=False, detect_plateau=not args.no_plateau)
    if storage is None:
        build_ring(store, args.nodes, np.random.default_rng(args.seed))

    def on_stopped(reason):
        report(store, reason)
        app.quit()

    store.simulationStopped.connect(on_stopped)
    store.start_simulation()
    logger.info(f"Laying out {len(store.nodes)} nodes and {len(store.edges)} edges ({args.preset})")
    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())
