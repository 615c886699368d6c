import json

import numpy as np
import pytest

from graphlayout.graph_model import Edge, EdgeKind, Node
from graphlayout.graph_storage import (EDGES_FILE, NODES_FILE, GraphStorage, edge_from_dict,
                                       node_from_dict, node_to_dict)
from graphlayout.history import GraphState


def test_missing_files_load_as_empty(tmp_path):
    assert GraphStorage(tmp_path / "nothing-here").load() == ([], [])


def test_save_writes_the_documented_fields(tmp_path):
    a = Node(1, (10.0, 20.0), (0.5, -0.5))
    b = Node(2, (30.0, 40.0))
    edge = Edge(a.id, b.id, EdgeKind.HIERARCHY)

    GraphStorage(tmp_path).save([a, b], [edge])

    stored_nodes = json.loads((tmp_path / NODES_FILE).read_text())
    stored_edges = json.loads((tmp_path / EDGES_FILE).read_text())
    assert stored_nodes[0] == {
        "id": a.id, "label": 1,
        "positionX": 10.0, "positionY": 20.0,
        "velocityX": 0.5, "velocityY": -0.5,
    }
    assert stored_edges == [{"id": edge.id, "from": a.id, "to": b.id, "type": "hierarchy"}]


def test_saved_graph_loads_back(tmp_path):
    a = Node(1, (10.0, 20.0))
    b = Node(7, (30.0, 40.0), (1.0, 2.0))
    storage = GraphStorage(tmp_path)
    storage.save([a, b], [Edge(a.id, b.id)])

    nodes, edges = storage.load()

    assert [(n.id, n.label) for n in nodes] == [(a.id, 1), (b.id, 7)]
    assert np.array_equal(nodes[1].velocity, [1.0, 2.0])
    assert edges[0].source == a.id and edges[0].kind is EdgeKind.ASSOCIATION


def test_edges_without_type_default_to_association():
    edge = edge_from_dict({"id": "e1", "from": "a", "to": "b"})
    assert edge.kind is EdgeKind.ASSOCIATION


def test_malformed_file_is_ignored_with_warning(tmp_path, caplog):
    storage = GraphStorage(tmp_path)
    storage.nodes_path.write_text("{not json")
    storage.edges_path.write_text(json.dumps([{"id": "e1"}]))

    assert storage.load() == ([], [])
    assert caplog.text.count("Ignoring unreadable graph file") == 2


@pytest.mark.parametrize("label", [1.7, "3", 0, True])
def test_non_integer_labels_are_rejected(tmp_path, caplog, label):
    storage = GraphStorage(tmp_path)
    record = {"id": "n1", "label": label, "positionX": 1.0, "positionY": 2.0}
    storage.nodes_path.write_text(json.dumps([record]))

    with pytest.raises(ValueError):
        node_from_dict(record)
    assert storage.load() == ([], [])
    assert "Ignoring unreadable graph file" in caplog.text


def test_snapshot_is_independent_of_live_nodes():
    node = Node(1, (5.0, 5.0))
    state = GraphState.capture([node], [])
    node.position[:] = (9.0, 9.0)

    restored, _ = state.restore()
    assert np.array_equal(restored[0].position, [5.0, 5.0])
    assert restored[0].id == node.id
    assert node_to_dict(restored[0])["positionX"] == 5.0
