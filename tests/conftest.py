import pytest
from PyQt5.QtCore import QCoreApplication

from graphlayout.graph_model import Edge, Node


@pytest.fixture(scope="session")
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def triangle():
    nodes = [
        Node(1, (100.0, 100.0)),
        Node(2, (200.0, 200.0)),
        Node(3, (150.0, 300.0)),
    ]
    edges = [
        Edge(nodes[0].id, nodes[1].id),
        Edge(nodes[1].id, nodes[2].id),
        Edge(nodes[2].id, nodes[0].id),
    ]
    return nodes, edges
