import numpy as np
import pytest

from graphlayout.graph_model import Rect
from graphlayout.quadtree import Quadtree, opening_angle, pair_repulsion


def test_opening_angle_grows_with_graph_size():
    assert opening_angle(10) == 0.8
    assert opening_angle(75) == 1.2
    assert opening_angle(150) == 1.5


def test_mass_and_center_are_aggregated():
    tree = Quadtree(Rect(0, 0, 300, 300))
    for i, p in enumerate([(10.0, 10.0), (290.0, 10.0), (10.0, 290.0), (290.0, 290.0)]):
        tree.insert(i, p)

    assert tree.total_mass == 4
    assert tree.center_of_mass == pytest.approx([150.0, 150.0])
    assert tree.children is not None
    assert [child.total_mass for child in tree.children] == [1, 1, 1, 1]


def test_coincident_points_share_a_leaf():
    tree = Quadtree(Rect(0, 0, 300, 300))
    for i in range(3):
        tree.insert(i, (42.0, 42.0))

    assert tree.children is None
    assert len(tree.points) == 3

    force = tree.compute_force(0, np.array([42.0, 42.0]), 0.8, 15000.0, 1e-3, 0.01,
                               np.random.default_rng(0))
    assert np.all(np.isfinite(force))


def test_leaf_force_is_exact():
    tree = Quadtree(Rect(0, 0, 300, 300))
    tree.insert(0, (100.0, 150.0))
    tree.insert(1, (200.0, 150.0))

    force = tree.compute_force(0, np.array([100.0, 150.0]), 0.8, 15000.0, 1e-3, 0.01,
                               np.random.default_rng(0))
    assert force == pytest.approx([-1.5, 0.0])


def test_pair_repulsion_jitters_when_too_close():
    rng = np.random.default_rng(5)
    push = pair_repulsion(np.array([1.0, 1.0]), np.array([1.0, 1.0]), 1.0, 15000.0, 1e-3, 0.01, rng)
    assert np.hypot(*push) == pytest.approx(150.0)
