# tests/core_test/test_layout_service.py
"""
Tests for the layered layout (flow_core/services/layout_service.py).

Covers:
    • Ranking phases (cycle breaking, longest path, crossing count)
    • Footprint estimation
    • Two-node reading order in both directions
    • No-overlap, fixed point, determinism, cycle safety
"""
import itertools
import math

import networkx as nx
import pytest

from flow_api.models.edge import EdgeRecord
from flow_api.models.node import NodeRecord
from flow_api.types import LayoutDirection, Position, Size
from flow_core.canvas.config import LayoutConfig
from flow_core.services.layout_service import (
    LayoutEngine,
    assign_ranks,
    count_crossings,
    greedy_fas_ordering,
    minimise_crossings,
)


@pytest.fixture
def engine() -> LayoutEngine:
    return LayoutEngine()


def _pair():
    return ([NodeRecord("a", "task", data={'label': "A"}), NodeRecord("b", "task", data={'label': "B"})],
            [EdgeRecord("e1", "a", "b")])


def _assert_no_overlap(engine, nodes, positions, lookup=None):
    boxes = []
    for node in nodes:
        pos = positions[node.node_id]
        size = engine.estimate_footprint(node, lookup)
        boxes.append((node.node_id, pos.x, pos.y, pos.x + size.width, pos.y + size.height))
    for (ida, ax0, ay0, ax1, ay1), (idb, bx0, by0, bx1, by1) in itertools.combinations(boxes, 2):
        separated = ax1 <= bx0 + 1e-6 or bx1 <= ax0 + 1e-6 or ay1 <= by0 + 1e-6 or by1 <= ay0 + 1e-6
        assert separated, f"{ida} overlaps {idb}"


# ── Ranking phases ───────────────────────────────────────────────

class TestRanking:

    def test_chain_ranks(self):
        g = nx.DiGraph([("a", "b"), ("b", "c")])
        assert assign_ranks(g) == {"a": 0, "b": 1, "c": 2}

    def test_longest_path_wins(self):
        g = nx.DiGraph([("a", "b"), ("b", "c"), ("a", "c")])
        assert assign_ranks(g)["c"] == 2

    def test_cycle_is_broken(self):
        g = nx.DiGraph([("a", "b"), ("b", "c"), ("c", "a")])
        assert greedy_fas_ordering(g) == ["a", "b", "c"]
        assert assign_ranks(g) == {"a": 0, "b": 1, "c": 2}

    def test_isolated_nodes_rank_zero(self):
        g = nx.DiGraph()
        g.add_nodes_from(["x", "y"])
        assert assign_ranks(g) == {"x": 0, "y": 0}

    def test_count_and_minimise_crossings(self):
        g = nx.DiGraph([("a", "d"), ("b", "c")])
        layers = [["a", "b"], ["c", "d"]]
        assert count_crossings(layers, g) == 1
        best = minimise_crossings(layers, g, max_passes=4)
        assert count_crossings(best, g) == 0
        assert layers == [["a", "b"], ["c", "d"]]


# ── Footprints ───────────────────────────────────────────────────

class TestFootprint:

    def test_short_label_expanded(self, engine):
        assert engine.estimate_footprint(NodeRecord("a", "t", data={'label': "Short"})) == Size(200, 120)

    def test_long_label_collapsed(self, engine):
        node = NodeRecord("a", "t", data={'label': "Enrich with reference data", 'collapsed': True})
        assert engine.estimate_footprint(node) == Size(280, 40)

    def test_label_defaults_to_type_key(self, engine):
        node = NodeRecord("a", "a_type_key_longer_than_twenty")
        assert engine.estimate_footprint(node).width == 280

    def test_known_size_is_padded(self, engine):
        assert engine.estimate_footprint(NodeRecord("a", "t", size=(100, 50))) == Size(120, 70)

    def test_lookup_mapping_and_callable(self, engine):
        node = NodeRecord("a", "t", size=(10, 10))
        assert engine.estimate_footprint(node, {'a': {'width': 60, 'height': 30}}) == Size(80, 50)
        assert engine.estimate_footprint(node, lambda node_id: None) == Size(30, 30)

    def test_configurable_constants(self):
        engine = LayoutEngine(LayoutConfig(narrow_width=150, header_height=30, content_height=30))
        assert engine.estimate_footprint(NodeRecord("a", "t")) == Size(150, 60)


# ── Placement ────────────────────────────────────────────────────

class TestPlacement:

    def test_empty_input(self, engine):
        assert engine.compute_positions([], []) == {}
        assert engine.layout([], []) == []

    def test_two_nodes_left_to_right(self, engine):
        nodes, edges = _pair()
        positions = engine.compute_positions(nodes, edges, "LR")
        a, b = positions["a"], positions["b"]
        assert a == Position(20, 20)
        assert b.x - a.x >= 150
        assert b.x - (a.x + 200) == pytest.approx(150)
        assert b.y == pytest.approx(a.y)

    def test_two_nodes_top_to_bottom(self, engine):
        nodes, edges = _pair()
        positions = engine.compute_positions(nodes, edges, LayoutDirection.TB)
        a, b = positions["a"], positions["b"]
        assert a == Position(20, 20)
        assert b.y - (a.y + 120) == pytest.approx(150)
        assert b.x == pytest.approx(a.x)

    def test_default_direction_from_config(self):
        nodes, edges = _pair()
        positions = LayoutEngine(LayoutConfig(direction=LayoutDirection.TB)).compute_positions(nodes, edges)
        assert positions["b"].y > positions["a"].y

    def test_reading_order_follows_edges(self, engine, pipeline_nodes, pipeline_edges):
        positions = engine.compute_positions(pipeline_nodes, pipeline_edges, "LR")
        assert positions["source"].x < positions["extract"].x < positions["clean"].x < positions["load"].x
        # Same layer: centers share the rank coordinate, widths differ (200 vs 280)
        assert positions["clean"].x - positions["enrich"].x == pytest.approx(40)

    def test_no_overlap(self, engine, pipeline_nodes, pipeline_edges):
        for direction in ("LR", "TB"):
            positions = engine.compute_positions(pipeline_nodes, pipeline_edges, direction)
            _assert_no_overlap(engine, pipeline_nodes, positions)

    def test_no_overlap_with_known_footprints(self, engine, pipeline_nodes, pipeline_edges):
        lookup = {'extract': {'width': 400, 'height': 300}, 'clean': Size(50, 500)}
        positions = engine.compute_positions(pipeline_nodes, pipeline_edges, "TB", lookup)
        _assert_no_overlap(engine, pipeline_nodes, positions, lookup)

    def test_isolated_nodes_are_stacked(self, engine):
        nodes = [NodeRecord("x", "t"), NodeRecord("y", "t")]
        positions = engine.compute_positions(nodes, [], "LR")
        assert positions["x"].x == positions["y"].x
        assert abs(positions["y"].y - positions["x"].y) >= 120 + 80

    def test_positions_are_finite_and_inside_margin(self, engine, pipeline_nodes, pipeline_edges):
        positions = engine.compute_positions(pipeline_nodes, pipeline_edges, "LR")
        assert min(p.x for p in positions.values()) == pytest.approx(20)
        assert min(p.y for p in positions.values()) == pytest.approx(20)
        for p in positions.values():
            assert math.isfinite(p.x) and math.isfinite(p.y)


# ── Properties ───────────────────────────────────────────────────

class TestProperties:

    def test_fixed_point(self, engine, pipeline_nodes, pipeline_edges):
        first = engine.layout(pipeline_nodes, pipeline_edges, "LR")
        second = engine.layout(first, pipeline_edges, "LR")
        assert [n.position for n in first] == [n.position for n in second]

    def test_independent_of_current_positions(self, engine, pipeline_nodes, pipeline_edges):
        scrambled = [n.with_position((i * 37, -i * 11)) for i, n in enumerate(pipeline_nodes)]
        assert (engine.compute_positions(pipeline_nodes, pipeline_edges)
                == engine.compute_positions(scrambled, pipeline_edges))

    def test_inputs_not_mutated(self, engine, pipeline_nodes, pipeline_edges):
        before = [n.to_dict() for n in pipeline_nodes]
        laid_out = engine.layout(pipeline_nodes, pipeline_edges)
        assert [n.to_dict() for n in pipeline_nodes] == before
        for original, moved in zip(pipeline_nodes, laid_out):
            assert moved.data == original.data
            assert moved.type_key == original.type_key

    def test_cycles_terminate(self, engine):
        nodes = [NodeRecord(n, "t") for n in ("a", "b", "c", "d")]
        edges = [EdgeRecord("1", "a", "b"), EdgeRecord("2", "b", "c"), EdgeRecord("3", "c", "a"),
                 EdgeRecord("4", "c", "d"), EdgeRecord("5", "d", "b")]
        positions = engine.compute_positions(nodes, edges)
        assert set(positions) == {"a", "b", "c", "d"}
        _assert_no_overlap(engine, nodes, positions)

    def test_self_loops_and_dangling_edges_ignored(self, engine):
        nodes, edges = _pair()
        noisy = edges + [EdgeRecord("loop", "a", "a"), EdgeRecord("ghost", "a", "missing")]
        assert engine.compute_positions(nodes, noisy) == engine.compute_positions(nodes, edges)

    def test_parallel_and_opposite_edges(self, engine):
        nodes, edges = _pair()
        extra = edges + [EdgeRecord("e2", "a", "b"), EdgeRecord("e3", "b", "a")]
        positions = engine.compute_positions(nodes, extra, "LR")
        assert positions["b"].x - positions["a"].x >= 150
