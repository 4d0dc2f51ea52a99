"""
    LayoutEngine - layered (Sugiyama-style) automatic node placement.

    Phases:
      1. Cycle breaking   (greedy feedback-arc-set ordering; back-edges do
                           not constrain rank)
      2. Rank assignment  (longest path from the sources)
      3. Virtual nodes    (long edges split so every segment spans one layer)
      4. Crossing reduction (barycenter sweeps, best ordering kept)
      5. Coordinates      (layers stacked along the reading direction, nodes
                           spread across it and pulled toward their neighbours)

    Internally every node is handled by its center; the returned positions
    are top-left corners of the padded footprint.  The engine is pure: it
    never mutates its inputs and depends only on connectivity, input order,
    footprints and configuration, so a layout is a fixed point of itself.
"""
import logging
import math
from collections.abc import Mapping
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Tuple, Union

import networkx as nx

from flow_api.models.edge import EdgeRecord
from flow_api.models.node import NodeRecord
from flow_api.types import LayoutDirection, Position, Size

from flow_core.canvas.config import LayoutConfig

logger = logging.getLogger(__name__)

FootprintLookup = Union[Callable[[str], Any], Mapping]

# Virtual nodes are tuples so they can never collide with string node ids
_VIRTUAL = "__virtual__"


def _is_virtual(node: Hashable) -> bool:
    return isinstance(node, tuple) and len(node) == 3 and node[0] == _VIRTUAL


# ─── Cycle breaking ──────────────────────────────────────────────────────────


def greedy_fas_ordering(graph: nx.DiGraph) -> List[Hashable]:
    """
    Node ordering that keeps most edges pointing forward (Eades, Lin, Smyth).

    Sinks are peeled to the back, sources to the front, and inside a cycle
    the node with the largest out-in surplus goes to the front.  Candidates
    are scanned in graph insertion order so the result is deterministic.
    """
    active = dict.fromkeys(graph.nodes)
    out_deg = {n: graph.out_degree(n) for n in graph.nodes}
    in_deg = {n: graph.in_degree(n) for n in graph.nodes}

    head: List[Hashable] = []
    tail: List[Hashable] = []

    def drop(node: Hashable) -> None:
        del active[node]
        for succ in graph.successors(node):
            if succ in active:
                in_deg[succ] -= 1
        for pred in graph.predecessors(node):
            if pred in active:
                out_deg[pred] -= 1

    while active:
        sinks = [n for n in active if out_deg[n] == 0]
        while sinks:
            for sink in sinks:
                drop(sink)
                tail.append(sink)
            sinks = [n for n in active if out_deg[n] == 0]

        sources = [n for n in active if in_deg[n] == 0]
        while sources:
            for source in sources:
                drop(source)
                head.append(source)
            sources = [n for n in active if in_deg[n] == 0]

        if active:
            best = max(active, key=lambda n: out_deg[n] - in_deg[n])
            drop(best)
            head.append(best)

    tail.reverse()
    return head + tail


def acyclic_subgraph(graph: nx.DiGraph) -> nx.DiGraph:
    """Copy of ``graph`` without its back-edges (by greedy-FAS order)."""
    position = {node: i for i, node in enumerate(greedy_fas_ordering(graph))}
    dag = nx.DiGraph()
    dag.add_nodes_from(graph.nodes)
    dag.add_edges_from((u, v) for u, v in graph.edges() if position[u] < position[v])
    return dag


def assign_ranks(graph: nx.DiGraph) -> Dict[Hashable, int]:
    """Longest-path rank from the sources; isolated nodes land on rank 0."""
    dag = acyclic_subgraph(graph)
    ranks: Dict[Hashable, int] = {}
    for node in nx.topological_sort(dag):
        ranks[node] = max((ranks[p] + 1 for p in dag.predecessors(node)), default=0)
    return ranks


# ─── Crossing reduction ──────────────────────────────────────────────────────


def count_crossings(layers: List[List[Hashable]], graph: nx.DiGraph) -> int:
    """Count edge crossings between consecutive layers (inversion count)."""
    total = 0
    for idx in range(len(layers) - 1):
        below = {n: i for i, n in enumerate(layers[idx + 1])}
        segments: List[Tuple[int, int]] = []
        for sp, node in enumerate(layers[idx]):
            for succ in graph.successors(node):
                if succ in below:
                    segments.append((sp, below[succ]))
        for i in range(len(segments)):
            for j in range(i + 1, len(segments)):
                (a0, a1), (b0, b1) = segments[i], segments[j]
                if (a0 - b0) * (a1 - b1) < 0:
                    total += 1
    return total


def _barycenter_sort(layer: List[Hashable], neighbours: Callable[[Hashable], Any],
                     fixed: List[Hashable]) -> List[Hashable]:
    fixed_pos = {n: float(i) for i, n in enumerate(fixed)}
    current = {n: i for i, n in enumerate(layer)}

    def key(node: Hashable) -> Tuple[float, int]:
        positions = [fixed_pos[nb] for nb in neighbours(node) if nb in fixed_pos]
        if not positions:
            # Unconnected to the fixed layer: keep its slot
            return float(current[node]), current[node]
        return sum(positions) / len(positions), current[node]

    return sorted(layer, key=key)


def minimise_crossings(layers: List[List[Hashable]], graph: nx.DiGraph,
                       max_passes: int) -> List[List[Hashable]]:
    """
    Alternate top-down and bottom-up barycenter sweeps, keeping the best
    ordering seen.  Stops early when a full pass brings no improvement.
    """
    ordering = [list(layer) for layer in layers]
    best = [list(layer) for layer in ordering]
    best_count = count_crossings(ordering, graph)

    for _ in range(max_passes):
        if best_count == 0:
            break
        for idx in range(1, len(ordering)):
            ordering[idx] = _barycenter_sort(ordering[idx], graph.predecessors, ordering[idx - 1])
        for idx in range(len(ordering) - 2, -1, -1):
            ordering[idx] = _barycenter_sort(ordering[idx], graph.successors, ordering[idx + 1])

        count = count_crossings(ordering, graph)
        if count >= best_count:
            break
        best_count = count
        best = [list(layer) for layer in ordering]

    return best


# ─── Engine ──────────────────────────────────────────────────────────────────


class LayoutEngine:
    """
    Computes non-overlapping positions for a node/edge snapshot.

    Usage:
        engine = LayoutEngine(LayoutConfig())
        laid_out = engine.layout(nodes, edges, "LR", footprint_lookup)
    """

    def __init__(self, config: Optional[LayoutConfig] = None):
        self._config = config or LayoutConfig()

    @property
    def config(self) -> LayoutConfig:
        return self._config

    # ── Footprints ───────────────────────────────────────────────

    def estimate_footprint(self, node: NodeRecord,
                           footprint_lookup: Optional[FootprintLookup] = None) -> Size:
        """
        Effective box of a node: a known footprint (lookup result, else the
        node's own size) plus padding, or an estimate from the label length
        and collapsed state.
        """
        cfg = self._config
        known = Size.from_value(_lookup(footprint_lookup, node.node_id)) or node.size
        if known is not None:
            return known.padded(cfg.footprint_padding)

        height = cfg.header_height + (0.0 if node.collapsed else cfg.content_height)
        width = cfg.wide_width if len(node.label) > cfg.label_length_threshold else cfg.narrow_width
        return Size(width, height)

    # ── Public API ───────────────────────────────────────────────

    def layout(self, nodes: Sequence[NodeRecord], edges: Sequence[EdgeRecord],
               direction: Any = None,
               footprint_lookup: Optional[FootprintLookup] = None) -> List[NodeRecord]:
        """
        Return copies of ``nodes`` with new positions; no other field changes.
        """
        positions = self.compute_positions(nodes, edges, direction, footprint_lookup)
        return [node.with_position(positions[node.node_id]) for node in nodes]

    def compute_positions(self, nodes: Sequence[NodeRecord], edges: Sequence[EdgeRecord],
                          direction: Any = None,
                          footprint_lookup: Optional[FootprintLookup] = None) -> Dict[str, Position]:
        """
        Map every node id to the top-left corner of its padded footprint.

        Args:
            nodes:            Node snapshot (order breaks ties).
            edges:            Edge snapshot; self-loops and edges with unknown
                              endpoints are ignored.
            direction:        ``"LR"`` / ``"TB"`` or a LayoutDirection
                              (defaults to the configured direction).
            footprint_lookup: Callable or mapping ``id -> Size | {width, height} | None``.
        """
        if not nodes:
            return {}

        orientation = LayoutDirection.from_value(direction or self._config.direction)
        sizes = {n.node_id: self.estimate_footprint(n, footprint_lookup) for n in nodes}

        graph = self._build_graph(nodes, edges)
        ranks = assign_ranks(graph)
        layered, layer_lists = self._split_long_edges(graph, ranks)
        layer_lists = minimise_crossings(layer_lists, layered, self._config.max_crossing_passes)

        centers = self._assign_coordinates(layer_lists, layered, sizes, orientation)
        positions = {}
        for node_id, (cx, cy) in centers.items():
            size = sizes[node_id]
            top_left = Position(cx - size.width / 2.0, cy - size.height / 2.0)
            assert top_left.is_finite() and top_left.x >= 0 and top_left.y >= 0, \
                f"Layout produced invalid position {top_left} for node {node_id}"
            positions[node_id] = top_left

        logger.debug("Layout %s: %d nodes in %d layers",
                     orientation.value, len(positions), len(layer_lists))
        return positions

    # ── Internals ────────────────────────────────────────────────

    @staticmethod
    def _build_graph(nodes: Sequence[NodeRecord], edges: Sequence[EdgeRecord]) -> nx.DiGraph:
        graph = nx.DiGraph()
        graph.add_nodes_from(n.node_id for n in nodes)
        for edge in edges:
            if edge.is_self_loop():
                continue
            if edge.source_id not in graph or edge.target_id not in graph:
                continue
            graph.add_edge(edge.source_id, edge.target_id)
        return graph

    @staticmethod
    def _split_long_edges(graph: nx.DiGraph, ranks: Dict[Hashable, int]
                          ) -> Tuple[nx.DiGraph, List[List[Hashable]]]:
        """
        Orient every edge from the lower to the higher rank and replace edges
        spanning several ranks by chains of virtual nodes.  Edges inside one
        rank do not take part in ordering.

        Returns:
            The layered graph and the initial per-rank node lists.
        """
        layered = nx.DiGraph()
        layered.add_nodes_from(graph.nodes)
        node_rank = dict(ranks)
        seen = set()
        chain = 0

        for u, v in graph.edges():
            if ranks[u] == ranks[v]:
                continue
            if ranks[u] > ranks[v]:
                u, v = v, u
            # u->v and v->u collapse onto one oriented pair
            if (u, v) in seen:
                continue
            seen.add((u, v))
            span = ranks[v] - ranks[u]
            if span == 1:
                layered.add_edge(u, v)
                continue
            previous = u
            for step in range(1, span):
                virtual = (_VIRTUAL, chain, step - 1)
                layered.add_node(virtual)
                node_rank[virtual] = ranks[u] + step
                layered.add_edge(previous, virtual)
                previous = virtual
            layered.add_edge(previous, v)
            chain += 1

        layer_lists: List[List[Hashable]] = [[] for _ in range(max(node_rank.values()) + 1)]
        for node in layered.nodes:
            layer_lists[node_rank[node]].append(node)
        return layered, layer_lists

    def _separation(self, a: Hashable, b: Hashable, half: Dict[Hashable, float]) -> float:
        cfg = self._config
        a_virtual, b_virtual = _is_virtual(a), _is_virtual(b)
        if a_virtual and b_virtual:
            gap = cfg.edge_spacing
        elif a_virtual or b_virtual:
            gap = (cfg.node_spacing + cfg.edge_spacing) / 2.0
        else:
            gap = cfg.node_spacing
        return half[a] + gap + half[b]

    def _place_layer(self, layer: List[Hashable], desired: List[float],
                     half: Dict[Hashable, float]) -> List[float]:
        """
        Closest placement to ``desired`` that keeps neighbour separation:
        the average of a left-packed and a right-packed feasible placement.
        """
        count = len(layer)
        left = list(desired)
        for i in range(1, count):
            left[i] = max(desired[i], left[i - 1] + self._separation(layer[i - 1], layer[i], half))
        right = list(desired)
        for i in range(count - 2, -1, -1):
            right[i] = min(desired[i], right[i + 1] - self._separation(layer[i], layer[i + 1], half))
        return [(lo + hi) / 2.0 for lo, hi in zip(left, right)]

    def _assign_coordinates(self, layers: List[List[Hashable]], graph: nx.DiGraph,
                            sizes: Dict[str, Size],
                            orientation: LayoutDirection) -> Dict[str, Tuple[float, float]]:
        cfg = self._config
        horizontal = orientation.is_horizontal

        # Extent along the reading direction (rank axis) and across it
        rank_extent: Dict[Hashable, float] = {}
        cross_half: Dict[Hashable, float] = {}
        for layer in layers:
            for node in layer:
                if _is_virtual(node):
                    rank_extent[node] = 0.0
                    cross_half[node] = 0.0
                    continue
                size = sizes[node]
                rank_extent[node] = size.width if horizontal else size.height
                cross_half[node] = (size.height if horizontal else size.width) / 2.0

        # Rank axis: consecutive layer extents are rank_spacing apart
        rank_center: List[float] = []
        previous_end = -cfg.rank_spacing
        for layer in layers:
            thickness = max((rank_extent[n] for n in layer), default=0.0)
            start = previous_end + cfg.rank_spacing
            rank_center.append(start + thickness / 2.0)
            previous_end = start + thickness

        # Cross axis: packed and centered, then pulled toward neighbours
        cross: Dict[Hashable, float] = {}
        for layer in layers:
            packed = [0.0]
            for i in range(1, len(layer)):
                packed.append(packed[-1] + self._separation(layer[i - 1], layer[i], cross_half))
            shift = (packed[0] + packed[-1]) / 2.0 if packed else 0.0
            for node, value in zip(layer, packed):
                cross[node] = value - shift

        for _ in range(cfg.alignment_passes):
            for idx in range(1, len(layers)):
                self._align_layer(layers[idx], graph.predecessors, cross, cross_half)
            for idx in range(len(layers) - 2, -1, -1):
                self._align_layer(layers[idx], graph.successors, cross, cross_half)

        # Translate real nodes so the drawing starts at the margin
        real = [(node, rank) for rank, layer in enumerate(layers) for node in layer
                if not _is_virtual(node)]
        min_rank = min(rank_center[r] - rank_extent[n] / 2.0 for n, r in real)
        min_cross = min(cross[n] - cross_half[n] for n, _ in real)
        rank_margin, cross_margin = (cfg.margin_x, cfg.margin_y) if horizontal else (cfg.margin_y, cfg.margin_x)

        centers: Dict[str, Tuple[float, float]] = {}
        for node, rank in real:
            along = rank_center[rank] - min_rank + rank_margin
            across = cross[node] - min_cross + cross_margin
            centers[node] = (along, across) if horizontal else (across, along)
        return centers

    def _align_layer(self, layer: List[Hashable], neighbours: Callable[[Hashable], Any],
                     cross: Dict[Hashable, float], half: Dict[Hashable, float]) -> None:
        if not layer:
            return
        desired = []
        for node in layer:
            linked = [cross[nb] for nb in neighbours(node)]
            desired.append(sum(linked) / len(linked) if linked else cross[node])
        for node, value in zip(layer, self._place_layer(layer, desired, half)):
            cross[node] = value


def _lookup(footprint_lookup: Optional[FootprintLookup], node_id: str) -> Any:
    if footprint_lookup is None:
        return None
    if isinstance(footprint_lookup, Mapping):
        return footprint_lookup.get(node_id)
    return footprint_lookup(node_id)
