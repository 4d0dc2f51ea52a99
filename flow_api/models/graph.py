"""
    FlowGraph - the live node/edge collections of one canvas.
    Directed, parallel edges allowed, cycles allowed (the layout breaks them).
"""
import logging
from typing import Dict, Iterable, List, NamedTuple, Optional

from ..exceptions import DanglingEndpointError
from .node import NodeRecord
from .edge import EdgeRecord

logger = logging.getLogger(__name__)


class GraphSnapshot(NamedTuple):
    """Detached ``(nodes, edges)`` pair produced by imports, clones and snapshots."""
    nodes: List[NodeRecord]
    edges: List[EdgeRecord]


class FlowGraph:
    """
        Insertion-ordered store of NodeRecords and EdgeRecords.
        Every stored edge references two stored nodes.
    """

    def __init__(self, graph_id: str = "flow"):
        """
        Initialize a graph.
        Args:
            graph_id: Identifier of the graph
        """
        self.graph_id = graph_id
        self.nodes: Dict[str, NodeRecord] = {}  # node_id -> NodeRecord
        self.edges: Dict[str, EdgeRecord] = {}  # edge_id -> EdgeRecord
        self._adjacency_list: Dict[str, List[str]] = {}  # node_id -> [edge_id]

    def add_node(self, node: NodeRecord) -> None:
        """Add a node to the graph"""
        if node.node_id in self.nodes:
            raise ValueError(f"Node with id {node.node_id} already exists")

        self.nodes[node.node_id] = node
        self._adjacency_list[node.node_id] = []

    def replace_node(self, node: NodeRecord) -> None:
        """Swap in a new record for an existing node id, keeping its edges and order"""
        if node.node_id not in self.nodes:
            raise ValueError(f"Node {node.node_id} not in graph")
        self.nodes[node.node_id] = node

    def add_edge(self, edge: EdgeRecord) -> None:
        """Add an edge to the graph"""
        missing = [nid for nid in (edge.source_id, edge.target_id) if nid not in self.nodes]
        if missing:
            raise DanglingEndpointError(edge.edge_id, dict.fromkeys(missing))

        if edge.edge_id in self.edges:
            raise ValueError(f"Edge with id {edge.edge_id} already exists")

        self.edges[edge.edge_id] = edge

        self._adjacency_list[edge.source_id].append(edge.edge_id)
        if not edge.is_self_loop():
            self._adjacency_list[edge.target_id].append(edge.edge_id)

    def get_node(self, node_id: str) -> Optional[NodeRecord]:
        return self.nodes.get(node_id)

    def get_edge(self, edge_id: str) -> Optional[EdgeRecord]:
        return self.edges.get(edge_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def get_all_nodes(self) -> List[NodeRecord]:
        return list(self.nodes.values())

    def get_all_edges(self) -> List[EdgeRecord]:
        return list(self.edges.values())

    def remove_node(self, node_id: str) -> List[EdgeRecord]:
        """
        Remove a node and all connected edges.

        Returns:
            The edges removed along with the node.
        """
        if node_id not in self.nodes:
            raise ValueError(f"Node {node_id} not in graph")

        removed = []
        for edge_id in list(self._adjacency_list.get(node_id, [])):
            edge = self.remove_edge(edge_id)
            if edge is not None:
                removed.append(edge)

        del self.nodes[node_id]
        del self._adjacency_list[node_id]
        return removed

    def remove_edge(self, edge_id: str) -> Optional[EdgeRecord]:
        """Remove an edge from the graph; returns it, or None if it was not present"""
        edge = self.edges.pop(edge_id, None)
        if edge is None:
            return None

        for nid in (edge.source_id, edge.target_id):
            if nid in self._adjacency_list:
                self._adjacency_list[nid] = [e for e in self._adjacency_list[nid] if e != edge_id]
        return edge

    def clear(self) -> None:
        self.nodes.clear()
        self.edges.clear()
        self._adjacency_list.clear()

    def snapshot(self) -> GraphSnapshot:
        """Deep copies of all nodes and edges, in insertion order."""
        return GraphSnapshot(
            [node.copy() for node in self.nodes.values()],
            [edge.copy() for edge in self.edges.values()],
        )

    @classmethod
    def from_records(
            cls,
            nodes: Iterable[NodeRecord],
            edges: Iterable[EdgeRecord],
            strict: bool = True,
            graph_id: str = "flow",
    ) -> 'FlowGraph':
        """
        Build a graph from detached records.

        Args:
            nodes:    Node records (copied).
            edges:    Edge records (copied).
            strict:   Raise ``DanglingEndpointError`` on an edge with a missing
                      endpoint; otherwise drop the edge with a warning.
            graph_id: Identifier of the new graph.

        Raises:
            ValueError: On duplicate node or edge ids.
        """
        graph = cls(graph_id)
        for node in nodes:
            graph.add_node(node.copy())
        for edge in edges:
            try:
                graph.add_edge(edge.copy())
            except DanglingEndpointError as exc:
                if strict:
                    raise
                logger.warning("Dropping edge %s: %s", edge.edge_id, exc)
        return graph

    def get_number_of_nodes(self) -> int:
        return len(self.nodes)

    def get_number_of_edges(self) -> int:
        return len(self.edges)

    def __repr__(self) -> str:
        return f"FlowGraph({self.graph_id}, nodes={len(self.nodes)}, edges={len(self.edges)})"
