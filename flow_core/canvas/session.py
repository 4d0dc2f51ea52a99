"""
    GraphSession - the live nodes and edges of one canvas.

    The session is the only mutable component.  It consults the
    TypeRegistry when materializing nodes, delegates positioning to the
    LayoutEngine and (de)serialization to its Flavor.

    Every mutating call is atomic: the new state is built and checked
    first and only then committed, so a call that raises leaves the
    previous nodes and edges untouched.  Observers are notified after the
    commit, ``nodes_changed`` before ``edges_changed``.
"""
import logging
import uuid
from copy import deepcopy
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from flow_api.exceptions import UnknownTypeError
from flow_api.models.edge import EdgeRecord
from flow_api.models.graph import FlowGraph, GraphSnapshot
from flow_api.models.node import NodeRecord
from flow_api.plugins.base import BaseFlavor, Flavor
from flow_api.types import LayoutDirection, Position

from flow_core.services.layout_service import FootprintLookup, LayoutEngine
from .config import CanvasConfig
from .events import (
    Observable,
    EVENT_NODES_CHANGED,
    EVENT_EDGES_CHANGED,
    EVENT_LAYOUT_APPLIED,
)
from .registry import TypeRegistry

logger = logging.getLogger(__name__)

EdgeCandidate = Union[EdgeRecord, Mapping[str, Any]]


class GraphSession(Observable):
    """
    Owns one flow graph and exposes the operations a canvas needs.

    Attributes:
        session_id: Unique identifier.
        name:       Human-readable label.
    """

    def __init__(
        self,
        registry: TypeRegistry,
        flavor: Optional[BaseFlavor] = None,
        layout_engine: Optional[LayoutEngine] = None,
        config: Optional[CanvasConfig] = None,
        name: Optional[str] = None,
        nodes: Sequence[NodeRecord] = (),
        edges: Sequence[EdgeRecord] = (),
        footprint_lookup: Optional[FootprintLookup] = None,
    ):
        """
        Args:
            registry:         Type registry shared by the canvas.
            flavor:           Serialization pipeline (default flavor if omitted).
            layout_engine:    Layout engine (built from ``config.layout`` if omitted).
            config:           Canvas configuration.
            name:             Optional label.
            nodes / edges:    Initial content; edges must reference given nodes.
            footprint_lookup: Host canvas footprint query ``id -> size | None``.
        """
        super().__init__()
        self._config: CanvasConfig = config or CanvasConfig()
        self.session_id: str = str(uuid.uuid4())
        self.name: str = name or f"Session-{self.session_id[:8]}"

        self._registry = registry
        self._flavor: BaseFlavor = flavor or Flavor(self._config.flavor.version,
                                                    self._config.flavor.text_indent)
        self._layout_engine = layout_engine or LayoutEngine(self._config.layout)
        self._footprint_lookup = footprint_lookup
        self._graph = FlowGraph.from_records(nodes, edges, strict=True, graph_id=self.session_id)

    # ── Properties ───────────────────────────────────────────────

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    @property
    def flavor(self) -> BaseFlavor:
        return self._flavor

    @flavor.setter
    def flavor(self, value: BaseFlavor) -> None:
        self._flavor = value

    @property
    def layout_engine(self) -> LayoutEngine:
        return self._layout_engine

    @property
    def nodes(self) -> List[NodeRecord]:
        """Copies of the current nodes, in insertion order."""
        return self._graph.snapshot().nodes

    @property
    def edges(self) -> List[EdgeRecord]:
        """Copies of the current edges, in insertion order."""
        return self._graph.snapshot().edges

    def snapshot(self) -> GraphSnapshot:
        return self._graph.snapshot()

    def get_node(self, node_id: str) -> Optional[NodeRecord]:
        node = self._graph.get_node(node_id)
        return node.copy() if node is not None else None

    def get_edge(self, edge_id: str) -> Optional[EdgeRecord]:
        edge = self._graph.get_edge(edge_id)
        return edge.copy() if edge is not None else None

    # ── Nodes ────────────────────────────────────────────────────

    def create_node(self, type_key: str, position: Any = None,
                    data: Optional[Mapping[str, Any]] = None,
                    node_id: Optional[str] = None) -> NodeRecord:
        """
        Instantiate a registered type.

        The payload starts from the type's default data, is updated with
        ``data`` and always carries a ``label`` (the type key if none is given).

        Raises:
            UnknownTypeError: If ``type_key`` is not registered.
            ValueError:       If ``node_id`` is already taken.
        """
        config = self._registry.get_config(type_key)
        if config is None:
            raise UnknownTypeError(type_key)

        payload = config.create_data()
        payload.update(deepcopy(dict(data or {})))
        payload.setdefault('label', type_key)

        node = NodeRecord(node_id or self._generate_node_id(type_key), type_key, position, payload)
        self._graph.add_node(node)
        logger.info("Session %s: created node %s (%s)", self.session_id[:8], node.node_id, type_key)
        self._notify_nodes()
        return node.copy()

    def add_node(self, node: NodeRecord) -> NodeRecord:
        """
        Place an already-built record (host canvas placement).  The type is
        not checked against the registry.

        Raises:
            ValueError: If the node id is already taken.
        """
        record = node.copy()
        self._graph.add_node(record)
        self._notify_nodes()
        return record.copy()

    def update_node_data(self, node_id: str, changes: Mapping[str, Any]) -> NodeRecord:
        """Shallow-merge ``changes`` into the node's data."""
        node = self._require_node(node_id).copy()
        node.data.update(deepcopy(dict(changes)))
        self._graph.replace_node(node)
        self._notify_nodes()
        return node.copy()

    def move_node(self, node_id: str, position: Any) -> NodeRecord:
        node = self._require_node(node_id).with_position(position)
        self._graph.replace_node(node)
        self._notify_nodes()
        return node.copy()

    def remove_node(self, node_id: str) -> bool:
        """
        Remove a node and its incident edges.

        Returns:
            False if the node did not exist (nothing changes).
        """
        if not self._graph.has_node(node_id):
            return False

        removed_edges = self._graph.remove_node(node_id)
        logger.info("Session %s: removed node %s (%d edges)",
                    self.session_id[:8], node_id, len(removed_edges))
        self._notify_nodes()
        if removed_edges:
            self._notify_edges()
        return True

    def get_renderer(self, node_id: str) -> Any:
        """
        Renderer for a node's type, or the configured fallback when the type
        is not (or no longer) registered.
        """
        node = self._require_node(node_id)
        renderer = self._registry.get_renderer(node.type_key)
        if renderer is None:
            logger.debug("No renderer for type '%s'; using fallback.", node.type_key)
            return self._config.fallback_renderer
        return renderer

    # ── Edges ────────────────────────────────────────────────────

    def add_edge(self, candidate: EdgeCandidate) -> EdgeRecord:
        """
        Add an edge from an EdgeRecord or a connection mapping
        (``source``, ``target``, optional ``id``, handles and extra fields).
        A missing id is generated from the endpoints.

        Raises:
            DanglingEndpointError: If an endpoint is not in the graph.
            ValueError:            If the edge id is already taken.
        """
        if isinstance(candidate, EdgeRecord):
            edge = candidate.copy()
        else:
            fields = dict(candidate)
            if not fields.get('id'):
                fields['id'] = self._generate_edge_id(fields)
            edge = EdgeRecord.from_dict(fields)

        self._graph.add_edge(edge)
        logger.info("Session %s: added edge %s (%s -> %s)",
                    self.session_id[:8], edge.edge_id, edge.source_id, edge.target_id)
        self._notify_edges()
        return edge.copy()

    def connect(self, source_id: str, target_id: str,
                source_handle: Optional[str] = None,
                target_handle: Optional[str] = None, **extra) -> EdgeRecord:
        """Shortcut for ``add_edge`` with a generated id."""
        candidate = {'source': source_id, 'target': target_id,
                     'sourceHandle': source_handle, 'targetHandle': target_handle}
        candidate.update(extra)
        return self.add_edge(candidate)

    def remove_edge(self, edge_id: str) -> bool:
        if self._graph.remove_edge(edge_id) is None:
            return False
        self._notify_edges()
        return True

    def clear(self) -> None:
        """Remove every node and edge."""
        self._graph.clear()
        self._notify_nodes()
        self._notify_edges()

    # ── Layout ───────────────────────────────────────────────────

    def apply_layout(self, direction: Any = None,
                     footprint_lookup: Optional[FootprintLookup] = None) -> None:
        """
        Recompute every node position from the graph's connectivity.

        Args:
            direction:        ``"LR"`` / ``"TB"``; defaults to the layout config.
            footprint_lookup: Overrides the session's footprint query for this call.
        """
        orientation = LayoutDirection.from_value(direction or self._layout_engine.config.direction)
        snapshot = self._graph.snapshot()
        laid_out = self._layout_engine.layout(
            snapshot.nodes,
            snapshot.edges,
            orientation,
            footprint_lookup or self._footprint_lookup,
        )
        for node in laid_out:
            self._graph.replace_node(node)

        logger.info("Session %s: layout %s applied to %d nodes",
                    self.session_id[:8], orientation.value, len(laid_out))
        self._notify_nodes()
        self._notify(EVENT_LAYOUT_APPLIED, session=self, direction=orientation)

    def positions(self) -> Dict[str, Position]:
        return {node.node_id: node.position for node in self._graph.get_all_nodes()}

    # ── Serialization ────────────────────────────────────────────

    def export_snapshot(self, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Export the graph as a FlavorEnvelope using the session's flavor."""
        return self._flavor.export_graph(self._graph.get_all_nodes(),
                                         self._graph.get_all_edges(), metadata)

    def export_text(self, metadata: Optional[Dict[str, Any]] = None) -> str:
        return self._flavor.export_to_text(self._graph.get_all_nodes(),
                                           self._graph.get_all_edges(), metadata)

    def import_snapshot(self, envelope: Any, strict: Optional[bool] = None) -> GraphSnapshot:
        """
        Replace the graph with the content of an envelope.

        Args:
            envelope: Data in the session flavor's envelope shape.
            strict:   Raise on dangling edges instead of dropping them
                      (defaults to ``config.strict_import``).

        Raises:
            FormatError:           If the envelope is structurally invalid.
            DanglingEndpointError: In strict mode, on an edge with a missing endpoint.
            ValueError:            On duplicate node or edge ids.
        """
        return self._replace_graph(self._flavor.import_graph(envelope), strict)

    def import_text(self, text: str, strict: Optional[bool] = None) -> GraphSnapshot:
        """
        Raises:
            ParseError: If the text cannot be decoded by the flavor.
        """
        return self._replace_graph(self._flavor.import_from_text(text), strict)

    def clone(self, name: Optional[str] = None) -> 'GraphSession':
        """New session holding a flavor round-tripped copy of this graph."""
        nodes, edges = self._flavor.clone_graph(self._graph.get_all_nodes(),
                                                self._graph.get_all_edges())
        return GraphSession(
            self._registry,
            flavor=self._flavor,
            layout_engine=self._layout_engine,
            config=self._config,
            name=name or f"{self.name} (copy)",
            nodes=nodes,
            edges=edges,
            footprint_lookup=self._footprint_lookup,
        )

    # ── Internal helpers ─────────────────────────────────────────

    def _replace_graph(self, snapshot: GraphSnapshot, strict: Optional[bool]) -> GraphSnapshot:
        if strict is None:
            strict = self._config.strict_import
        graph = FlowGraph.from_records(snapshot.nodes, snapshot.edges,
                                       strict=strict, graph_id=self.session_id)
        self._graph = graph
        logger.info("Session %s: imported %d nodes, %d edges",
                    self.session_id[:8], graph.get_number_of_nodes(), graph.get_number_of_edges())
        self._notify_nodes()
        self._notify_edges()
        return graph.snapshot()

    def _require_node(self, node_id: str) -> NodeRecord:
        node = self._graph.get_node(node_id)
        if node is None:
            raise ValueError(f"Node {node_id} not in graph")
        return node

    def _generate_node_id(self, type_key: str) -> str:
        while True:
            candidate = f"{type_key}-{uuid.uuid4().hex[:8]}"
            if not self._graph.has_node(candidate):
                return candidate

    def _generate_edge_id(self, fields: Mapping[str, Any]) -> str:
        base = (f"e{fields.get('source')}{fields.get('sourceHandle') or ''}"
                f"-{fields.get('target')}{fields.get('targetHandle') or ''}")
        candidate, suffix = base, 1
        while self._graph.get_edge(candidate) is not None:
            candidate = f"{base}-{suffix}"
            suffix += 1
        return candidate

    def _notify_nodes(self) -> None:
        self._notify(EVENT_NODES_CHANGED, session=self, nodes=self.nodes)

    def _notify_edges(self) -> None:
        self._notify(EVENT_EDGES_CHANGED, session=self, edges=self.edges)

    # ── Convenience ──────────────────────────────────────────────

    def to_dict(self) -> dict:
        """Session metadata (not the full graph)."""
        return {
            'session_id': self.session_id,
            'name': self.name,
            'flavor': self._flavor.get_plugin_name(),
            'nodes': self._graph.get_number_of_nodes(),
            'edges': self._graph.get_number_of_edges(),
        }

    def __repr__(self) -> str:
        return (
            f"GraphSession(id={self.session_id[:8]}, "
            f"name='{self.name}', "
            f"nodes={self._graph.get_number_of_nodes()}, "
            f"edges={self._graph.get_number_of_edges()})"
        )
