"""
    Flavor - the serialization pipeline between a flow graph and its
    interchange envelope.

    Design Pattern: Template Method
    ─────────────────────────────────
    ``export_graph`` / ``import_graph`` fix the orchestration
    (validate → deserialize nodes → deserialize edges), while every stage
    (``serialize_nodes``, ``serialize_edges``, ``deserialize_nodes``,
    ``deserialize_edges``, ``transform_metadata``, ``validate``) and the
    text codec (``encode_text`` / ``decode_text``) can be overridden.

    Overrides are expected to call the inherited stage and reshape its
    result, e.g.::

        class TaggedFlavor(BaseFlavor):
            def transform_metadata(self, metadata=None):
                return {**super().transform_metadata(metadata), 'source': 'editor'}
"""
import json
import logging
from collections.abc import Mapping, Sequence
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..exceptions import FormatError, ParseError
from ..models.edge import EDGE_FIELDS, EdgeRecord
from ..models.graph import GraphSnapshot
from ..models.node import NODE_FIELDS, NodeRecord

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "1.0.0"


class BaseFlavor:
    """
    Base class for data import and export.

    Subclass it to adapt the envelope to a specific backend: REST-shaped
    keys, GraphQL typenames, encoded payloads or a different text format.
    Concrete flavors are discovered through the ``flow_canvas.flavor``
    entry-point group and must be constructible without arguments.
    """

    def __init__(self, version: Optional[str] = None, indent: int = 2):
        self._version = version or DEFAULT_VERSION
        self._indent = indent

    def get_plugin_name(self) -> str:
        """Human-readable name of the flavor."""
        return type(self).__name__

    # ── Stages ───────────────────────────────────────────────────

    def serialize_nodes(self, nodes: Sequence[Any]) -> List[Dict[str, Any]]:
        """
        Serialize nodes into ``{id, type, position, data, width?, height?,
        selected?, dragging?}`` plus any custom top-level fields.
        Accepts NodeRecords or mappings in the same shape.
        """
        result = []
        for node in nodes:
            fields = node.to_dict() if isinstance(node, NodeRecord) else deepcopy(dict(node))
            out: Dict[str, Any] = {
                'id': fields.get('id'),
                'type': fields.get('type'),
                'position': fields.get('position'),
                'data': fields.get('data'),
            }
            for key in ('width', 'height', 'selected', 'dragging'):
                if fields.get(key) is not None:
                    out[key] = fields[key]
            out.update(self.extract_custom_fields(fields, NODE_FIELDS))
            result.append(out)
        return result

    def serialize_edges(self, edges: Sequence[Any]) -> List[Dict[str, Any]]:
        """
        Serialize edges into ``{id, source, target, sourceHandle?, targetHandle?,
        type?, animated?, style?, data?}`` plus any custom top-level fields.
        """
        result = []
        for edge in edges:
            fields = edge.to_dict() if isinstance(edge, EdgeRecord) else deepcopy(dict(edge))
            out: Dict[str, Any] = {
                'id': fields.get('id'),
                'source': fields.get('source'),
                'target': fields.get('target'),
            }
            for key in ('sourceHandle', 'targetHandle', 'type', 'animated', 'style', 'data'):
                if fields.get(key) is not None:
                    out[key] = fields[key]
            out.update(self.extract_custom_fields(fields, EDGE_FIELDS))
            result.append(out)
        return result

    def deserialize_nodes(self, nodes: Sequence[Any]) -> List[NodeRecord]:
        """Rebuild NodeRecords; missing position is the origin, missing data is ``{}``."""
        return [NodeRecord.from_dict(node) for node in nodes]

    def deserialize_edges(self, edges: Sequence[Any]) -> List[EdgeRecord]:
        """Rebuild EdgeRecords as a structural passthrough."""
        return [EdgeRecord.from_dict(edge) for edge in edges]

    def transform_metadata(self, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Stamp version and UTC timestamp; caller-supplied keys win on collision."""
        return {
            'version': self._version,
            'timestamp': _utc_timestamp(),
            **(metadata or {}),
        }

    def validate(self, envelope: Any) -> None:
        """
        Check the envelope structure before any deserialization.

        Raises:
            FormatError: If the envelope is not a mapping, or its ``nodes`` /
                         ``edges`` entry is not a sequence (``field`` names which).
        """
        if not isinstance(envelope, Mapping):
            raise FormatError("Invalid data format: envelope must be a mapping")

        for field in ('nodes', 'edges'):
            if not _is_sequence(envelope.get(field)):
                raise FormatError(f"Invalid data format: {field} must be an array", field=field)

        metadata = envelope.get('metadata')
        version = metadata.get('version') if isinstance(metadata, Mapping) else None
        if version and version != self._version:
            logger.warning("Version mismatch: current %s, data %s", self._version, version)

    def extract_custom_fields(self, fields: Mapping[str, Any], standard: Sequence[str]) -> Dict[str, Any]:
        """Return the top-level keys of ``fields`` that are not in ``standard``."""
        return {k: v for k, v in fields.items() if k not in standard}

    # ── Text codec ───────────────────────────────────────────────

    def encode_text(self, envelope: Dict[str, Any]) -> str:
        return json.dumps(envelope, indent=self._indent, default=str)

    def decode_text(self, text: str) -> Any:
        """
        Raises:
            ParseError: If the text is not valid JSON.
        """
        try:
            return json.loads(text)
        except (TypeError, ValueError) as e:
            raise ParseError(f"Failed to parse JSON: {e}") from e

    # ── Public operations ────────────────────────────────────────

    def export_graph(self, nodes: Sequence[Any], edges: Sequence[Any],
                     metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return {
            'nodes': self.serialize_nodes(nodes),
            'edges': self.serialize_edges(edges),
            'metadata': self.transform_metadata(metadata),
        }

    def import_graph(self, envelope: Any) -> GraphSnapshot:
        """
        Validate the envelope, then deserialize nodes and edges in two
        independent passes.  Edges are not checked against the nodes here;
        dangling references are the graph owner's concern.
        """
        self.validate(envelope)
        return GraphSnapshot(
            self.deserialize_nodes(envelope['nodes']),
            self.deserialize_edges(envelope['edges']),
        )

    def export_to_text(self, nodes: Sequence[Any], edges: Sequence[Any],
                       metadata: Optional[Dict[str, Any]] = None) -> str:
        return self.encode_text(self.export_graph(nodes, edges, metadata))

    def import_from_text(self, text: str) -> GraphSnapshot:
        return self.import_graph(self.decode_text(text))

    def clone_graph(self, nodes: Sequence[Any], edges: Sequence[Any]) -> GraphSnapshot:
        """Export then import; doubles as a round-trip check of the flavor."""
        return self.import_graph(self.export_graph(nodes, edges))

    # ── Version ──────────────────────────────────────────────────

    def get_version(self) -> str:
        return self._version

    def set_version(self, version: str) -> None:
        self._version = version

    def __repr__(self) -> str:
        return f"{type(self).__name__}(version='{self._version}')"


class Flavor(BaseFlavor):
    """Default flavor: the canonical envelope shape, JSON text."""

    def get_plugin_name(self) -> str:
        return "Default"


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')
