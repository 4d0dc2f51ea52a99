"""
    REST flavor: flat, backend-style keys.

    Nodes travel as ``{nodeId, nodeType, x, y, properties, width?, height?}``
    and edges as ``{edgeId, from, to, fromHandle?, toHandle?, edgeType?,
    isAnimated?, styleConfig?, properties?}``.
"""
from typing import Any, Dict, List, Optional, Sequence

from flow_api.models.edge import EdgeRecord
from flow_api.models.node import NodeRecord
from flow_api.plugins import BaseFlavor
from flow_api.types import Position

# canonical key → REST key
NODE_KEYS = {'id': 'nodeId', 'type': 'nodeType', 'data': 'properties'}
EDGE_KEYS = {
    'id': 'edgeId',
    'source': 'from',
    'target': 'to',
    'sourceHandle': 'fromHandle',
    'targetHandle': 'toHandle',
    'type': 'edgeType',
    'animated': 'isAnimated',
    'style': 'styleConfig',
    'data': 'properties',
}


class RestApiFlavor(BaseFlavor):
    """Flavor for a RESTful backend."""

    def get_plugin_name(self) -> str:
        return "REST API"

    def serialize_nodes(self, nodes: Sequence[Any]) -> List[Dict[str, Any]]:
        result = []
        for node in super().serialize_nodes(nodes):
            position = Position.from_value(node.pop('position', None))
            out = _rename(node, NODE_KEYS)
            out['x'] = position.x
            out['y'] = position.y
            result.append(out)
        return result

    def serialize_edges(self, edges: Sequence[Any]) -> List[Dict[str, Any]]:
        return [_rename(edge, EDGE_KEYS) for edge in super().serialize_edges(edges)]

    def deserialize_nodes(self, nodes: Sequence[Any]) -> List[NodeRecord]:
        canonical = []
        for node in nodes:
            fields = _rename(node, _inverse(NODE_KEYS))
            fields['position'] = {'x': fields.pop('x', 0) or 0, 'y': fields.pop('y', 0) or 0}
            canonical.append(fields)
        return super().deserialize_nodes(canonical)

    def deserialize_edges(self, edges: Sequence[Any]) -> List[EdgeRecord]:
        return super().deserialize_edges([_rename(edge, _inverse(EDGE_KEYS)) for edge in edges])

    def transform_metadata(self, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return {
            **super().transform_metadata(metadata),
            'apiVersion': 'v1',
            'source': 'flow-canvas',
            'platform': 'python',
        }


def _rename(fields: Dict[str, Any], mapping: Dict[str, str]) -> Dict[str, Any]:
    """Rename known keys and drop them when unset; other keys pass through as-is."""
    return {mapping.get(key, key): value for key, value in fields.items()
            if key not in mapping or value is not None}


def _inverse(mapping: Dict[str, str]) -> Dict[str, str]:
    return {value: key for key, value in mapping.items()}
