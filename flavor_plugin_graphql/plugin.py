"""
    GraphQL flavor: typed objects as a GraphQL API returns them.

    Every object carries ``__typename``; node data travels as a JSON string
    and size as a nested ``dimensions`` object; edge ``animated`` / ``style``
    are grouped under ``config``.
"""
import json
from typing import Any, Dict, List, Mapping, Optional, Sequence

from flow_api.exceptions import FormatError
from flow_api.models.edge import EdgeRecord
from flow_api.models.node import NodeRecord
from flow_api.plugins import BaseFlavor
from flow_api.types import Position

GRAPHQL_VERSION = "2.0.0"


class GraphQLFlavor(BaseFlavor):

    def __init__(self, version: Optional[str] = None, indent: int = 2):
        super().__init__(version or GRAPHQL_VERSION, indent)

    def get_plugin_name(self) -> str:
        return "GraphQL"

    def serialize_nodes(self, nodes: Sequence[Any]) -> List[Dict[str, Any]]:
        result = []
        for node in super().serialize_nodes(nodes):
            position = Position.from_value(node.pop('position', None))
            out = {
                '__typename': 'FlowNode',
                'id': node.pop('id'),
                'type': node.pop('type'),
                'position': {'__typename': 'Position', 'x': position.x, 'y': position.y},
                'data': json.dumps(node.pop('data', None) or {}, default=str),
            }
            width, height = node.pop('width', None), node.pop('height', None)
            if width is not None or height is not None:
                out['dimensions'] = {'__typename': 'Dimensions', 'width': width, 'height': height}
            out.update(node)
            result.append(out)
        return result

    def serialize_edges(self, edges: Sequence[Any]) -> List[Dict[str, Any]]:
        result = []
        for edge in super().serialize_edges(edges):
            config = {'__typename': 'EdgeConfig'}
            for key in ('animated', 'style'):
                if key in edge:
                    config[key] = edge.pop(key)
            out = {'__typename': 'FlowEdge'}
            out.update(edge)
            out['config'] = config
            result.append(out)
        return result

    def validate(self, envelope: Any) -> None:
        """
        Raises:
            FormatError: On a structural problem, or (``field='data'``) on a
                         node whose ``data`` string is not JSON.
        """
        super().validate(envelope)
        for node in envelope['nodes']:
            if isinstance(node, Mapping):
                _parse_data(node.get('data'))

    def deserialize_nodes(self, nodes: Sequence[Any]) -> List[NodeRecord]:
        canonical = []
        for node in nodes:
            fields = {k: v for k, v in node.items() if k not in ('__typename', 'dimensions')}
            position = node.get('position') or {}
            fields['position'] = {'x': position.get('x') or 0, 'y': position.get('y') or 0}
            fields['data'] = _parse_data(node.get('data'))
            dimensions = node.get('dimensions') or {}
            for key in ('width', 'height'):
                if dimensions.get(key) is not None:
                    fields[key] = dimensions[key]
            canonical.append(fields)
        return super().deserialize_nodes(canonical)

    def deserialize_edges(self, edges: Sequence[Any]) -> List[EdgeRecord]:
        canonical = []
        for edge in edges:
            fields = {k: v for k, v in edge.items() if k not in ('__typename', 'config')}
            config = edge.get('config') or {}
            for key in ('animated', 'style'):
                if config.get(key) is not None:
                    fields[key] = config[key]
            canonical.append(fields)
        return super().deserialize_edges(canonical)


def _parse_data(value: Any) -> Dict[str, Any]:
    if not isinstance(value, str):
        return value or {}
    try:
        return json.loads(value)
    except ValueError as e:
        raise FormatError(f"Invalid data format: node data is not valid JSON: {e}", field='data') from e
