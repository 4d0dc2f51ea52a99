"""
    Encoded flavor: node payloads are base64-wrapped JSON.

    Obfuscation only, not encryption.
"""
import base64
import binascii
import json
from typing import Any, Dict, List, Mapping, Optional, Sequence

from flow_api.exceptions import FormatError
from flow_api.models.node import NodeRecord
from flow_api.plugins import BaseFlavor

ALGORITHM = "base64"


class EncodedFlavor(BaseFlavor):

    def get_plugin_name(self) -> str:
        return "Encoded"

    def serialize_nodes(self, nodes: Sequence[Any]) -> List[Dict[str, Any]]:
        serialized = super().serialize_nodes(nodes)
        return [
            {**node, 'data': {'encoded': True, 'value': self.encode_value(node.get('data') or {})}}
            for node in serialized
        ]

    def validate(self, envelope: Any) -> None:
        """
        Raises:
            FormatError: On a structural problem, or (``field='data'``) on a
                         node whose encoded payload is not base64-wrapped JSON.
        """
        super().validate(envelope)
        for node in envelope['nodes']:
            data = _encoded_data(node)
            if data is not None:
                self.decode_value(data.get('value'))

    def deserialize_nodes(self, nodes: Sequence[Any]) -> List[NodeRecord]:
        decoded = []
        for node in nodes:
            data = _encoded_data(node)
            if data is not None:
                node = {**node, 'data': self.decode_value(data.get('value'))}
            decoded.append(node)
        return super().deserialize_nodes(decoded)

    def transform_metadata(self, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return {
            **super().transform_metadata(metadata),
            'encoded': True,
            'algorithm': ALGORITHM,
        }

    @staticmethod
    def encode_value(data: Any) -> str:
        raw = json.dumps(data, default=str, ensure_ascii=False).encode('utf-8')
        return base64.b64encode(raw).decode('ascii')

    @staticmethod
    def decode_value(value: Any) -> Any:
        """
        Raises:
            FormatError: If ``value`` is not base64-wrapped JSON.
        """
        try:
            return json.loads(base64.b64decode(value, validate=True).decode('utf-8'))
        except (TypeError, ValueError, binascii.Error) as e:
            raise FormatError(f"Invalid data format: cannot decode node data: {e}", field='data') from e


def _encoded_data(node: Any) -> Optional[Mapping[str, Any]]:
    data = node.get('data') if isinstance(node, Mapping) else None
    if isinstance(data, Mapping) and data.get('encoded'):
        return data
    return None
