"""
    NodeRecord - a positioned, typed node of the flow graph.
"""
from copy import deepcopy
from typing import Any, Dict, Mapping, Optional

from ..types import Position, Size

# Top-level keys with a fixed meaning in the node wire shape
NODE_FIELDS = ('id', 'type', 'position', 'data', 'width', 'height', 'selected', 'dragging')


class NodeRecord:
    """
    A node instance on the canvas.

    ``data`` is an open mapping (it carries a ``label`` by convention) and
    ``extra`` keeps any other top-level field (``selected``, ``dragging`` or
    a backend-specific key) so it survives a round trip untouched.
    """

    def __init__(
            self,
            node_id: Any,
            type_key: str,
            position: Any = None,
            data: Optional[Mapping[str, Any]] = None,
            size: Any = None,
            **extra
    ):
        """
        Initialize a node.

        Args:
            node_id:  Unique identifier within the graph (converted to str)
            type_key: Registry key of the node type
            position: Top-left position (Position, mapping or pair; origin if omitted)
            data:     Payload mapping, copied
            size:     Optional known footprint
            **extra:  Arbitrary top-level fields
        """
        self.node_id = str(node_id)
        self.type_key = type_key
        self.position: Position = Position.from_value(position)
        self.data: Dict[str, Any] = deepcopy(dict(data)) if data else {}
        self.size: Optional[Size] = Size.from_value(size)
        self.extra: Dict[str, Any] = deepcopy(extra)

    @property
    def label(self) -> str:
        """Human-readable label, falling back to the type key."""
        label = self.data.get('label')
        return str(label) if label not in (None, '') else str(self.type_key or '')

    @property
    def collapsed(self) -> bool:
        return bool(self.data.get('collapsed', False))

    def with_position(self, position: Any) -> 'NodeRecord':
        """Return a copy of this node moved to ``position``."""
        clone = self.copy()
        clone.position = Position.from_value(position)
        return clone

    def copy(self) -> 'NodeRecord':
        clone = NodeRecord(self.node_id, self.type_key, self.position, self.data, self.size)
        clone.extra = deepcopy(self.extra)
        return clone

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert node to the canonical wire dictionary.
        ``width`` / ``height`` only appear when the size is known.
        """
        result: Dict[str, Any] = {
            'id': self.node_id,
            'type': self.type_key,
            'position': self.position.to_dict(),
            'data': deepcopy(self.data),
        }
        if self.size is not None:
            result['width'] = self.size.width
            result['height'] = self.size.height
        for key, value in self.extra.items():
            result.setdefault(key, deepcopy(value))
        return result

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> 'NodeRecord':
        """
        Build a node from the canonical wire dictionary.
        Missing ``position`` means the origin, missing ``data`` an empty payload,
        and every unrecognised key is kept in ``extra``.
        """
        size = Size.from_value({'width': raw.get('width'), 'height': raw.get('height')})
        skip = {'id', 'type', 'position', 'data'}
        if size is not None:
            skip.update(('width', 'height'))
        node = cls(raw.get('id'), raw.get('type'), raw.get('position') or None,
                   raw.get('data') or {}, size)
        # Assigned directly: custom keys may shadow constructor parameter names
        node.extra = deepcopy({k: v for k, v in raw.items() if k not in skip})
        return node

    def __repr__(self) -> str:
        return f"NodeRecord({self.node_id}, type={self.type_key}, x={self.position.x}, y={self.position.y})"

    def __eq__(self, other) -> bool:
        """Two nodes are equal if they have the same ID"""
        if not isinstance(other, NodeRecord):
            return False
        return self.node_id == other.node_id

    def __hash__(self) -> int:
        return hash(self.node_id)
