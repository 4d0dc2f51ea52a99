"""
    EdgeRecord - a directed connection between two nodes.
"""
from copy import deepcopy
from typing import Any, Dict, Mapping, Optional

# Top-level keys with a fixed meaning in the edge wire shape
EDGE_FIELDS = ('id', 'source', 'target', 'sourceHandle', 'targetHandle',
               'type', 'animated', 'style', 'data')


class EdgeRecord:
    """
        Directed edge from ``source_id`` to ``target_id``, optionally bound
        to named handles on either end.  Parallel edges are allowed.
    """

    def __init__(
            self,
            edge_id: Any,
            source_id: Any,
            target_id: Any,
            source_handle: Optional[str] = None,
            target_handle: Optional[str] = None,
            data: Optional[Mapping[str, Any]] = None,
            **extra
    ):
        """
        Initialize an edge.

        Args:
            edge_id:       Unique identifier within the graph (converted to str)
            source_id:     ID of the source node
            target_id:     ID of the target node
            source_handle: Optional connection point on the source
            target_handle: Optional connection point on the target
            data:          Optional payload mapping, copied
            **extra:       Arbitrary top-level fields (``type``, ``animated``, ``style``, ...)
        """
        self.edge_id = str(edge_id)
        self.source_id = str(source_id)
        self.target_id = str(target_id)
        self.source_handle = source_handle
        self.target_handle = target_handle
        self.data: Optional[Dict[str, Any]] = deepcopy(dict(data)) if data is not None else None
        self.extra: Dict[str, Any] = deepcopy(extra)

    def is_self_loop(self) -> bool:
        return self.source_id == self.target_id

    def copy(self) -> 'EdgeRecord':
        clone = EdgeRecord(self.edge_id, self.source_id, self.target_id,
                           self.source_handle, self.target_handle, self.data)
        clone.extra = deepcopy(self.extra)
        return clone

    def to_dict(self) -> Dict[str, Any]:
        """Convert edge to the canonical wire dictionary, omitting unset optionals."""
        result: Dict[str, Any] = {
            'id': self.edge_id,
            'source': self.source_id,
            'target': self.target_id,
        }
        if self.source_handle is not None:
            result['sourceHandle'] = self.source_handle
        if self.target_handle is not None:
            result['targetHandle'] = self.target_handle
        if self.data is not None:
            result['data'] = deepcopy(self.data)
        for key, value in self.extra.items():
            result.setdefault(key, deepcopy(value))
        return result

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> 'EdgeRecord':
        """Build an edge from the canonical wire dictionary; unknown keys go to ``extra``."""
        edge = cls(
            raw.get('id'),
            raw.get('source'),
            raw.get('target'),
            raw.get('sourceHandle'),
            raw.get('targetHandle'),
            raw.get('data'),
        )
        skip = {'id', 'source', 'target', 'sourceHandle', 'targetHandle', 'data'}
        edge.extra = deepcopy({k: v for k, v in raw.items() if k not in skip})
        return edge

    def __repr__(self) -> str:
        return f"EdgeRecord({self.edge_id}: {self.source_id} -> {self.target_id})"

    def __eq__(self, other) -> bool:
        """Two edges are equal if they have the same ID"""
        if not isinstance(other, EdgeRecord):
            return False
        return self.edge_id == other.edge_id

    def __hash__(self) -> int:
        return hash(self.edge_id)
