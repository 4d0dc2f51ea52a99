from .node import NodeRecord, NODE_FIELDS
from .edge import EdgeRecord, EDGE_FIELDS
from .graph import FlowGraph, GraphSnapshot

__all__ = [
    'NodeRecord',
    'NODE_FIELDS',
    'EdgeRecord',
    'EDGE_FIELDS',
    'FlowGraph',
    'GraphSnapshot',
]
