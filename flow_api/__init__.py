"""
Flow Canvas API - graph records, value types, errors and the Flavor contract.
"""
from .types import LayoutDirection, Position, Size
from .exceptions import (
    FlowGraphError,
    UnknownTypeError,
    DanglingEndpointError,
    FormatError,
    ParseError,
)
from .models.node import NodeRecord
from .models.edge import EdgeRecord
from .models.graph import FlowGraph, GraphSnapshot
from .plugins.base import BaseFlavor, Flavor

__all__ = [
    'LayoutDirection',
    'Position',
    'Size',
    'FlowGraphError',
    'UnknownTypeError',
    'DanglingEndpointError',
    'FormatError',
    'ParseError',
    'NodeRecord',
    'EdgeRecord',
    'FlowGraph',
    'GraphSnapshot',
    'BaseFlavor',
    'Flavor',
]
