# flow_api/exceptions.py
from typing import Iterable, Optional


class FlowGraphError(Exception):
    """Base class for all flow graph errors."""
    pass


class UnknownTypeError(FlowGraphError):
    """Raised when a node is created from a type key the registry does not know."""

    def __init__(self, type_key: str):
        self.type_key = type_key
        super().__init__(f"Unknown node type '{type_key}'.")


class DanglingEndpointError(FlowGraphError):
    """Raised when an edge references a node that is not in the graph."""

    def __init__(self, edge_id: Optional[str], missing: Iterable[str]):
        self.edge_id = edge_id
        self.missing = tuple(missing)
        super().__init__(
            f"Edge '{edge_id}' references missing node(s): {', '.join(self.missing)}"
        )


class FormatError(FlowGraphError):
    """Raised when an imported envelope violates the expected structure."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class ParseError(FlowGraphError):
    """Raised when a textual payload cannot be decoded."""
    pass
