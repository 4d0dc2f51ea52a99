# tests/conftest.py
"""
Shared test fixtures.
Stub flow: a small ETL pipeline with 6 nodes and 6 edges.
One diamond (extract fans out to clean and enrich), one edge that spans
two layers (source -> load) and a node of an unregistered type.
"""
import pytest

from flow_api.models.edge import EdgeRecord
from flow_api.models.node import NodeRecord
from flow_core.canvas.config import CanvasConfig
from flow_core.canvas.registry import TypeRegistry
from flow_core.canvas.session import GraphSession


class InputRenderer:
    pass


class ProcessRenderer:
    pass


class OutputRenderer:
    pass


class FallbackRenderer:
    pass


# ── Type definitions ─────────────────────────────────────────────
_TYPES = [
    ("input",   InputRenderer,   {"label": "Input", "rate": 1}),
    ("process", ProcessRenderer, {"label": "Process", "retries": 3, "options": {"parallel": False}}),
    ("output",  OutputRenderer,  {}),
]

# ── Node definitions ─────────────────────────────────────────────
_NODES = [
    ("source",  "input",   (0, 0),     {"label": "Source"}),
    ("extract", "process", (100, 0),   {"label": "Extract", "retries": 1}),
    ("clean",   "process", (200, -50), {"label": "Clean"}),
    ("enrich",  "process", (200, 50),  {"label": "Enrich with reference data", "collapsed": True}),
    ("load",    "output",  (300, 0),   {"label": "Load"}),
    ("audit",   "legacy",  (0, 200),   {"label": "Audit"}),
]

# ── Edge definitions ─────────────────────────────────────────────
_EDGES = [
    ("e1", "source",  "extract"),
    ("e2", "extract", "clean"),
    ("e3", "extract", "enrich"),
    ("e4", "clean",   "load"),
    ("e5", "enrich",  "load"),
    ("e6", "source",  "load"),
]


def build_nodes():
    return [NodeRecord(node_id, type_key, position, data)
            for node_id, type_key, position, data in _NODES]


def build_edges():
    return [EdgeRecord(edge_id, source, target) for edge_id, source, target in _EDGES]


# ── Pytest fixtures ──────────────────────────────────────────────

@pytest.fixture
def registry() -> TypeRegistry:
    """Registry with the input / process / output types."""
    reg = TypeRegistry()
    for type_key, renderer, default_data in _TYPES:
        reg.register(type_key, renderer, default_data)
    return reg


@pytest.fixture
def pipeline_nodes():
    return build_nodes()


@pytest.fixture
def pipeline_edges():
    return build_edges()


@pytest.fixture
def session(registry) -> GraphSession:
    """Empty session bound to the stub registry."""
    return GraphSession(registry, config=CanvasConfig(fallback_renderer=FallbackRenderer))


@pytest.fixture
def pipeline_session(registry) -> GraphSession:
    """Session pre-loaded with the stub pipeline."""
    return GraphSession(
        registry,
        config=CanvasConfig(fallback_renderer=FallbackRenderer),
        name="pipeline",
        nodes=build_nodes(),
        edges=build_edges(),
    )
