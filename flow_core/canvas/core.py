"""
    FlowCanvas - the entry point an application builds once per canvas.

    Design Patterns applied
    ───────────────────────
    • Facade           – hides plugin discovery, session bookkeeping and
                         flavor conversion behind one object.
    • Strategy         – each session serializes through a pluggable Flavor.
    • Repository       – ``_sessions`` dict hides storage details.
    • Observer (hooks) – session lifecycle events.

    The canvas is constructed explicitly; several canvases may coexist in
    one process, each with its own TypeRegistry.
"""
import logging
from typing import Dict, List, Optional, Sequence, Union

from flow_api.models.edge import EdgeRecord
from flow_api.models.node import NodeRecord
from flow_api.plugins.base import BaseFlavor, Flavor

from flow_core.services.layout_service import FootprintLookup, LayoutEngine
from .config import CanvasConfig
from .events import (
    Observable,
    EVENT_SESSION_CREATED,
    EVENT_SESSION_SWITCHED,
    EVENT_SESSION_REMOVED,
)
from .plugin_loader import PluginLoader, create_flavor_loader
from .registry import TypeRegistry
from .session import GraphSession

logger = logging.getLogger(__name__)


class FlowCanvas(Observable):
    """
    Owns the type registry, the shared layout engine, the flavor loader
    and every open session.

    Usage:
        canvas = FlowCanvas()
        canvas.registry.register('task', TaskRenderer, {'label': 'Task'})
        session = canvas.create_session('main', flavor='rest')
        session.create_node('task', {'x': 0, 'y': 0})
    """

    def __init__(self, config: Optional[CanvasConfig] = None,
                 registry: Optional[TypeRegistry] = None,
                 flavor_loader: Optional[PluginLoader[BaseFlavor]] = None):
        super().__init__()
        self._config: CanvasConfig = config or CanvasConfig()
        self._registry = registry if registry is not None else TypeRegistry()
        self._layout_engine = LayoutEngine(self._config.layout)
        self._flavor_loader: PluginLoader[BaseFlavor] = flavor_loader or create_flavor_loader()

        self._sessions: Dict[str, GraphSession] = {}
        self._active_session_id: Optional[str] = None

        logger.info("FlowCanvas initialized.")

    # ── Configuration ────────────────────────────────────────────

    @property
    def config(self) -> CanvasConfig:
        return self._config

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    @property
    def layout_engine(self) -> LayoutEngine:
        return self._layout_engine

    # ── Flavor discovery ─────────────────────────────────────────

    def get_flavor_names(self) -> List[str]:
        """Sorted list of installed flavor names."""
        return self._flavor_loader.get_names()

    def get_flavor(self, name: Optional[str] = None) -> BaseFlavor:
        """
        Installed flavor by entry-point name.  The configured default name
        always resolves, to the built-in Flavor when none is installed
        under it.

        Raises:
            ValueError: If no flavor is installed under ``name``.
        """
        name = name or self._config.flavor.default_flavor
        flavor = self._flavor_loader.get(name)
        if flavor is not None:
            return flavor
        if name == self._config.flavor.default_flavor:
            return Flavor(self._config.flavor.version, self._config.flavor.text_indent)
        raise ValueError(
            f"Flavor '{name}' not found. "
            f"Available: {self._flavor_loader.get_names()}"
        )

    def reload_plugins(self) -> None:
        """Force re-discovery of flavor plugins."""
        self._flavor_loader.reload()
        logger.info("Plugins reloaded: %d flavors", len(self._flavor_loader))

    def convert(self, text: str, source_flavor: str, target_flavor: str) -> str:
        """
        Re-encode a text document from one flavor to another.

        Raises:
            ParseError:  If ``text`` cannot be decoded by the source flavor.
            FormatError: If the decoded document is not a valid envelope.
            ValueError:  If either flavor is unknown.
        """
        source = self.get_flavor(source_flavor)
        target = self.get_flavor(target_flavor)
        nodes, edges = source.import_from_text(text)
        return target.export_to_text(nodes, edges)

    # ── Session management ───────────────────────────────────────

    def create_session(
        self,
        name: Optional[str] = None,
        flavor: Union[str, BaseFlavor, None] = None,
        nodes: Sequence[NodeRecord] = (),
        edges: Sequence[EdgeRecord] = (),
        footprint_lookup: Optional[FootprintLookup] = None,
    ) -> GraphSession:
        """
        Create a session, make it active and return it.

        Args:
            name:             Human-readable label.
            flavor:           Flavor instance or entry-point name (default flavor if omitted).
            nodes / edges:    Initial content.
            footprint_lookup: Host canvas footprint query used by ``apply_layout``.
        """
        if not isinstance(flavor, BaseFlavor):
            flavor = self.get_flavor(flavor)

        session = GraphSession(
            self._registry,
            flavor=flavor,
            layout_engine=self._layout_engine,
            config=self._config,
            name=name,
            nodes=nodes,
            edges=edges,
            footprint_lookup=footprint_lookup,
        )
        self._add_session(session)
        return session

    def clone_session(self, session_id: Optional[str] = None,
                      name: Optional[str] = None) -> GraphSession:
        """Clone a session (the active one by default) and activate the copy."""
        session = self._resolve_session(session_id).clone(name)
        self._add_session(session)
        return session

    def get_session(self, session_id: str) -> Optional[GraphSession]:
        return self._sessions.get(session_id)

    def get_active_session(self) -> Optional[GraphSession]:
        if self._active_session_id is None:
            return None
        return self._sessions.get(self._active_session_id)

    def set_active_session(self, session_id: str) -> GraphSession:
        """
        Raises:
            ValueError: If the session ID does not exist.
        """
        if session_id not in self._sessions:
            raise ValueError(f"Session '{session_id}' not found.")
        self._active_session_id = session_id
        session = self._sessions[session_id]
        self._notify(EVENT_SESSION_SWITCHED, session=session)
        return session

    def remove_session(self, session_id: str) -> bool:
        if session_id not in self._sessions:
            return False
        del self._sessions[session_id]
        if self._active_session_id == session_id:
            self._active_session_id = next(iter(self._sessions), None)
        self._notify(EVENT_SESSION_REMOVED, session_id=session_id)
        return True

    def list_sessions(self) -> List[dict]:
        """Metadata dicts for all sessions."""
        return [session.to_dict() for session in self._sessions.values()]

    # ── Internal helpers ─────────────────────────────────────────

    def _add_session(self, session: GraphSession) -> None:
        self._sessions[session.session_id] = session
        self._active_session_id = session.session_id
        logger.info("Session created: %s (%s)", session.session_id[:8], session.name)
        self._notify(EVENT_SESSION_CREATED, session=session)

    def _resolve_session(self, session_id: Optional[str] = None) -> GraphSession:
        """
        Raises:
            RuntimeError: If no session can be resolved.
        """
        sid = session_id or self._active_session_id
        if sid is None:
            raise RuntimeError("No active session.")
        session = self._sessions.get(sid)
        if session is None:
            raise RuntimeError(f"Session '{sid}' not found.")
        return session

    def __repr__(self) -> str:
        return (
            f"FlowCanvas(sessions={len(self._sessions)}, "
            f"types={len(self._registry)}, "
            f"flavors={len(self._flavor_loader)})"
        )
