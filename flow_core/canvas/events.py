"""
    Observer hooks shared by sessions and the canvas facade.
"""
import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

# ── Event names ──────────────────────────────────────────────────
EVENT_NODES_CHANGED = "nodes_changed"
EVENT_EDGES_CHANGED = "edges_changed"
EVENT_LAYOUT_APPLIED = "layout_applied"
EVENT_SESSION_CREATED = "session_created"
EVENT_SESSION_SWITCHED = "session_switched"
EVENT_SESSION_REMOVED = "session_removed"


class Observable:
    """Keeps ``event_name → [callback, ...]`` and fires them in subscription order."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable[..., Any]]] = {}

    def subscribe(self, event: str, callback: Callable[..., Any]) -> None:
        """Register a callback for an event."""
        self._listeners.setdefault(event, []).append(callback)

    def unsubscribe(self, event: str, callback: Callable[..., Any]) -> None:
        """Remove a previously registered callback."""
        listeners = self._listeners.get(event, [])
        if callback in listeners:
            listeners.remove(callback)

    def _notify(self, event: str, **kwargs: Any) -> None:
        """Fire all callbacks registered for the given event."""
        for cb in list(self._listeners.get(event, [])):
            try:
                cb(**kwargs)
            except Exception:
                logger.exception("Observer callback failed for '%s'", event)
