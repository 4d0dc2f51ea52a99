"""
    Flavor discovery through the ``flow_canvas.flavor`` entry-point group.

    Each installed flavor distribution advertises its class under a short
    name (``rest``, ``graphql``, ...). Discovery is lazy and cached until
    ``reload``. PluginLoader is generic over the base class it accepts.
"""
import importlib.metadata
import logging
from typing import TypeVar, Generic, Type, Dict, List, Optional

from flow_api.plugins.base import BaseFlavor

logger = logging.getLogger(__name__)

TPlugin = TypeVar('TPlugin')

# Must match the entry_points declared in setup.py
FLAVOR_EP_GROUP = 'flow_canvas.flavor'


class PluginLoader(Generic[TPlugin]):
    """
    Name → instance table for one entry-point group.

    An entry point that fails to import, or whose target is not a subclass
    of ``base`` is logged and left out.
    """

    def __init__(self, base: Type[TPlugin], group: str):
        self._base = base
        self._group = group
        self._instances: Optional[Dict[str, TPlugin]] = None

    def get(self, name: str) -> Optional[TPlugin]:
        return self._discovered().get(name)

    def get_names(self) -> List[str]:
        return sorted(self._discovered())

    def reload(self) -> List[str]:
        """Drop the cache and scan the group again; returns the new names."""
        self._instances = None
        return self.get_names()

    def __len__(self) -> int:
        return len(self._discovered())

    def _discovered(self) -> Dict[str, TPlugin]:
        if self._instances is None:
            self._instances = {}
            for ep in _select_entry_points(self._group):
                instance = self._instantiate(ep)
                if instance is not None:
                    self._instances[ep.name] = instance
        return self._instances

    def _instantiate(self, ep) -> Optional[TPlugin]:
        try:
            target = ep.load()
            if not (isinstance(target, type) and issubclass(target, self._base)):
                logger.warning("Entry point '%s' in %s is not a %s, skipped",
                               ep.name, self._group, self._base.__name__)
                return None
            instance = target()
        except Exception:
            logger.exception("Could not load entry point '%s' from %s", ep.name, self._group)
            return None
        logger.info("Flavor '%s' -> %s", ep.name, type(instance).__name__)
        return instance


def _select_entry_points(group: str):
    entry_points = importlib.metadata.entry_points()

    # 3.10+ exposes select(); 3.8/3.9 return a dict of groups
    if hasattr(entry_points, 'select'):
        return entry_points.select(group=group)
    if isinstance(entry_points, dict):
        return entry_points.get(group, [])
    return [ep for ep in entry_points if ep.group == group]


def create_flavor_loader() -> PluginLoader[BaseFlavor]:
    return PluginLoader(BaseFlavor, FLAVOR_EP_GROUP)
