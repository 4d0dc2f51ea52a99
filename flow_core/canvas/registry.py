"""
    TypeRegistry - maps node type keys to renderers and default data.

    Design Pattern: Registry
    ────────────────────────
    One explicitly constructed registry per canvas, passed by reference to
    the sessions that consult it.  There is no module-level instance.

    Re-registering a key overwrites the previous registration and logs a
    warning, so type definitions can be hot-reloaded during development.
"""
import logging
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class TypeRegistration:
    """
    Everything the canvas knows about one node type.

    Attributes:
        type_key:     Unique key of the type.
        renderer:     Opaque capability supplied by the presentation layer.
        default_data: Payload every new instance starts from.
        icon:         Optional presentation icon.
        description:  Optional human-readable description.
    """
    type_key: str
    renderer: Any
    default_data: Dict[str, Any] = field(default_factory=dict)
    icon: Optional[Any] = None
    description: Optional[str] = None

    def create_data(self) -> Dict[str, Any]:
        """Fresh copy of the default data for a new node instance."""
        return deepcopy(self.default_data)


class TypeRegistry:
    """
    Registry of node types, ordered by first registration.

    Usage:
        registry = TypeRegistry()
        registry.register('start', StartRenderer, {'label': 'Start'})
        registry.get_renderer('start')      # → StartRenderer
        registry.get_config('missing')      # → None
    """

    def __init__(self):
        self._configs: Dict[str, TypeRegistration] = {}

    def register(
        self,
        type_key: str,
        renderer: Any,
        default_data: Optional[Mapping[str, Any]] = None,
        icon: Optional[Any] = None,
        description: Optional[str] = None,
    ) -> None:
        """
        Register a node type.  An existing registration for the same key is
        replaced (last write wins) and a warning is logged.
        """
        if type_key in self._configs:
            logger.warning('Node type "%s" is already registered. Overwriting...', type_key)

        self._configs[type_key] = TypeRegistration(
            type_key=type_key,
            renderer=renderer,
            default_data=deepcopy(dict(default_data or {})),
            icon=icon,
            description=description,
        )

    def register_batch(self, configs: Iterable[Union[TypeRegistration, Mapping[str, Any]]]) -> None:
        """
        Register several types in order.  Each entry is a ``TypeRegistration``
        or a mapping with ``type_key`` and ``renderer`` (plus optional
        ``default_data``, ``icon``, ``description``).  Entries are independent;
        nothing is rolled back.
        """
        for config in configs:
            if isinstance(config, TypeRegistration):
                self.register(config.type_key, config.renderer, config.default_data,
                              config.icon, config.description)
            else:
                self.register(
                    config['type_key'],
                    config['renderer'],
                    config.get('default_data'),
                    config.get('icon'),
                    config.get('description'),
                )

    def unregister(self, type_key: str) -> bool:
        """Remove a type; returns whether it was registered."""
        return self._configs.pop(type_key, None) is not None

    def get_renderer(self, type_key: str) -> Optional[Any]:
        config = self._configs.get(type_key)
        return config.renderer if config is not None else None

    def get_config(self, type_key: str) -> Optional[TypeRegistration]:
        return self._configs.get(type_key)

    def is_registered(self, type_key: str) -> bool:
        return type_key in self._configs

    def list_configs(self) -> List[TypeRegistration]:
        """All registrations in registration order."""
        return list(self._configs.values())

    def get_renderers(self) -> Dict[str, Any]:
        """``{type_key: renderer}`` table, as a host canvas consumes it."""
        return {key: config.renderer for key, config in self._configs.items()}

    def get_type_keys(self) -> List[str]:
        return list(self._configs.keys())

    def clear(self) -> None:
        self._configs.clear()

    def __len__(self) -> int:
        return len(self._configs)

    def __contains__(self, type_key: object) -> bool:
        return type_key in self._configs

    def __iter__(self) -> Iterator[TypeRegistration]:
        return iter(self.list_configs())

    def __repr__(self) -> str:
        return f"TypeRegistry(types={self.get_type_keys()})"
