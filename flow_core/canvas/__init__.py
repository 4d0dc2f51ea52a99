"""
Flow Canvas - core package.

Public API:
    TypeRegistry   – node type → renderer / default data
    CanvasConfig   – top-level configuration
    PluginLoader   – generic plugin discovery

Note: GraphSession and FlowCanvas are intentionally NOT imported eagerly;
the layout service imports ``flow_core.canvas.config`` and the session
imports the layout service.  Import them directly:
``from flow_core.canvas.session import GraphSession``,
``from flow_core.canvas.core import FlowCanvas``.
"""
from .config import CanvasConfig, FlavorConfig, LayoutConfig
from .registry import TypeRegistry, TypeRegistration
from .plugin_loader import PluginLoader, create_flavor_loader, FLAVOR_EP_GROUP

__all__ = [
    'TypeRegistry',
    'TypeRegistration',
    'CanvasConfig',
    'FlavorConfig',
    'LayoutConfig',
    'PluginLoader',
    'create_flavor_loader',
    'FLAVOR_EP_GROUP',
]
