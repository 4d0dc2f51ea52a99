"""
Core services - the layered layout engine.
"""
from .layout_service import LayoutEngine, FootprintLookup

__all__ = ['LayoutEngine', 'FootprintLookup']
