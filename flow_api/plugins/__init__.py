"""
Plugin contracts - the Flavor serialization pipeline.
"""
from .base import BaseFlavor, Flavor, DEFAULT_VERSION

__all__ = ['BaseFlavor', 'Flavor', 'DEFAULT_VERSION']
