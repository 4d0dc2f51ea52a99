from .plugin import XmlFlavor

__all__ = ['XmlFlavor']
