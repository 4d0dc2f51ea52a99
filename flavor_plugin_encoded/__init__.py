from .plugin import EncodedFlavor

__all__ = ['EncodedFlavor']
