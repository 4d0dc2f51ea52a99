from .plugin import RestApiFlavor

__all__ = ['RestApiFlavor']
