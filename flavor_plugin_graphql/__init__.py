from .plugin import GraphQLFlavor

__all__ = ['GraphQLFlavor']
