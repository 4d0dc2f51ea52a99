"""
    Geometry value types and the layout direction enum.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class LayoutDirection(Enum):
    """Reading order of the layered layout"""
    TB = "TB"
    LR = "LR"

    @classmethod
    def from_value(cls, value: Any) -> 'LayoutDirection':
        """
        Accept an enum member or a string such as ``"LR"``, ``"tb"`` or ``"TD"``.
        """
        if isinstance(value, LayoutDirection):
            return value
        if isinstance(value, str):
            key = value.strip().upper()
            if key == "TD":
                key = "TB"
            try:
                return cls(key)
            except ValueError:
                pass
        raise ValueError(f"Unknown layout direction: {value!r}")

    @property
    def is_horizontal(self) -> bool:
        return self == LayoutDirection.LR


@dataclass(frozen=True)
class Position:
    """Top-left anchored canvas coordinate."""
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_value(cls, value: Any) -> 'Position':
        """
        Build a Position from a Position, a ``{x, y}`` mapping, an ``(x, y)``
        pair or ``None`` (origin).
        """
        if value is None:
            return cls()
        if isinstance(value, Position):
            return value
        if isinstance(value, dict):
            return cls(_to_float(value.get('x', 0.0), 'x'),
                       _to_float(value.get('y', 0.0), 'y'))
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return cls(_to_float(value[0], 'x'), _to_float(value[1], 'y'))
        raise ValueError(f"Cannot convert {value!r} to a position")

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y}

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)


@dataclass(frozen=True)
class Size:
    """Rendered (or estimated) footprint of a node."""
    width: float
    height: float

    @classmethod
    def from_value(cls, value: Any) -> Optional['Size']:
        """
        Build a Size from a Size, a ``{width, height}`` mapping or a
        ``(width, height)`` pair.  ``None`` and incomplete mappings yield ``None``.
        """
        if value is None:
            return None
        if isinstance(value, Size):
            return value
        if isinstance(value, dict):
            if value.get('width') is None or value.get('height') is None:
                return None
            return cls(_to_float(value['width'], 'width'),
                       _to_float(value['height'], 'height'))
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return cls(_to_float(value[0], 'width'), _to_float(value[1], 'height'))
        raise ValueError(f"Cannot convert {value!r} to a size")

    def padded(self, padding: float) -> 'Size':
        return Size(self.width + padding, self.height + padding)

    def to_dict(self) -> Dict[str, float]:
        return {'width': self.width, 'height': self.height}


def _to_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Cannot convert {name}={value!r} to float: {str(e)}")
