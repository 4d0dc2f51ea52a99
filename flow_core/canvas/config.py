"""
    Canvas configuration - layout constants, flavor defaults, session policy.

    Every numeric layout constant is tunable; the footprint estimation
    values are heuristics, not load-bearing behavior.
"""
from dataclasses import dataclass, field
from typing import Any, Optional

from flow_api.types import LayoutDirection


@dataclass
class LayoutConfig:
    """
    Controls the layered layout.

    Attributes:
        node_spacing:           Minimum gap between neighbouring nodes of one layer.
        rank_spacing:           Minimum gap between consecutive layers.
        edge_spacing:           Gap reserved around virtual nodes of long edges.
        margin_x / margin_y:    Offset of the drawing from the canvas origin.
        footprint_padding:      Added to each axis of a known footprint.
        header_height:          Estimated header height of a node.
        content_height:         Estimated body height of an expanded node.
        label_length_threshold: Labels longer than this get ``wide_width``.
        wide_width / narrow_width: Estimated widths.
        direction:              Default reading order.
        max_crossing_passes:    Upper bound on barycenter sweeps.
        alignment_passes:       Coordinate refinement sweeps.
    """
    node_spacing: float = 80.0
    rank_spacing: float = 150.0
    edge_spacing: float = 10.0
    margin_x: float = 20.0
    margin_y: float = 20.0
    footprint_padding: float = 20.0
    header_height: float = 40.0
    content_height: float = 80.0
    label_length_threshold: int = 20
    wide_width: float = 280.0
    narrow_width: float = 200.0
    direction: LayoutDirection = LayoutDirection.LR
    max_crossing_passes: int = 24
    alignment_passes: int = 4


@dataclass
class FlavorConfig:
    """
    Attributes:
        version:        Envelope version stamped by the default flavor.
        text_indent:    Indentation of the JSON text form.
        default_flavor: Entry-point name used when a session names no flavor.
    """
    version: str = "1.0.0"
    text_indent: int = 2
    default_flavor: str = "default"


@dataclass
class CanvasConfig:
    """
    Top-level configuration of a canvas.

    Attributes:
        layout:            Layout constants.
        flavor:            Serialization defaults.
        strict_import:     Reject envelopes with dangling edges instead of
                           dropping those edges.
        fallback_renderer: Returned for nodes whose type is not registered.
    """
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    flavor: FlavorConfig = field(default_factory=FlavorConfig)
    strict_import: bool = False
    fallback_renderer: Optional[Any] = None
