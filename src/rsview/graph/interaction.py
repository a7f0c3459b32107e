"""
Pan and zoom bookkeeping for rendered graphs.

The host feeds wheel and pointer events in; the renderer keeps one
ViewTransform per surface and hands its CSS form back for display.
"""

from dataclasses import dataclass
from typing import Tuple

from ..config import MAX_ZOOM, MIN_ZOOM, ZOOM_IN_STEP, ZOOM_OUT_STEP


def clamp_zoom(value: float) -> float:
    return max(MIN_ZOOM, min(MAX_ZOOM, value))


def next_zoom(current: float, delta_y: float) -> float:
    """Scroll down zooms out by 10%, anything else zooms in by 10%."""
    step = ZOOM_OUT_STEP if delta_y > 0 else ZOOM_IN_STEP
    return clamp_zoom(current * step)


@dataclass
class ViewTransform:
    """Scale plus translation applied to a rendered graph."""
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0

    @property
    def is_identity(self) -> bool:
        return self.scale == 1.0 and self.offset_x == 0.0 and self.offset_y == 0.0

    def css(self) -> str:
        return (
            f"scale({self.scale:g}) "
            f"translate({self.offset_x:g}px, {self.offset_y:g}px)"
        )


@dataclass(frozen=True)
class DragState:
    """
    One pointer-drag session.

    Attributes:
        start_x: Pointer x at press.
        start_y: Pointer y at press.
        origin_x: Transform x offset at press.
        origin_y: Transform y offset at press.
    """
    start_x: float
    start_y: float
    origin_x: float = 0.0
    origin_y: float = 0.0

    def offset_for(self, x: float, y: float) -> Tuple[float, float]:
        return (
            self.origin_x + (x - self.start_x),
            self.origin_y + (y - self.start_y),
        )
