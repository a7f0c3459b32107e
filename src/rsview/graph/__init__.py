"""
Graph sanitization and rendering.

Provides:
- DotSanitizer: best-effort repair of backend-produced DOT text
- GraphRenderer: SVG rendering with per-surface zoom, drag and export
"""

from .interaction import DragState, ViewTransform
from .renderer import (
    ExportedArtifact,
    GraphRenderer,
    GraphvizEngine,
    LayoutEngine,
    Surface,
    SurfaceStatus,
)
from .sanitizer import DotSanitizer, DotValidation, RepairWarning

__all__ = [
    "DotSanitizer",
    "DotValidation",
    "DragState",
    "ExportedArtifact",
    "GraphRenderer",
    "GraphvizEngine",
    "LayoutEngine",
    "RepairWarning",
    "Surface",
    "SurfaceStatus",
    "ViewTransform",
]
