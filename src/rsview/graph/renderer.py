"""
Graph Render and Interaction Engine.

Turns DOT text into SVG through a pluggable layout engine and keeps, per
surface id:
    - the last successful render (GraphRenderState)
    - the zoom factor, which survives re-renders until reset
    - the current view transform and drag session

Rendering problems never raise to the caller. They show up as the surface's
status: UNAVAILABLE when the engine cannot start, ERROR when a render fails.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol

import graphviz

from ..core.errors import NothingToExportError, RenderError, RenderUnavailableError
from ..core.types import GraphRenderState
from .interaction import DragState, ViewTransform, next_zoom
from .sanitizer import DotSanitizer

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER = "No graph to display"
SVG_MEDIA_TYPE = "image/svg+xml"


class LayoutEngine(Protocol):
    """External graph layout capability."""

    def initialize(self) -> None:
        """Prepare the engine. Raises RenderUnavailableError when it cannot."""
        ...

    def render_svg(self, dot: str) -> str:
        """Lay out ``dot`` and return SVG markup. Raises RenderError."""
        ...


class GraphvizEngine:
    """LayoutEngine backed by the Graphviz executables via ``graphviz``."""

    def __init__(self, engine: str = "dot"):
        self.engine = engine
        self.version: Optional[str] = None

    def initialize(self) -> None:
        try:
            self.version = ".".join(str(part) for part in graphviz.version())
        except graphviz.ExecutableNotFound as e:
            raise RenderUnavailableError(f"Graphviz executables not found: {e}") from e
        except (graphviz.CalledProcessError, RuntimeError) as e:
            raise RenderUnavailableError(f"Graphviz is not usable: {e}") from e
        logger.debug(f"Graphviz {self.version} ready")

    def render_svg(self, dot: str) -> str:
        try:
            return graphviz.Source(dot, engine=self.engine).pipe(format="svg", encoding="utf-8")
        except graphviz.ExecutableNotFound as e:
            raise RenderUnavailableError(f"Graphviz executables not found: {e}") from e
        except graphviz.CalledProcessError as e:
            stderr = e.stderr.decode("utf-8", "replace") if isinstance(e.stderr, bytes) else e.stderr
            raise RenderError(f"Graphviz failed: {(stderr or str(e)).strip()}") from e
        except (OSError, UnicodeError) as e:
            raise RenderError(f"Graphviz failed: {e}") from e


class SurfaceStatus(StrEnum):
    EMPTY = "empty"
    UNAVAILABLE = "unavailable"
    LOADING = "loading"
    ERROR = "error"
    RENDERED = "rendered"


@dataclass
class Surface:
    """
    What a host should currently display for one surface id.

    ``content`` holds SVG markup when RENDERED, otherwise the placeholder or
    status message.
    """
    surface_id: str
    placeholder: str = DEFAULT_PLACEHOLDER
    status: SurfaceStatus = SurfaceStatus.EMPTY
    content: str = ""
    transform: ViewTransform = field(default_factory=ViewTransform)
    drag: Optional[DragState] = None

    def __post_init__(self):
        if not self.content:
            self.content = self.placeholder

    def show(self, status: SurfaceStatus, content: str, transform: Optional[ViewTransform] = None) -> None:
        self.status = status
        self.content = content
        self.transform = transform or ViewTransform()
        self.drag = None

    def reset(self) -> None:
        self.show(SurfaceStatus.EMPTY, self.placeholder)

    @property
    def is_rendered(self) -> bool:
        return self.status is SurfaceStatus.RENDERED


@dataclass(frozen=True)
class ExportedArtifact:
    """A rendered graph ready to be saved."""
    filename: str
    content: str
    media_type: str = SVG_MEDIA_TYPE

    def write_to(self, directory: Path) -> Path:
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / self.filename
        path.write_text(self.content, encoding="utf-8")
        return path


class GraphRenderer:
    """
    Renders DOT onto named surfaces and tracks their view state.

    Args:
        engine: Layout capability, GraphvizEngine if None.
        sanitizer: DOT repairer, DotSanitizer if None.
        clock: Timestamp source for export filenames.
    """

    def __init__(
        self,
        engine: Optional[LayoutEngine] = None,
        sanitizer: Optional[DotSanitizer] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.engine = engine or GraphvizEngine()
        self.sanitizer = sanitizer or DotSanitizer()
        self._clock = clock
        self._engine_ready = False
        self._surfaces: Dict[str, Surface] = {}
        self._states: Dict[str, GraphRenderState] = {}
        self._zoom: Dict[str, float] = {}

    # --- Surfaces ---

    def register_surface(self, surface_id: str, placeholder: str = DEFAULT_PLACEHOLDER) -> Surface:
        surface = self._surfaces.get(surface_id)
        if surface is None:
            surface = Surface(surface_id=surface_id, placeholder=placeholder)
            self._surfaces[surface_id] = surface
        else:
            surface.placeholder = placeholder
        return surface

    def get_surface(self, surface_id: str) -> Optional[Surface]:
        return self._surfaces.get(surface_id)

    def get_state(self, surface_id: str) -> Optional[GraphRenderState]:
        return self._states.get(surface_id)

    def zoom_factor(self, surface_id: str) -> float:
        return self._zoom.get(surface_id, 1.0)

    # --- Rendering ---

    def _ensure_engine(self) -> Optional[str]:
        """Initialize the engine on first use. Returns an error message on failure."""
        if self._engine_ready:
            return None
        try:
            self.engine.initialize()
        except RenderError as e:
            logger.warning(f"Graph rendering unavailable: {e}")
            return str(e)
        except Exception as e:
            logger.exception("Layout engine failed to initialize")
            return str(e) or type(e).__name__
        self._engine_ready = True
        return None

    async def render(self, dot_text: str, surface_id: str) -> Surface:
        """
        Sanitize and render ``dot_text`` onto ``surface_id``.

        Returns:
            Surface: The updated surface. Never raises for render failures.
        """
        surface = self._surfaces.get(surface_id) or self.register_surface(surface_id)

        if not dot_text or not dot_text.strip():
            self._states.pop(surface_id, None)
            surface.reset()
            return surface

        unavailable = self._ensure_engine()
        if unavailable is not None:
            surface.show(SurfaceStatus.UNAVAILABLE, f"Graph rendering unavailable: {unavailable}")
            return surface

        surface.show(SurfaceStatus.LOADING, "Rendering graph...")
        try:
            source = self.sanitizer.repair(dot_text)
            svg = await asyncio.to_thread(self.engine.render_svg, source)
        except Exception as e:
            logger.exception(f"Failed to render graph on '{surface_id}'")
            self._fail(surface, f"Error rendering graph: {e}")
            return surface

        if not svg or not svg.strip():
            logger.error(f"Layout engine returned no output for '{surface_id}'")
            self._fail(surface, "Error rendering graph: empty output")
            return surface

        zoom = self.zoom_factor(surface_id)
        self._states[surface_id] = GraphRenderState(
            surface_id=surface_id,
            source_text=source,
            rendered_artifact=svg,
            zoom_factor=zoom,
        )
        surface.show(SurfaceStatus.RENDERED, svg, ViewTransform(scale=zoom))
        logger.debug(f"Rendered graph on '{surface_id}' ({len(svg)} bytes)")
        return surface

    def _fail(self, surface: Surface, message: str) -> None:
        self._states.pop(surface.surface_id, None)
        surface.show(SurfaceStatus.ERROR, message)

    # --- Interaction ---

    def wheel(self, surface_id: str, delta_y: float) -> float:
        """
        Apply one wheel step. Ignored unless the surface shows a graph.

        Returns:
            float: The surface's zoom factor afterwards.
        """
        surface = self._surfaces.get(surface_id)
        if surface is None or not surface.is_rendered:
            return self.zoom_factor(surface_id)

        zoom = next_zoom(self.zoom_factor(surface_id), delta_y)
        self._zoom[surface_id] = zoom
        surface.transform = ViewTransform(scale=zoom)

        state = self._states.get(surface_id)
        if state is not None:
            self._states[surface_id] = state.model_copy(update={"zoom_factor": zoom})
        return zoom

    def pointer_down(self, surface_id: str, x: float, y: float) -> None:
        surface = self._surfaces.get(surface_id)
        if surface is None or not surface.is_rendered:
            return
        t = surface.transform
        surface.drag = DragState(start_x=x, start_y=y, origin_x=t.offset_x, origin_y=t.offset_y)

    def pointer_move(self, surface_id: str, x: float, y: float) -> Optional[ViewTransform]:
        surface = self._surfaces.get(surface_id)
        if surface is None or surface.drag is None:
            return None
        surface.transform.offset_x, surface.transform.offset_y = surface.drag.offset_for(x, y)
        return surface.transform

    def pointer_up(self, surface_id: str) -> None:
        surface = self._surfaces.get(surface_id)
        if surface is not None:
            surface.drag = None

    def reset_zoom(self, surface_id: str) -> None:
        """Back to identity transform and zoom factor 1.0."""
        self._zoom.pop(surface_id, None)

        surface = self._surfaces.get(surface_id)
        if surface is not None:
            surface.transform = ViewTransform()
            surface.drag = None

        state = self._states.get(surface_id)
        if state is not None:
            self._states[surface_id] = state.model_copy(update={"zoom_factor": 1.0})

    # --- Export ---

    def export_artifact(self, surface_id: str) -> ExportedArtifact:
        """
        Package the last successful render of ``surface_id``.

        Raises:
            NothingToExportError: The surface has never rendered successfully.
        """
        state = self._states.get(surface_id)
        if state is None:
            raise NothingToExportError(surface_id)

        stamp = self._clock().strftime("%Y%m%d_%H%M%S")
        return ExportedArtifact(
            filename=f"{surface_id}_{stamp}.svg",
            content=state.rendered_artifact,
        )

    def clear(self) -> None:
        """Drop every render state and zoom factor."""
        self._states.clear()
        self._zoom.clear()
        for surface in self._surfaces.values():
            surface.reset()
