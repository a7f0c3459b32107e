"""
rsview - Client runtime for a remote source-analysis service.

rsview submits source text to an analysis backend over HTTP, tracks and
caches the requests, and turns the returned parse-tree graph (Graphviz DOT)
into an interactive SVG rendering.

Key Components:
- client: transport, retry policy, request lifecycle, result cache, service
- graph: DOT sanitizer and the render/interaction engine
- core: data types, errors and the Result type
- cli: the `rsview` command line host

Usage:
    from rsview import AnalysisService, GraphRenderer

    service = AnalysisService.from_config()
    result = await service.analyze(source)
    surface = await GraphRenderer().render(result.parse_tree.dot, "parse-tree")
"""

__version__ = "0.3.0"

from .client.service import AnalysisService
from .core.types import AnalysisResult, RequestRecord, RequestStatus, ServerStatus
from .graph.renderer import GraphRenderer
from .graph.sanitizer import DotSanitizer

__all__ = [
    "__version__",
    "AnalysisService",
    "AnalysisResult",
    "RequestRecord",
    "RequestStatus",
    "ServerStatus",
    "GraphRenderer",
    "DotSanitizer",
]
