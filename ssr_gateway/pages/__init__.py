"""Page requests: route matching, data prefetch and rendering."""

from .pipeline import RenderPipeline
from .render import NotFound, RenderContext, Rendered, shell_renderer
from .routes import PathPatternMatcher, RouteDescriptor, RouteMatch, RouteTable

__all__ = [
    'NotFound',
    'PathPatternMatcher',
    'RenderContext',
    'RenderPipeline',
    'Rendered',
    'RouteDescriptor',
    'RouteMatch',
    'RouteTable',
    'shell_renderer',
]
