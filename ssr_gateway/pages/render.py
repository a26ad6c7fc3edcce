"""Render step of the page pipeline.

A renderer turns the resolved data for a request into response markup. It
reports a missing page through its return type instead of mutating shared
state::

    def render(request, context):
        if context.match is None:
            return NotFound(render_not_found_page())
        return Rendered(render_page(context.match.route, context.data))

Renderers that return a bare string, or that still flag ``context.not_found``
the way older renderers did, are accepted as well.
"""

import html
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union

from starlette.requests import Request

from .routes import RouteMatch


@dataclass(frozen=True)
class Rendered:
    """Page rendered normally (HTTP 200)."""
    body: str


@dataclass(frozen=True)
class NotFound:
    """Page rendered as the not-found page (HTTP 404)."""
    body: str


RenderResult = Union[Rendered, NotFound]


@dataclass
class RenderContext:
    """Request-scoped data handed to the renderer."""
    data: Any = None
    request_query_params: Dict[str, str] = field(default_factory=dict)
    match: Optional[RouteMatch] = None
    not_found: bool = False


Renderer = Callable[[Request, RenderContext], Union[RenderResult, str]]


def invoke_renderer(renderer: Renderer, request: Request, context: RenderContext) -> RenderResult:
    """Call the renderer and normalize its output to a ``RenderResult``."""
    result = renderer(request, context)

    if isinstance(result, (Rendered, NotFound)):
        return result
    if not isinstance(result, str):
        raise TypeError(f"Renderer returned {type(result).__name__}, expected Rendered, NotFound or str")
    if context.not_found:
        return NotFound(result)
    return Rendered(result)


SHELL_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title>
</head>
<body>
<div id="root">{content}</div>
<script>window.INITIAL_DATA = {initial_data};</script>
<script src="{bundle}" defer></script>
</body>
</html>
"""

NOT_FOUND_CONTENT = "<h1>Page not found</h1>"

CLIENT_BUNDLE = "/public/client-bundle.js"


def serialize_initial_data(data: Any) -> str:
    """JSON-encode data so it is safe inside an inline ``<script>`` element."""
    return (
        json.dumps(data, default=str)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )


def shell_renderer(request: Request, context: RenderContext) -> RenderResult:
    """Render the application shell with the prefetched data embedded.

    The browser bundle hydrates ``#root`` from ``window.INITIAL_DATA``. Paths
    without a matching route get the not-found shell.
    """
    if context.match is None:
        page = SHELL_TEMPLATE.format(
            title="Not Found",
            content=NOT_FOUND_CONTENT,
            initial_data="null",
            bundle=CLIENT_BUNDLE,
        )
        return NotFound(page)

    route = context.match.route
    page = SHELL_TEMPLATE.format(
        title=html.escape(route.name or "App"),
        content="",
        initial_data=serialize_initial_data(context.data),
        bundle=CLIENT_BUNDLE,
    )
    return Rendered(page)
