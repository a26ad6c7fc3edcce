"""Route match, data prefetch and render for page requests."""

import asyncio
import inspect
import time
from typing import Any, Awaitable, Optional

from starlette.requests import Request
from starlette.responses import HTMLResponse, Response

from ..exceptions import ClientDisconnected
from ..shared.logger import log_debug, log_response, log_trace
from .render import NotFound, RenderContext, Renderer, invoke_renderer
from .routes import RouteMatch, RouteTable

# Requests without a body can be checked for disconnect without consuming it
BODYLESS_METHODS = frozenset({"GET", "HEAD"})


class RenderPipeline:
    """Serves page requests: match a route, prefetch its data, render.

    A path without a matching route is still rendered; the renderer decides
    what the not-found page looks like and signals it with ``NotFound``.
    Errors from the data loader or the renderer are not handled here.
    """

    def __init__(self, routes: RouteTable, renderer: Renderer,
                 cancel_on_disconnect: bool = True, disconnect_poll_interval: float = 0.25):
        self.routes = routes
        self.renderer = renderer
        self.cancel_on_disconnect = cancel_on_disconnect
        self.disconnect_poll_interval = disconnect_poll_interval

    async def __call__(self, request: Request) -> Response:
        return await self.render(request)

    async def render(self, request: Request) -> Response:
        start_time = time.monotonic()
        path = request.url.path

        match = self.routes.match(path)
        if match is None:
            log_debug("No route matched", component="render_pipeline", method=request.method, path=path)

        data = await self.prefetch(request, match)

        context = RenderContext(
            data=data,
            request_query_params=dict(request.query_params),
            match=match,
        )
        result = invoke_renderer(self.renderer, request, context)

        status_code = 404 if isinstance(result, NotFound) else 200
        log_response(status_code, (time.monotonic() - start_time) * 1000,
                     component="render_pipeline", method=request.method, path=path)
        return HTMLResponse(result.body, status_code=status_code)

    async def prefetch(self, request: Request, match: Optional[RouteMatch]) -> Any:
        """Run the matched route's data loader, if it has one."""
        request.state.route_match = match
        if match is None or match.route.fetch_initial_data is None:
            return None

        log_trace(f"Prefetching data for {match.path}", component="render_pipeline", path=request.url.path)

        result = match.route.fetch_initial_data(request)
        if not inspect.isawaitable(result):
            return result

        if self.cancel_on_disconnect and request.method in BODYLESS_METHODS:
            return await self._await_while_connected(request, result)
        return await result

    async def _await_while_connected(self, request: Request, awaitable: Awaitable) -> Any:
        """Await ``awaitable`` but cancel it if the client disconnects first."""
        task = asyncio.ensure_future(awaitable)
        try:
            while True:
                done, _ = await asyncio.wait({task}, timeout=self.disconnect_poll_interval)
                if done:
                    return task.result()
                if await request.is_disconnected():
                    log_debug("Client disconnected, cancelling prefetch", component="render_pipeline",
                              path=request.url.path)
                    raise ClientDisconnected(request.url.path)
        finally:
            if not task.done():
                task.cancel()
