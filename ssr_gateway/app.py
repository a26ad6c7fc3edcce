"""ASGI app factory.

Usage:
    hypercorn 'ssr_gateway.app:create_app()'
    uvicorn ssr_gateway.app:create_app --factory

Pages and renderer default to an empty route table and the built-in shell
renderer; point ``PAGES_ROUTES`` and ``PAGES_RENDERER`` at
``"module:attribute"`` to plug in the application's own.
"""

import os
from contextlib import asynccontextmanager
from typing import Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from .auth import AuthGate, build_auth_gate
from .dispatcher import Dispatcher
from .exceptions import ClientDisconnected
from .pages import RenderPipeline, RouteTable, shell_renderer
from .pages.render import Renderer
from .pages.routes import RouteEntry
from .proxy import ContentProxyHandler
from .shared.config import Settings, get_config
from .shared.logger import log_debug, log_info, log_warning
from .shared.utils import load_object

def load_routes(settings: Settings) -> RouteTable:
    if settings.pages_routes:
        log_info(f"Loading routes from {settings.pages_routes}", component="main")
        return RouteTable(load_object(settings.pages_routes))
    return RouteTable()


def load_renderer(settings: Settings) -> Renderer:
    if settings.pages_renderer:
        log_info(f"Loading renderer from {settings.pages_renderer}", component="main")
        return load_object(settings.pages_renderer)
    return shell_renderer


async def handle_client_disconnected(request: Request, exc: ClientDisconnected):
    log_debug("Client disconnected before the page was rendered", component="render_pipeline",
              path=request.url.path)
    # 499 = Client Closed Request
    return PlainTextResponse("", status_code=499)


def create_page_app(settings: Settings, pipeline: RenderPipeline, lifespan=None) -> FastAPI:
    """FastAPI app for everything outside the content prefix."""
    app = FastAPI(
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.add_exception_handler(ClientDisconnected, handle_client_disconnected)

    if os.path.isdir(settings.static_dir):
        app.mount(settings.static_route, StaticFiles(directory=settings.static_dir), name="static")
        log_info(f"Serving {settings.static_dir} on {settings.static_route}", component="main")
    else:
        log_debug(f"Static directory {settings.static_dir} not found, not mounted", component="main")

    # Plain Starlette route without a method list: every verb reaches the pipeline
    app.router.add_route("/{path:path}", pipeline.render, methods=None, include_in_schema=False)
    return app


def create_app(
    settings: Optional[Settings] = None,
    routes: Optional[Iterable[RouteEntry]] = None,
    renderer: Optional[Renderer] = None,
    auth_gate: Optional[AuthGate] = None,
    proxy_handler: Optional[ContentProxyHandler] = None,
) -> Dispatcher:
    """Assemble the dispatcher, the page app and the content proxy."""
    settings = settings or get_config()

    route_table = routes if isinstance(routes, RouteTable) else (
        RouteTable(routes) if routes is not None else load_routes(settings)
    )
    pipeline = RenderPipeline(
        route_table,
        renderer or load_renderer(settings),
        cancel_on_disconnect=settings.cancel_on_disconnect,
        disconnect_poll_interval=settings.disconnect_poll_interval,
    )

    if not settings.proxy_tls_verify:
        log_warning("TLS certificate verification is disabled for the content service", component="main")

    auth_gate = auth_gate or build_auth_gate(settings)
    proxy_handler = proxy_handler or ContentProxyHandler(
        settings.server_url,
        tls_verify=settings.proxy_tls_verify,
        timeout=settings.proxy_timeout,
        reject_non_get=settings.content_reject_non_get,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_info(f"Content requests proxied to {settings.server_url}", component="main")
        log_info(f"{len(route_table)} page routes loaded", component="main")
        yield
        await proxy_handler.close()
        await auth_gate.close()
        log_info("Gateway shut down", component="main")

    page_app = create_page_app(settings, pipeline, lifespan=lifespan)
    return Dispatcher(page_app, proxy_handler, auth_gate)
