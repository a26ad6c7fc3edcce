"""Top-level ASGI dispatcher.

Every HTTP request is classified by path before any other routing happens:
paths under ``/content/`` go to the authenticated content proxy, everything
else (any method) goes to the page application.
"""

from typing import Optional

from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

from .auth import AuthGate
from .proxy import ContentProxyHandler
from .shared.logger import log_debug, log_trace

CONTENT_PREFIX = "/content/"


def is_content_path(path: str) -> bool:
    return path.startswith(CONTENT_PREFIX)


class Dispatcher:
    """Routes each request to exactly one of the proxy or the page app.

    A content request the proxy drops gets no ASGI messages at all. Under
    Hypercorn the client then sees the server's own empty 500 response.
    """

    def __init__(self, page_app: ASGIApp, proxy_handler: ContentProxyHandler, auth_gate: AuthGate):
        self.page_app = page_app
        self.proxy_handler = proxy_handler
        self.auth_gate = auth_gate

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and is_content_path(scope["path"]):
            request = Request(scope, receive)
            response = await self.handle_content(request)
            if response is None:
                # Dropped request: nothing is sent. Hypercorn then answers 500 on its own
                return
            await response(scope, receive, send)
            return

        # Page requests, static assets, lifespan and websocket scopes
        await self.page_app(scope, receive, send)

    async def handle_content(self, request: Request) -> Optional[Response]:
        """Consult the auth gate, then hand the request to the content proxy."""
        credential = ""
        if self.auth_gate.is_credential_required():
            log_trace("Acquiring content service credential", component="dispatcher", path=request.url.path)
            credential = await self.auth_gate.acquire_credential()
        else:
            log_trace("No credential required", component="dispatcher", path=request.url.path)

        log_debug("Content request", component="dispatcher", method=request.method, path=request.url.path)
        return await self.proxy_handler.handle(request, credential)
