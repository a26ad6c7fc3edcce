"""Authenticated streaming proxy for requests to the content service."""

import time
from typing import AsyncIterator, Optional
from urllib.parse import quote

import httpx
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response, StreamingResponse

from ..shared.logger import log_debug, log_error, log_info, log_trace
from .models import ProxyTarget

# Path the proxy is served under, without the trailing slash
CONTENT_MOUNT = "/content"

PROXIED_METHODS = ("GET",)


def content_request_url(request: Request) -> str:
    """Inbound URL below the ``/content`` mount, query string included.

    The raw (still percent-encoded) path is used when the server provides it
    so the content service sees the path exactly as the browser sent it.
    """
    raw_path = request.scope.get("raw_path")
    path = raw_path.decode("latin-1").split("?", 1)[0] if raw_path else ""
    if not path.startswith(CONTENT_MOUNT + "/"):
        path = quote(request.scope["path"])
    request_url = path[len(CONTENT_MOUNT):]

    query_string = request.scope.get("query_string", b"")
    if query_string:
        request_url = f"{request_url}?{query_string.decode('latin-1')}"
    return request_url


def has_request_body(request: Request) -> bool:
    if "transfer-encoding" in request.headers:
        return True
    return request.headers.get("content-length", "0") not in ("", "0")


class ContentProxyHandler:
    """Forwards content requests to the content service and streams replies.

    Only GET requests are forwarded. Anything else is dropped without a
    response unless ``reject_non_get`` is set, in which case it is answered
    with 405. The upstream status line and every upstream header are copied
    onto the response unchanged, and bodies flow through in both directions
    without being collected in memory. Upstream failures are logged and
    re-raised; nothing is retried.
    """

    def __init__(
        self,
        base_url: str,
        tls_verify: bool = True,
        timeout: Optional[float] = None,
        reject_non_get: bool = False,
        insecure_transport: Optional[httpx.AsyncBaseTransport] = None,
        secure_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.reject_non_get = reject_non_get

        self.insecure_transport = insecure_transport or httpx.AsyncHTTPTransport()
        self.secure_transport = secure_transport or httpx.AsyncHTTPTransport(verify=tls_verify)

        self.client = httpx.AsyncClient(
            mounts={
                "http://": self.insecure_transport,
                "https://": self.secure_transport,
            },
            follow_redirects=False,
            timeout=httpx.Timeout(timeout),
        )

    def transport_for(self, target: ProxyTarget) -> httpx.AsyncBaseTransport:
        """Transport used for ``target``: TLS for https URLs, plain otherwise."""
        return self.secure_transport if target.is_secure else self.insecure_transport

    def build_target(self, request: Request, credential: Optional[str]) -> ProxyTarget:
        return ProxyTarget.for_request(self.base_url, content_request_url(request), credential)

    async def handle(self, request: Request, credential: Optional[str] = None) -> Optional[Response]:
        """Proxy one content request.

        Returns:
            The streaming response, a 405 response when non-GET requests are
            rejected, or None when the request is dropped without a response.
        """
        if request.method not in PROXIED_METHODS:
            if self.reject_non_get:
                log_info("Rejecting non-GET content request", component="proxy_handler",
                         method=request.method, path=request.url.path)
                return PlainTextResponse("Method Not Allowed", status_code=405,
                                         headers={"Allow": ", ".join(PROXIED_METHODS)})
            log_debug("Dropping non-GET content request", component="proxy_handler",
                      method=request.method, path=request.url.path)
            return None

        target = self.build_target(request, credential)
        return await self.forward(request, target)

    async def forward(self, request: Request, target: ProxyTarget) -> StreamingResponse:
        log_debug(f"Proxying to {target.url}", component="proxy_handler", method=request.method,
                  path=request.url.path, secure=target.is_secure)

        headers = target.outbound_headers()
        content = None
        if has_request_body(request):
            content = request.stream()
            if "content-length" in request.headers:
                headers["Content-Length"] = request.headers["content-length"]

        upstream_request = self.client.build_request(request.method, target.url, headers=headers, content=content)
        # Bytes are relayed as received, so never ask for a re-encoded body
        if "accept-encoding" in upstream_request.headers:
            del upstream_request.headers["accept-encoding"]

        start_time = time.monotonic()
        try:
            upstream = await self.client.send(upstream_request, stream=True)
        except httpx.HTTPError as e:
            log_error(f"Content request to {target.url} failed", component="proxy_handler",
                      error=e, path=request.url.path)
            raise

        log_info(f"Content service response: {upstream.status_code}", component="proxy_handler",
                 status=upstream.status_code, path=request.url.path,
                 duration_ms=round((time.monotonic() - start_time) * 1000, 2))

        response = StreamingResponse(
            self._relay(upstream, target),
            status_code=upstream.status_code,
            background=BackgroundTask(upstream.aclose),
        )
        response.raw_headers = [(name.lower(), value) for name, value in upstream.headers.raw]
        return response

    async def _relay(self, upstream: httpx.Response, target: ProxyTarget) -> AsyncIterator[bytes]:
        relayed = 0
        try:
            async for chunk in upstream.aiter_raw():
                relayed += len(chunk)
                yield chunk
        except httpx.HTTPError as e:
            log_error(f"Content stream from {target.url} broke off", component="proxy_handler",
                      error=e, relayed=relayed)
            raise
        finally:
            await upstream.aclose()
            log_trace(f"Relayed {relayed} bytes from {target.url}", component="proxy_handler")

    async def close(self):
        """Clean up resources."""
        await self.client.aclose()
