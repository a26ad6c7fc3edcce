"""Pytest configuration for gateway tests.

Everything runs in-process: the gateway is driven through httpx's
ASGITransport and the content service is an httpx MockTransport.
"""

from typing import Callable, List, Optional

import httpx
import pytest

from ssr_gateway.app import create_app
from ssr_gateway.auth import NoAuthGate, StaticAuthGate
from ssr_gateway.pages import NotFound, Rendered
from ssr_gateway.proxy import ContentProxyHandler
from ssr_gateway.shared.config import Settings

TEST_SERVER_URL = "http://cms.example.com"


class UpstreamRecorder:
    """Fake content service that records every request it receives."""

    def __init__(self, status_code: int = 200, headers=None, content: bytes = b"upstream body"):
        self.status_code = status_code
        self.headers = headers if headers is not None else [("Content-Type", "text/plain")]
        self.content = content
        self.requests: List[httpx.Request] = []
        self.error: Optional[Exception] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        # Streamed like a real transport so the proxy can read it raw
        headers = list(self.headers) + [("Content-Length", str(len(self.content)))]
        return httpx.Response(self.status_code, headers=headers, stream=httpx.ByteStream(self.content))

    @property
    def last_request(self) -> httpx.Request:
        assert self.requests, "content service was never called"
        return self.requests[-1]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def echo_renderer(request, context):
    """Renderer that shows what it was given."""
    if context.match is None:
        return NotFound(f"not found: {request.url.path}")
    return Rendered(f"page={context.match.route.name} data={context.data!r} query={context.request_query_params!r}")


@pytest.fixture
def settings(monkeypatch) -> Settings:
    """Settings independent of the environment the tests run in."""
    for name in ("AUTH", "CLIENT_ID", "CLIENT_SECRET", "CLIENT_SCOPE_URL", "IDP_URL",
                 "PAGES_ROUTES", "PAGES_RENDERER", "EXPRESS_SERVER_PORT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return Settings(_env_file=None, SERVER_URL=TEST_SERVER_URL, STATIC_DIR="does-not-exist")


@pytest.fixture
def upstream() -> UpstreamRecorder:
    return UpstreamRecorder()


@pytest.fixture
def secure_upstream() -> UpstreamRecorder:
    return UpstreamRecorder(content=b"secure body")


@pytest.fixture
def make_proxy_handler(upstream, secure_upstream) -> Callable[..., ContentProxyHandler]:
    """Build proxy handlers wired to the fake content services."""
    def factory(base_url: str = TEST_SERVER_URL, **kwargs) -> ContentProxyHandler:
        return ContentProxyHandler(
            base_url,
            insecure_transport=upstream.transport(),
            secure_transport=secure_upstream.transport(),
            **kwargs,
        )
    return factory


@pytest.fixture
def make_app(settings, make_proxy_handler):
    """Build a gateway app with test doubles for every collaborator."""
    def factory(routes=(), renderer=echo_renderer, auth_gate=None, base_url=TEST_SERVER_URL, **proxy_kwargs):
        return create_app(
            settings=settings,
            routes=routes,
            renderer=renderer,
            auth_gate=auth_gate or NoAuthGate(),
            proxy_handler=make_proxy_handler(base_url, **proxy_kwargs),
        )
    return factory


@pytest.fixture
def asgi_client():
    """Factory for an httpx client talking to an ASGI app in-process."""
    def factory(app) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")
    return factory


@pytest.fixture
def static_auth_gate() -> StaticAuthGate:
    return StaticAuthGate("Bearer secret-token")
