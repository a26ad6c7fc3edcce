"""Dispatcher tests: the content prefix decides between proxy and pages."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from ssr_gateway.auth import AuthGate
from ssr_gateway.dispatcher import Dispatcher, is_content_path
from ssr_gateway.pages import RouteDescriptor


def make_scope(path: str, method: str = "GET") -> dict:
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": b"",
        "headers": [(b"host", b"testserver"), (b"content-length", b"4")],
        "server": ("testserver", 80),
        "client": ("127.0.0.1", 12345),
    }


def mock_auth_gate(required: bool, credential: str = "Bearer token") -> MagicMock:
    gate = MagicMock(spec=AuthGate)
    gate.is_credential_required.return_value = required
    gate.acquire_credential = AsyncMock(return_value=credential)
    return gate


@pytest.mark.basic
@pytest.mark.parametrize("path, expected", [
    ("/content/assets/logo.png", True),
    ("/content/", True),
    ("/content", False),
    ("/contents/x", False),
    ("/about/content/x", False),
    ("/", False),
])
def test_is_content_path(path, expected):
    assert is_content_path(path) is expected


class TestDispatcher:
    """Routing between the content proxy and the page app."""

    @pytest.mark.asyncio
    async def test_content_path_never_reaches_page_app(self, make_app, asgi_client, upstream):
        calls = []

        def renderer(request, context):
            calls.append(request.url.path)
            return "page"

        app = make_app(routes=[RouteDescriptor()], renderer=renderer)

        async with asgi_client(app) as client:
            response = await client.get("/content/items")

        assert response.text == "upstream body"
        assert calls == []
        assert len(upstream.requests) == 1

    @pytest.mark.asyncio
    async def test_other_paths_never_reach_proxy(self, make_app, asgi_client, upstream):
        app = make_app(routes=[RouteDescriptor(name="all")])

        async with asgi_client(app) as client:
            for path in ("/", "/content", "/contents/items", "/about/content/x"):
                response = await client.get(path)
                assert response.status_code == 200

        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_credential_acquired_only_when_required(self, make_app, asgi_client, upstream):
        gate = mock_auth_gate(required=False)
        app = make_app(auth_gate=gate)

        async with asgi_client(app) as client:
            await client.get("/content/items")

        gate.is_credential_required.assert_called_once_with()
        gate.acquire_credential.assert_not_called()
        assert "authorization" not in upstream.last_request.headers

    @pytest.mark.asyncio
    async def test_acquired_credential_is_injected(self, make_app, asgi_client, upstream):
        gate = mock_auth_gate(required=True, credential="Bearer fresh")
        app = make_app(auth_gate=gate)

        async with asgi_client(app) as client:
            await client.get("/content/items")

        gate.acquire_credential.assert_awaited_once()
        assert upstream.last_request.headers["authorization"] == "Bearer fresh"

    @pytest.mark.asyncio
    async def test_page_requests_do_not_consult_auth_gate(self, make_app, asgi_client):
        gate = mock_auth_gate(required=True)
        app = make_app(auth_gate=gate)

        async with asgi_client(app) as client:
            await client.get("/about")

        gate.is_credential_required.assert_not_called()
        gate.acquire_credential.assert_not_called()

    @pytest.mark.asyncio
    async def test_dropped_content_request_sends_nothing(self, make_app, upstream):
        app = make_app()
        receive = AsyncMock(return_value={"type": "http.request", "body": b"data", "more_body": False})
        send = AsyncMock()

        await app(make_scope("/content/items", method="POST"), receive, send)

        send.assert_not_called()
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_handle_content_passes_credential_to_proxy(self):
        proxy_handler = MagicMock()
        proxy_handler.handle = AsyncMock(return_value=None)
        dispatcher = Dispatcher(page_app=AsyncMock(), proxy_handler=proxy_handler,
                                auth_gate=mock_auth_gate(required=True, credential="Basic abc"))
        request = MagicMock()

        assert await dispatcher.handle_content(request) is None
        proxy_handler.handle.assert_awaited_once_with(request, "Basic abc")

    @pytest.mark.asyncio
    async def test_non_http_scopes_go_to_page_app(self):
        page_app = AsyncMock()
        dispatcher = Dispatcher(page_app=page_app, proxy_handler=MagicMock(),
                                auth_gate=mock_auth_gate(required=False))
        scope = {"type": "lifespan"}
        receive, send = AsyncMock(), AsyncMock()

        await dispatcher(scope, receive, send)

        page_app.assert_awaited_once_with(scope, receive, send)
