"""Tests for the HTTP data source and messaging gateway."""

import json

import httpx
import pytest
from pydantic import SecretStr

from reportcast.config.models import GatewayConfig, SourceConfig
from reportcast.delivery.gateway import HttpMessagingGateway
from reportcast.errors import AuthError, FetchError, GatewayError
from reportcast.reports.source import HttpDataSource
from reportcast.reports.types import Artifact, ArtifactKind

TOKEN_URL = "https://auth.example.com/token"
API_URL = "https://reports.example.com/query"
GATEWAY_URL = "https://gateway.example.com/send"


def _source_config() -> SourceConfig:
    return SourceConfig(
        token_url=TOKEN_URL,
        api_url=API_URL,
        basic_auth_token=SecretStr("Basic dXNlcjpwYXNz"),
    )


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestHttpDataSource:
    @pytest.mark.asyncio
    async def test_fetch_exchanges_token_then_queries(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url == TOKEN_URL:
                return httpx.Response(200, json={"access_token": "tok-123"})
            return httpx.Response(200, json=[{"total": 5}])

        async with _client(handler) as client:
            source = HttpDataSource(_source_config(), client=client)
            rows = await source.fetch("daily_sales")

        assert rows == [{"total": 5}]
        token_request, query_request = requests
        assert token_request.method == "POST"
        assert token_request.headers["Authorization"] == "Basic dXNlcjpwYXNz"
        assert (
            token_request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        )
        assert query_request.method == "GET"
        assert str(query_request.url) == f"{API_URL}/daily_sales"
        assert query_request.headers["Authorization"] == "Bearer tok-123"

    @pytest.mark.asyncio
    async def test_new_token_per_fetch(self):
        token_calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal token_calls
            if request.url == TOKEN_URL:
                token_calls += 1
                return httpx.Response(200, json={"access_token": f"t{token_calls}"})
            return httpx.Response(200, json=[])

        async with _client(handler) as client:
            source = HttpDataSource(_source_config(), client=client)
            await source.fetch("a")
            await source.fetch("b")

        assert token_calls == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(401, json={"error": "unauthorized"}),
            httpx.Response(200, json={"token_type": "bearer"}),
            httpx.Response(200, text="not json"),
        ],
    )
    async def test_token_failures_raise_auth_error(self, response):
        def handler(request: httpx.Request) -> httpx.Response:
            return response

        async with _client(handler) as client:
            source = HttpDataSource(_source_config(), client=client)
            with pytest.raises(AuthError):
                await source.fetch("daily_sales")

    @pytest.mark.asyncio
    async def test_token_transport_error_raises_auth_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler) as client:
            source = HttpDataSource(_source_config(), client=client)
            with pytest.raises(AuthError, match="refused"):
                await source.fetch("daily_sales")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500, text="boom"),
            httpx.Response(200, json={"rows": []}),
            httpx.Response(200, json=[1, 2, 3]),
            httpx.Response(200, text="<html>"),
        ],
    )
    async def test_query_failures_raise_fetch_error(self, response):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url == TOKEN_URL:
                return httpx.Response(200, json={"access_token": "tok"})
            return response

        async with _client(handler) as client:
            source = HttpDataSource(_source_config(), client=client)
            with pytest.raises(FetchError) as exc_info:
                await source.fetch("daily_sales")

        assert not isinstance(exc_info.value, AuthError)


class TestHttpMessagingGateway:
    def _gateway(self, client: httpx.AsyncClient) -> HttpMessagingGateway:
        config = GatewayConfig(url=GATEWAY_URL, api_token=SecretStr("gw-token"))
        return HttpMessagingGateway(config, client=client)

    @pytest.mark.asyncio
    async def test_text_is_posted_as_json(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"ok": True})

        artifact = Artifact(kind=ArtifactKind.TEXT, display_name="Sales", text="hello")
        async with _client(handler) as client:
            await self._gateway(client).deliver("sales-team", artifact)

        [request] = requests
        assert request.headers["Authorization"] == "Bearer gw-token"
        assert json.loads(request.content) == {"to": "sales-team", "message": "hello"}

    @pytest.mark.asyncio
    async def test_document_is_uploaded_as_multipart(self, tmp_path):
        path = tmp_path / "sales-20260314T090000-abcd1234.html"
        path.write_text("<table></table>")
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(201)

        artifact = Artifact(kind=ArtifactKind.DOCUMENT, display_name="Sales", path=path)
        async with _client(handler) as client:
            await self._gateway(client).deliver("sales-team", artifact)

        [request] = requests
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        body = request.content
        assert b'name="to"' in body
        assert b"sales-team" in body
        assert b'filename="sales-20260314T090000-abcd1234.html"' in body
        assert b"<table></table>" in body

    @pytest.mark.asyncio
    async def test_rejection_raises_gateway_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        artifact = Artifact(kind=ArtifactKind.TEXT, display_name="Sales", text="x")
        async with _client(handler) as client:
            with pytest.raises(GatewayError) as exc_info:
                await self._gateway(client).deliver("sales-team", artifact)

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_transport_error_raises_gateway_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        artifact = Artifact(kind=ArtifactKind.TEXT, display_name="Sales", text="x")
        async with _client(handler) as client:
            with pytest.raises(GatewayError, match="timed out"):
                await self._gateway(client).deliver("sales-team", artifact)

    @pytest.mark.asyncio
    async def test_document_without_file(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200)

        artifact = Artifact(kind=ArtifactKind.DOCUMENT, display_name="Sales")
        async with _client(handler) as client:
            with pytest.raises(GatewayError, match="no file"):
                await self._gateway(client).deliver("sales-team", artifact)
