from __future__ import annotations

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from depfloor.utils.http import HTTPClient
from depfloor.exceptions import NetworkError, RegistryError


def _response(status_code: int, *, json_data=None, text: str = "") -> MagicMock:
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    response.headers = {}
    response.text = text
    if json_data is not None:
        response.json.return_value = json_data
    return response


@pytest.mark.unit
class TestHTTPClientInit:
    """Tests for HTTPClient initialization and configuration."""

    def test_default_values(self) -> None:
        """Requests are fail-fast unless retries are configured."""
        client = HTTPClient()

        assert client.timeout == 30
        assert client.max_retries == 0
        assert client.max_concurrency == 10
        assert client.user_agent.startswith("depfloor/")
        assert client._client is None

    @pytest.mark.asyncio
    async def test_context_manager_lifecycle(self) -> None:
        client = HTTPClient(timeout=7, user_agent="TestAgent")

        async with client:
            assert client._client is not None
            assert client._client.timeout.read == 7
            assert client._client.headers["User-Agent"] == "TestAgent"
            assert client._client.headers["Accept"] == "application/json"

        assert client._client is None


@pytest.mark.unit
class TestRequestWithRetry:
    """Tests for HTTPClient._request_with_retry."""

    @pytest.mark.asyncio
    async def test_success(self) -> None:
        client = HTTPClient()

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(200)

            async with client:
                response = await client._request_with_retry("GET", " 'https://r.example/lib' ")

        assert response.status_code == 200
        mock_request.assert_awaited_once_with("GET", "https://r.example/lib")

    @pytest.mark.asyncio
    async def test_404_raises_registry_error(self) -> None:
        client = HTTPClient(max_retries=3)

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(404)

            async with client:
                with pytest.raises(RegistryError) as exc_info:
                    await client._request_with_retry("GET", "https://r.example/ghost")

        assert exc_info.value.status_code == 404
        assert mock_request.await_count == 1

    @pytest.mark.asyncio
    async def test_4xx_raises_without_retry(self) -> None:
        client = HTTPClient(max_retries=3)

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(403, text="Forbidden")

            async with client:
                with pytest.raises(NetworkError) as exc_info:
                    await client._request_with_retry("GET", "https://r.example/lib")

        assert exc_info.value.status_code == 403
        assert exc_info.value.response_body == "Forbidden"
        assert mock_request.await_count == 1

    @pytest.mark.asyncio
    async def test_fail_fast_by_default(self) -> None:
        client = HTTPClient()

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = httpx.ConnectError("refused")

            async with client:
                with pytest.raises(NetworkError, match="after 1 attempt"):
                    await client._request_with_retry("GET", "https://r.example/lib")

        assert mock_request.await_count == 1

    @pytest.mark.asyncio
    async def test_rate_limited_without_retries(self) -> None:
        client = HTTPClient()

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(429)

            async with client:
                with pytest.raises(NetworkError) as exc_info:
                    await client._request_with_retry("GET", "https://r.example/lib")

        assert isinstance(exc_info.value.__cause__, NetworkError)
        assert exc_info.value.__cause__.status_code == 429

    @pytest.mark.asyncio
    async def test_rate_limited_then_success(self) -> None:
        client = HTTPClient(max_retries=1)
        limited = _response(429)
        limited.headers = {"Retry-After": "0"}

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = [limited, _response(200)]

            async with client:
                response = await client._request_with_retry("GET", "https://r.example/lib")

        assert response.status_code == 200
        assert mock_request.await_count == 2

    @pytest.mark.asyncio
    async def test_server_errors_retried(self) -> None:
        client = HTTPClient(max_retries=2)

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request, patch("depfloor.utils.http.asyncio.sleep", new_callable=AsyncMock):
            mock_request.side_effect = [_response(503), httpx.ReadTimeout("slow"), _response(200)]

            async with client:
                response = await client._request_with_retry("GET", "https://r.example/lib")

        assert response.status_code == 200
        assert mock_request.await_count == 3

    @pytest.mark.asyncio
    async def test_retries_exhausted(self) -> None:
        client = HTTPClient(max_retries=1)

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request, patch("depfloor.utils.http.asyncio.sleep", new_callable=AsyncMock):
            mock_request.return_value = _response(500)

            async with client:
                with pytest.raises(NetworkError, match="after 2 attempt"):
                    await client._request_with_retry("GET", "https://r.example/lib")

        assert mock_request.await_count == 2


@pytest.mark.unit
class TestGetJson:
    """Tests for HTTPClient.get_json."""

    @pytest.mark.asyncio
    async def test_returns_object(self) -> None:
        client = HTTPClient()

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(200, json_data={"versions": {}})

            async with client:
                assert await client.get_json("https://r.example/lib") == {"versions": {}}

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        client = HTTPClient()
        response = _response(200, text="<html>")
        response.json.side_effect = ValueError("not json")

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = response

            async with client:
                with pytest.raises(NetworkError, match="Invalid JSON"):
                    await client.get_json("https://r.example/lib")

    @pytest.mark.asyncio
    async def test_non_object_json(self) -> None:
        client = HTTPClient()

        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _response(200, json_data=["1.0.0"])

            async with client:
                with pytest.raises(NetworkError, match="Expected JSON object"):
                    await client.get_json("https://r.example/lib")
