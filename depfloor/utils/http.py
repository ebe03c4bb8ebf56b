"""
Async HTTP transport for registry requests.

:class:`HTTPClient` wraps one pooled ``httpx.AsyncClient`` (HTTP/2 enabled)
and turns transport outcomes into depfloor exceptions:

- 404 raises :class:`RegistryError` with ``status_code=404``
- any other 4xx raises :class:`NetworkError` at once
- 429, 5xx, timeouts and connection errors are transient; they are retried
  only while ``max_retries`` allows, which is zero by default
"""

from __future__ import annotations

import httpx
import random
import asyncio
from typing import Any, Dict, Optional, cast

from depfloor.utils.logger import get_logger
from depfloor.__version__ import __version__
from depfloor.exceptions import NetworkError, RegistryError
from depfloor.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_CONCURRENT_LIMIT,
    USER_AGENT_TEMPLATE,
)

logger = get_logger("http")


class HTTPClient:
    """Pooled async HTTP client with bounded concurrency and opt-in retries.

    Args:
        timeout: Per-request timeout in seconds.
        max_retries: Extra attempts after a transient failure.
        verify_ssl: Verify TLS certificates.
        user_agent: User-Agent header; defaults to ``depfloor/<version>``.
        max_concurrency: Requests allowed in flight at once.

    Example:
        >>> async with HTTPClient(timeout=10) as client:
        ...     packument = await client.get_json("https://registry.npmjs.org/semver")
    """

    def __init__(
        self,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        max_concurrency: int = DEFAULT_CONCURRENT_LIMIT,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)
        self.max_concurrency = max_concurrency

        self._client: Optional[httpx.AsyncClient] = None
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def __aenter__(self) -> "HTTPClient":
        self._open()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    def _open(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                http2=True,
                verify=self.verify_ssl,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent, "Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request_with_retry(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send one request, retrying transient failures up to ``max_retries`` times.

        Raises:
            RegistryError: The server answered 404.
            NetworkError: Any other client error, or every attempt failed.
        """
        client = self._open()
        url = url.strip().strip("\"'")
        attempts = self.max_retries + 1
        last_exc: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            delay: Optional[float] = None
            try:
                async with self._semaphore:
                    response = await client.request(method, url, **kwargs)
            except httpx.TimeoutException as exc:
                last_exc = exc
                logger.warning("Timeout (%d/%d): %s", attempt, attempts, url)
            except httpx.NetworkError as exc:
                last_exc = exc
                logger.warning("Network error (%d/%d): %s", attempt, attempts, exc)
            else:
                code = response.status_code
                if code < 400:
                    return response
                if code == 404:
                    raise RegistryError(f"Resource not found: {url}", url=url, status_code=404)
                if code == 429:
                    last_exc = NetworkError("Rate limited by registry", url=url, status_code=429)
                    delay = _retry_after(response)
                    logger.warning("Rate limited (%d/%d): %s", attempt, attempts, url)
                elif code < 500:
                    raise NetworkError(
                        f"HTTP {code} error for {url}",
                        url=url,
                        status_code=code,
                        response_body=response.text,
                    )
                else:
                    last_exc = NetworkError(f"HTTP {code} error for {url}", url=url, status_code=code)
                    logger.warning("HTTP %d (%d/%d): %s", code, attempt, attempts, url)

            if attempt < attempts:
                if delay is None:
                    delay = 2 ** (attempt - 1) + random.uniform(0.0, 0.3)
                logger.debug("Retrying %s in %.2fs", url, delay)
                await asyncio.sleep(delay)

        raise NetworkError(
            f"Request failed after {attempts} attempt(s): {url}",
            url=url,
        ) from last_exc

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._request_with_retry("GET", url, **kwargs)

    async def get_json(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        """GET *url* and decode a JSON object body.

        Raises:
            NetworkError: The request failed or the body is not a JSON object.
        """
        response = await self.get(url, **kwargs)

        try:
            data = response.json()
        except ValueError as exc:
            raise NetworkError(
                f"Invalid JSON response from {url}",
                url=url,
                response_body=response.text,
            ) from exc

        if not isinstance(data, dict):
            raise NetworkError(
                f"Expected JSON object from {url}",
                url=url,
                response_body=response.text,
            )

        return cast(Dict[str, Any], data)


def _retry_after(response: httpx.Response) -> Optional[float]:
    """Seconds requested by a ``Retry-After`` header, or ``None`` to back off normally."""
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None
