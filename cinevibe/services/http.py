"""Pooled async HTTP client with timeouts and retry on transient failures."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from cinevibe.services.retry import RetryPolicy


logger = logging.getLogger(__name__)

_RETRYABLE_TRANSPORT_ERRORS = (
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.ReadError,
    httpx.WriteError,
    httpx.CloseError,
    httpx.RemoteProtocolError,
)


class HTTPClientError(Exception):
    """Base exception for outbound request failures."""


class HttpStatusError(HTTPClientError):
    """Raised when the remote side answers with a non-2xx status."""

    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"HTTP {status_code} from {url}")
        self.status_code = status_code
        self.url = url


class MalformedResponse(HTTPClientError):
    """Raised when a 2xx response body is not valid JSON."""


class NetworkError(HTTPClientError):
    """Raised for transport-level failures (reset, DNS, unreachable host...)."""

    def __init__(self, message: str, *, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable


class RequestTimeout(NetworkError):
    """Raised when a single request exceeds its timeout budget."""


def is_retryable(exc: BaseException) -> bool:
    """Classify an outbound failure as transient (5xx, 429, transport)."""

    if isinstance(exc, HttpStatusError):
        return exc.status_code >= 500 or exc.status_code == 429
    if isinstance(exc, NetworkError):
        return exc.retryable
    return False


def build_async_client(*, timeout: float, force_ipv4: bool = False) -> httpx.AsyncClient:
    """Create the process-wide pooled client."""

    limits = httpx.Limits(max_connections=50, max_keepalive_connections=20, keepalive_expiry=30.0)
    if force_ipv4:
        # a custom transport ignores the client's limits, so it carries its own
        transport = httpx.AsyncHTTPTransport(local_address="0.0.0.0", limits=limits)
        return httpx.AsyncClient(timeout=timeout, transport=transport)
    return httpx.AsyncClient(timeout=timeout, limits=limits)


class RetryingHTTPClient:
    """Send JSON requests over a shared ``httpx.AsyncClient`` with retries."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        policy: RetryPolicy | None = None,
        timeout: float | None = None,
    ) -> None:
        self._client = client
        self.policy = policy or RetryPolicy(classifier=is_retryable)
        self.timeout = timeout

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        budget = timeout if timeout is not None else self.timeout

        async def _attempt() -> Any:
            return await self._send(method, url, params=params, json=json, headers=headers, timeout=budget)

        return await self.policy.call(_attempt)

    async def get(self, url: str, **kwargs: Any) -> Any:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> Any:
        return await self.request("POST", url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None,
        json: Any,
        headers: dict[str, str] | None,
        timeout: float | None,
    ) -> Any:
        extra: dict[str, Any] = {}
        if timeout is not None:
            extra["timeout"] = timeout
        try:
            response = await self._client.request(
                method, url, params=params, json=json, headers=headers, **extra
            )
        except httpx.TimeoutException as exc:
            raise RequestTimeout(f"{method} {url} timed out") from exc
        except _RETRYABLE_TRANSPORT_ERRORS as exc:
            raise NetworkError(f"{method} {url} failed: {exc.__class__.__name__}") from exc
        except httpx.TransportError as exc:
            raise NetworkError(f"{method} {url} failed: {exc.__class__.__name__}", retryable=False) from exc

        if not response.is_success:
            logger.debug("Upstream %s %s answered %s", method, url, response.status_code)
            raise HttpStatusError(response.status_code, url)
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponse(f"{method} {url} returned a non-JSON body") from exc
