"""
Async HTTP transport for the GitLab REST API.

Handles authenticated HTTP communication with automatic retry logic and
error handling using the httpx async client.
"""

import asyncio
import random
import time
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import httpx

from gitbase.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    GitbaseError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    UnprocessableEntityError,
    ValidationError,
)
from gitbase.logging import log_http_request, log_http_response

# Failures raised before any byte of the request reached the server
_NOT_SENT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


@dataclass
class RetryConfig:
    """Configuration for automatic retry behavior."""

    max_retries: int = 3
    backoff_factor: float = 2.0
    retry_on: list[int] = field(default_factory=lambda: [429, 500, 502, 503])
    respect_retry_after: bool = True
    max_backoff: float = 60.0  # Maximum backoff time in seconds
    jitter: float = 0.1  # Jitter factor (0.1 = ±10%)
    # POST and PATCH are only retried when the server cannot have applied them
    idempotent_methods: list[str] = field(
        default_factory=lambda: ["GET", "HEAD", "OPTIONS", "PUT", "DELETE"]
    )


def encode_path(value: int | str) -> str:
    """URL-encode a project path or file path for use as a single path segment."""
    return quote(str(value), safe="")


class AsyncHTTPTransport:
    """
    Async HTTP transport layer with token authentication and retry logic.

    Handles:
    - PRIVATE-TOKEN authentication on every request
    - Exponential backoff with jitter for retries
    - Retry-After header respect for rate limiting
    - Error response parsing into typed exceptions
    - X-Total pagination headers
    """

    API_PREFIX = "/api/v4"

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 30.0,
        retry_config: RetryConfig | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize async HTTP transport.

        Args:
            base_url: Base URL of the GitLab instance (e.g., "https://gitlab.com")
            token: Personal or admin access token
            timeout: Request timeout in seconds
            retry_config: Configuration for retry behavior
            http_transport: Optional httpx transport (e.g. httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()

        self._client = httpx.AsyncClient(
            base_url=self.base_url + self.API_PREFIX,
            timeout=timeout,
            headers={
                "Content-Type": "application/json",
                "PRIVATE-TOKEN": token,
            },
            transport=http_transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHTTPTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make an authenticated request with automatic retry.

        Args:
            method: HTTP method
            path: API path relative to /api/v4 (e.g., "/projects/1/repository/branches")
            params: Query parameters
            body: JSON request body (for POST/PUT)

        Returns:
            Parsed JSON response, or None for empty responses

        Raises:
            GitbaseError: On API errors
        """
        response = await self._send(method, path, params, body)
        return self._decode(response)

    async def request_page(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> tuple[Any, int]:
        """
        Make a paginated request.

        Returns:
            Tuple of (parsed JSON response, value of the X-Total header or 0)
        """
        response = await self._send(method, path, params, None)
        try:
            total = int(response.headers.get("x-total", "0"))
        except ValueError:
            total = 0
        return self._decode(response), total

    async def request_bytes(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> bytes:
        """Make a request whose response body is binary (e.g. an archive)."""
        response = await self._send(method, path, params, None)
        return response.content

    async def raw_request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """
        Send a single request without retry or error parsing.

        Used by fallback strategies that need to inspect the status themselves.
        """
        log_http_request(method, path, params)
        response = await self._client.request(method, path, params=params)
        log_http_response(response.status_code, path)
        return response

    def raise_for_status(self, response: httpx.Response) -> None:
        """Raise the typed error for an error response; do nothing otherwise."""
        if response.status_code >= 400:
            raise self._parse_error_response(response)

    async def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None,
        body: dict[str, Any] | None,
    ) -> httpx.Response:
        async def make_request() -> httpx.Response:
            log_http_request(method, path, params, body)
            started = time.monotonic()
            response = await self._client.request(method, path, params=params, json=body)
            log_http_response(
                response.status_code, path, (time.monotonic() - started) * 1000
            )
            return response

        return await self._execute_with_retry(make_request, method)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def _execute_with_retry(
        self,
        request_fn: Callable[[], Coroutine[Any, Any, httpx.Response]],
        method: str | None = None,
    ) -> httpx.Response:
        """
        Execute a request with automatic retry on retryable errors.

        Non-idempotent methods (POST, PATCH) are retried only on 429 and on
        connection failures, where the server cannot have applied them.

        Args:
            request_fn: Async function that makes the HTTP request
            method: HTTP method of the request (default: treated as idempotent)

        Returns:
            The successful HTTP response

        Raises:
            GitbaseError: On non-retryable errors or after max retries
        """
        last_error: Exception | None = None

        for attempt in range(self.retry_config.max_retries + 1):
            try:
                response = await request_fn()

                if response.status_code < 400:
                    return response

                error = self._parse_error_response(response)

                if not self._should_retry(response.status_code, attempt, method):
                    raise error

                last_error = error

                retry_after = response.headers.get("Retry-After")
                wait_time = self._get_backoff_time(attempt, retry_after)
                await asyncio.sleep(wait_time)

            except httpx.RequestError as e:
                # Network errors are retryable unless the request may have been applied
                if attempt >= self.retry_config.max_retries or not (
                    self._is_idempotent(method) or isinstance(e, _NOT_SENT_ERRORS)
                ):
                    raise ServerError("CONNECTION_ERROR", str(e)) from e

                last_error = e
                wait_time = self._get_backoff_time(attempt, None)
                await asyncio.sleep(wait_time)

        if last_error:
            if isinstance(last_error, GitbaseError):
                raise last_error
            raise ServerError("MAX_RETRIES_EXCEEDED", str(last_error))

        raise ServerError("UNKNOWN_ERROR", "Request failed with no error details")

    def _is_idempotent(self, method: str | None) -> bool:
        return method is None or method.upper() in self.retry_config.idempotent_methods

    def _should_retry(self, status_code: int, attempt: int, method: str | None = None) -> bool:
        """
        Determine if a request should be retried.

        Args:
            status_code: HTTP status code
            attempt: Current attempt number (0-indexed)
            method: HTTP method; POST and PATCH are retried on 429 only

        Returns:
            True if the request should be retried
        """
        if attempt >= self.retry_config.max_retries:
            return False

        if status_code not in self.retry_config.retry_on:
            return False

        return status_code == 429 or self._is_idempotent(method)

    def _get_backoff_time(
        self, attempt: int, retry_after: str | None
    ) -> float:
        """
        Calculate backoff time for retry.

        Uses exponential backoff with jitter, respecting Retry-After header
        if present.

        Args:
            attempt: Current attempt number (0-indexed)
            retry_after: Value of Retry-After header (if present)

        Returns:
            Time to wait in seconds
        """
        if retry_after and self.retry_config.respect_retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass  # Fall through to exponential backoff

        base_wait = self.retry_config.backoff_factor ** attempt

        jitter_range = base_wait * self.retry_config.jitter
        jitter = random.uniform(-jitter_range, jitter_range)
        wait_time = base_wait + jitter

        return min(wait_time, self.retry_config.max_backoff)

    def _parse_error_response(self, response: httpx.Response) -> GitbaseError:
        return error_from_response(response)


def error_from_response(response: httpx.Response) -> GitbaseError:
    """
    Parse a GitLab error response into a typed exception.

    GitLab reports errors as ``{"message": ...}`` (string, list or dict)
    or ``{"error": "..."}``.

    Args:
        response: HTTP response with error status

    Returns:
        Appropriate GitbaseError subclass
    """
    try:
        data = response.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}

    status_code = response.status_code
    message = _error_message(data) or f"HTTP {status_code} {response.reason_phrase}".strip()
    request_id = response.headers.get("X-Request-Id")
    code = _error_code(status_code)

    if status_code == 401:
        return AuthenticationError(code, message, request_id, status_code)
    elif status_code == 403:
        return AuthorizationError(code, message, request_id, status_code)
    elif status_code == 404:
        return NotFoundError(code, message, request_id, status_code)
    elif status_code == 409:
        return ConflictError(code, message, request_id, status_code)
    elif status_code == 422:
        return UnprocessableEntityError(code, message, request_id, status_code)
    elif status_code == 429:
        retry_after_str = response.headers.get("Retry-After", "60")
        try:
            retry_after = int(retry_after_str)
        except ValueError:
            retry_after = 60
        return RateLimitedError(code, message, retry_after, request_id, status_code)
    elif status_code >= 500:
        return ServerError(code, message, request_id, status_code)
    else:
        return ValidationError(code, message, request_id, status_code)


def _error_message(data: dict[str, Any]) -> str:
    message = data.get("message", data.get("error"))
    if message is None:
        return ""
    if isinstance(message, list):
        return "; ".join(str(m) for m in message)
    if isinstance(message, dict):
        return "; ".join(
            f"{key} {', '.join(map(str, val)) if isinstance(val, list) else val}"
            for key, val in message.items()
        )
    return str(message)


def _error_code(status_code: int) -> str:
    return {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        409: "CONFLICT",
        422: "UNPROCESSABLE_ENTITY",
        429: "RATE_LIMITED",
    }.get(status_code, "SERVER_ERROR" if status_code >= 500 else "CLIENT_ERROR")
