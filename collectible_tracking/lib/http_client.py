"""
Shared async HTTP plumbing for the upstream collectible APIs.

Every provider client (OpenSea, Alchemy) inherits the same httpx client
handling, credential redaction and retry policy for rate limits and server
errors. Backoff sleeps are awaited, so a caller-level timeout cancels a
retrieval promptly, even mid-retry.
"""

import asyncio
import random
from typing import Any, Awaitable, Callable, Optional

import httpx


# Retry configuration
DEFAULT_INITIAL_DELAY = 1.0  # seconds
DEFAULT_BACKOFF_MULTIPLIER = 2.0
DEFAULT_MAX_RETRIES = 5
DEFAULT_MAX_DELAY = 32.0  # seconds
DEFAULT_JITTER = 0.1  # ±10%
DEFAULT_TIMEOUT = 30.0  # seconds per request
DEFAULT_MAX_CONNECTIONS = 32


class UpstreamAPIError(Exception):
    """Exception raised for upstream API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamRateLimitError(UpstreamAPIError):
    """Exception raised when rate limit is exceeded and retries are exhausted."""

    pass


class RetryingHTTPClient:
    """
    Base class for async API clients with automatic 429/5xx retry handling.

    Subclasses set ``provider_name`` and build requests; this class owns the
    ``httpx.AsyncClient`` and the backoff loop. Use as an async context
    manager, or call ``aclose()`` when done.
    """

    provider_name = "upstream"

    def __init__(
        self,
        api_key: str = "",
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER,
        max_retries: int = DEFAULT_MAX_RETRIES,
        max_delay: float = DEFAULT_MAX_DELAY,
        jitter: float = DEFAULT_JITTER,
        timeout: float = DEFAULT_TIMEOUT,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Provider API key (may be empty for keyless endpoints)
            initial_delay: Initial delay in seconds for retry backoff
            backoff_multiplier: Multiplier for exponential backoff
            max_retries: Maximum number of retry attempts
            max_delay: Maximum delay cap in seconds
            jitter: Jitter factor (±percentage) to randomize delays
            timeout: Per-request timeout in seconds
            max_connections: Connection pool size shared by concurrent requests
            transport: Optional httpx transport (e.g. httpx.MockTransport)
        """
        self.api_key = api_key
        self.initial_delay = initial_delay
        self.backoff_multiplier = backoff_multiplier
        self.max_retries = max_retries
        self.max_delay = max_delay
        self.jitter = jitter
        self.timeout = timeout
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max_connections // 2,
            ),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _sanitize_error_message(self, message: str) -> str:
        """Remove API key from error messages to prevent credential leakage."""
        if not self.api_key:
            return message
        return message.replace(self.api_key, "[REDACTED]")

    def _apply_jitter(self, delay: float) -> float:
        """Apply random jitter to a delay value."""
        jitter_range = delay * self.jitter
        return delay + random.uniform(-jitter_range, jitter_range)

    async def _backoff(self, delay: float) -> float:
        """Sleep for the current delay and return the next one."""
        await asyncio.sleep(self._apply_jitter(min(delay, self.max_delay)))
        return delay * self.backoff_multiplier

    async def _execute_with_retry(
        self,
        request_func: Callable[[], Awaitable[httpx.Response]],
    ) -> httpx.Response:
        """
        Execute a request coroutine factory with retry logic for rate limits and server errors.

        Args:
            request_func: A callable returning an awaitable httpx.Response

        Returns:
            The successful response

        Raises:
            UpstreamAPIError: For API errors after retries exhausted
            UpstreamRateLimitError: When rate limit retries are exhausted
        """
        delay = self.initial_delay

        for attempt in range(self.max_retries + 1):
            try:
                response = await request_func()
            except httpx.TransportError as e:
                if attempt < self.max_retries:
                    delay = await self._backoff(delay)
                    continue
                sanitized_msg = self._sanitize_error_message(str(e))
                raise UpstreamAPIError(
                    f"{self.provider_name}: request failed: {sanitized_msg}"
                ) from e

            if response.status_code == 429:
                if attempt < self.max_retries:
                    delay = await self._backoff(delay)
                    continue
                raise UpstreamRateLimitError(
                    f"{self.provider_name}: rate limit exceeded and max retries reached",
                    status_code=429,
                )

            if response.status_code == 401:
                raise UpstreamAPIError(
                    f"{self.provider_name}: invalid API key", status_code=401
                )

            if response.status_code >= 500:
                if attempt < self.max_retries:
                    delay = await self._backoff(delay)
                    continue
                raise UpstreamAPIError(
                    f"{self.provider_name}: server error {response.status_code}",
                    status_code=response.status_code,
                )

            if response.is_error:
                # 4xx other than 401/429 will not get better on retry
                raise UpstreamAPIError(
                    f"{self.provider_name}: request failed with status {response.status_code}",
                    status_code=response.status_code,
                )

            return response

        raise UpstreamAPIError(f"{self.provider_name}: max retries exceeded")

    @staticmethod
    def _decode_json(response: httpx.Response, provider_name: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamAPIError(
                f"{provider_name}: invalid JSON response",
                status_code=response.status_code,
            ) from e

    async def _get_json(
        self,
        url: str,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> Any:
        """GET a URL with retry and return the decoded JSON body."""
        response = await self._execute_with_retry(
            lambda: self.client.get(url, params=params, headers=headers)
        )
        return self._decode_json(response, self.provider_name)

    async def _post_json(self, url: str, payload: Any) -> Any:
        """POST a JSON payload with retry and return the decoded JSON body."""
        response = await self._execute_with_retry(lambda: self.client.post(url, json=payload))
        return self._decode_json(response, self.provider_name)
