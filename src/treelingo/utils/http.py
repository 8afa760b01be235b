"""Async HTTP client with retry logic shared by providers and stores."""

from typing import Any, Optional

import httpx
from tenacity import (
    RetryError,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from treelingo.exceptions import APIError, NetworkError

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def _is_retryable(exc: BaseException) -> bool:
    """Timeouts, transport errors, rate limits and server errors are retried."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return isinstance(exc, (httpx.TimeoutException, httpx.NetworkError))


class HTTPClient:
    """Async HTTP client with automatic retry logic."""

    def __init__(
        self,
        timeout: int = 30,
        max_retries: int = 3,
        headers: Optional[dict[str, str]] = None,
    ):
        """
        Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds
            max_retries: Maximum number of attempts per request
            headers: Optional default headers
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.default_headers = headers or {}

    async def get(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        """Execute GET request with retry logic."""
        return await self.request("GET", url, params=params, headers=headers)

    async def post(
        self,
        url: str,
        json: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        """Execute POST request with retry logic."""
        return await self.request("POST", url, json=json, headers=headers)

    async def request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        """
        Execute a request, retrying transient failures.

        Args:
            method: HTTP method
            url: Target URL
            params: Optional query parameters
            json: Optional JSON payload
            headers: Optional request headers merged over the defaults

        Returns:
            HTTP response with a 2xx status

        Raises:
            NetworkError: If the request keeps failing after retries
            APIError: If the server rejects the request (non-retryable status)
        """
        merged_headers = {**self.default_headers, **(headers or {})}

        @retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        )
        async def _request_with_retry() -> httpx.Response:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=merged_headers,
                )
                response.raise_for_status()
                return response

        try:
            return await _request_with_retry()
        except RetryError as e:
            raise NetworkError(f"{method} {url} failed after {self.max_retries} attempts") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in RETRYABLE_STATUS_CODES:
                raise NetworkError(
                    f"{method} {url} failed after {self.max_retries} attempts (HTTP {status})"
                ) from e
            raise APIError(f"{method} {url} rejected with HTTP {status}: {e.response.text[:200]}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"HTTP error on {method} {url}: {e}") from e
