"""Base async HTTP client with retry logic and error handling."""

import httpx
from typing import Optional, Dict, Tuple
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    wait_none,
    retry_if_exception_type
)

from ..utils.config import get_config
from ..utils.logger import get_api_logger


class BaseClient:
    """Base async HTTP client with retry logic and logging."""

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        auth: Optional[Tuple[str, str]] = None,
        max_retries: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize base client.

        Args:
            base_url: Base URL for API requests
            headers: Optional default headers
            auth: Optional basic-auth pair sent with every request
            max_retries: Attempts per request; defaults to ``api.max_retries``
            transport: Optional transport override (tests use ``httpx.MockTransport``)
        """
        self.base_url = base_url.rstrip("/")
        self.config = get_config()
        self.logger = get_api_logger()
        self.max_retries = max_retries or self.config.api.max_retries

        default_headers = {
            "Content-Type": "application/json",
            "User-Agent": "Catalog-Sync/1.0"
        }

        if headers:
            default_headers.update(headers)

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=default_headers,
            auth=auth,
            timeout=self.config.api.timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def _make_request_with_retry(self, method: str, url: str, **kwargs) -> httpx.Response:
        """
        Make HTTP request with retry logic.

        Only timeouts and network errors are retried; HTTP error statuses are
        returned to the caller untouched.

        Raises:
            httpx.HTTPError: If all retry attempts fail
        """
        if self.config.api.exponential_backoff:
            wait = wait_exponential(multiplier=self.config.api.retry_delay)
        else:
            wait = wait_none()

        @retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait,
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
            reraise=True
        )
        async def _request():
            self.logger.debug(f"{method} {url}")
            response = await self.client.request(method, url, **kwargs)
            self.logger.debug(f"Response: {response.status_code}")
            return response

        return await _request()

    async def get(self, endpoint: str, **kwargs) -> httpx.Response:
        """Make GET request."""
        return await self._make_request_with_retry("GET", endpoint, **kwargs)

    async def post(self, endpoint: str, **kwargs) -> httpx.Response:
        """Make POST request."""
        return await self._make_request_with_retry("POST", endpoint, **kwargs)

    async def patch(self, endpoint: str, **kwargs) -> httpx.Response:
        """Make PATCH request."""
        return await self._make_request_with_retry("PATCH", endpoint, **kwargs)

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
