"""Google Books API client."""

from __future__ import annotations

import random
import time
from typing import Any, Mapping

import requests

from BookPager.utils.log import log

GOOGLE_BOOKS_URL = "https://www.googleapis.com/books/v1"
DEFAULT_TIMEOUT = 30.0
MAX_ATTEMPTS = 4
BASE_PAUSE = 0.8
MAX_SLEEP = 8.0
RETRYABLE_STATUS = {429, 500, 502, 503, 504}

HEADERS = {
    "User-Agent": "book-pager/0.1",
    "Accept": "application/json",
}


class GoogleBooksApiClient:
    """Low-level HTTP client for the Google Books `volumes` endpoint.

    Responsible only for the request/retry cycle and returning the decoded
    JSON payload. Parsing and domain mapping are handled elsewhere.
    """

    def __init__(
        self,
        *,
        base_url: str = GOOGLE_BOOKS_URL,
        api_key: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        max_attempts: int = MAX_ATTEMPTS,
    ) -> None:
        self._session = requests.Session()
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()

    def __enter__(self) -> GoogleBooksApiClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def fetch_volumes(self, *, query_params: Mapping[str, str], timeout: float | None = None) -> dict[str, Any]:
        """Fetch one batch of volumes.

        Args:
            query_params: Compiled Google Books query parameters
                (`q`, `startIndex`, `maxResults`, ...).
            timeout: Request timeout in seconds; defaults to the client timeout.

        Returns:
            Decoded JSON payload (a mapping with `totalItems` and `items`).

        Raises:
            requests.RequestException: When the request fails after retries.
            ValueError: When the response body is not a JSON object.
        """
        params = {key: value for key, value in query_params.items() if str(value).strip()}
        if self.api_key:
            params["key"] = self.api_key

        log.debug(
            "Google Books fetch: q=%s startIndex=%s maxResults=%s",
            params.get("q"),
            params.get("startIndex"),
            params.get("maxResults"),
        )
        response = self._get_with_retry(params=params, timeout=timeout or self.timeout)
        response.raise_for_status()

        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("Google Books response is not a JSON object")
        return payload

    def _get_with_retry(self, *, params: dict[str, str], timeout: float) -> requests.Response:
        """Issue GET with retries for transient failures."""
        last_error: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                response = self._session.get(
                    f"{self.base_url}/volumes",
                    params=params,
                    headers=HEADERS,
                    timeout=timeout,
                )
                if response.status_code in RETRYABLE_STATUS:
                    raise requests.HTTPError(f"HTTP {response.status_code}", response=response)
                return response
            except (requests.Timeout, requests.ConnectionError, requests.HTTPError) as error:
                last_error = error
                if isinstance(error, requests.HTTPError):
                    status_code = getattr(error.response, "status_code", None)
                    if status_code not in RETRYABLE_STATUS:
                        raise
                if attempt < self.max_attempts:
                    delay = min(BASE_PAUSE * (2 ** (attempt - 1)) + random.uniform(0, 0.3), MAX_SLEEP)
                    log.debug(
                        "Google Books retry attempt=%d/%d delay=%.2fs error=%s",
                        attempt,
                        self.max_attempts,
                        delay,
                        error,
                    )
                    time.sleep(delay)

        assert last_error is not None
        raise last_error
