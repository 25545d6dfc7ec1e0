"""HTTP client for spreadsheet web-app endpoints (fetch rows / append rows).

The core pipeline never calls this; callers fetch rows first and hand them
to the pipeline as plain lists.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx

logger = logging.getLogger(__name__)

MAX_RETRIES = 2
RETRY_BASE_DELAY = 0.5  # seconds, doubles each attempt
DEFAULT_TIMEOUT = 30.0


class SheetSyncError(Exception):
    """Raised when a sheet endpoint cannot be read or written."""

    def __init__(self, url: str, detail: str, attempts: int = 1):
        self.url = url
        self.detail = detail
        self.attempts = attempts
        super().__init__(f"Sheet request to {url} failed after {attempts} attempt(s): {detail}")


class SheetClient:
    """Synchronous client with bounded exponential-backoff retries on GET."""

    def __init__(
        self,
        http: Optional[httpx.Client] = None,
        max_retries: int = MAX_RETRIES,
        base_delay: float = RETRY_BASE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._http = http or httpx.Client(timeout=DEFAULT_TIMEOUT, follow_redirects=True)
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._sleep = sleep

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "SheetClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def fetch(self, url: str) -> List[Dict[str, Any]]:
        """GET ``url`` and return its rows.

        The body must be a JSON array, or an object with a ``data`` array.
        """
        response = self._get_with_retry(url)
        try:
            payload = response.json()
        except ValueError as exc:
            raise SheetSyncError(url, f"response is not JSON: {exc}") from exc

        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict) and isinstance(payload.get("data"), list):
            return payload["data"]
        raise SheetSyncError(url, "expected an array or an object with a 'data' array")

    def append(self, url: str, rows: Sequence[Dict[str, Any]]) -> Any:
        """POST ``rows`` to ``url``; not retried, appends are not idempotent."""
        try:
            # Plain-text body keeps simple doPost handlers happy.
            response = self._http.post(
                url,
                content=json.dumps(list(rows), ensure_ascii=False, default=str),
                headers={"Content-Type": "text/plain"},
            )
        except httpx.HTTPError as exc:
            raise SheetSyncError(url, str(exc)) from exc

        if response.is_error:
            raise SheetSyncError(url, f"HTTP {response.status_code}: {response.text[:300]}")
        logger.info("Appended %d rows to %s", len(rows), url)
        try:
            return response.json()
        except ValueError:
            return response.text

    def _get_with_retry(self, url: str) -> httpx.Response:
        delay = self._base_delay
        attempts = self._max_retries + 1
        last_error = ""
        for attempt in range(1, attempts + 1):
            try:
                response = self._http.get(url)
                if not response.is_error:
                    return response
                last_error = f"HTTP {response.status_code} - {response.reason_phrase}"
            except httpx.HTTPError as exc:
                last_error = str(exc) or exc.__class__.__name__

            logger.warning(
                "Fetch attempt %d/%d failed for %s: %s",
                attempt,
                attempts,
                url,
                last_error,
            )
            if attempt < attempts:
                self._sleep(delay)
                delay *= 2

        raise SheetSyncError(url, last_error, attempts=attempts)
