import logging
import time
from threading import Lock

import requests
from django.conf import settings

from .exceptions import CatalogApiError

logger = logging.getLogger(__name__)

MAX_RETRIES = 3


class RequestPacer:
    """
    Keeps consecutive requests at least ``1 / rate`` seconds apart (thread-safe).

    The first request goes out immediately. Every later request sleeps for
    whatever is left of the minimum interval since the previous one.
    """

    def __init__(self, rate: float):
        self._interval = 1.0 / rate if rate else 0.0
        self._last_request = None
        self._lock = Lock()

    def wait(self):
        with self._lock:
            now = time.monotonic()
            if self._last_request is not None:
                remaining = self._interval - (now - self._last_request)
                if remaining > 0:
                    time.sleep(remaining)
                    now = time.monotonic()
            self._last_request = now


class CatalogClient:
    def __init__(self):
        self._base_url = settings.CATALOG_API_BASE_URL.rstrip('/')
        self._timeout = settings.CATALOG_API_TIMEOUT
        self._session = requests.Session()
        self._session.headers.update({
            'Authorization': f'Bearer {settings.CATALOG_API_TOKEN}',
            'Accept': 'application/json',
        })
        self._pacer = RequestPacer(settings.CATALOG_API_RATE_LIMIT)

    def search_catalog_objects(
        self,
        object_types,
        include_deleted: bool = False,
        include_related: bool = True,
        limit: int = 1000,
        cursor=None,
    ) -> dict:
        """Fetch one page of catalog objects. Returns the decoded JSON body."""
        payload = {
            'object_types': list(object_types),
            'include_deleted_objects': include_deleted,
            'include_related_objects': include_related,
            'limit': limit,
        }
        if cursor:
            payload['cursor'] = cursor

        response = self._request_with_retry('POST', f"{self._base_url}/catalog/search", json=payload)
        return response.json()

    def _request_with_retry(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        Send one catalog request, pacing it and retrying while the catalog throttles us.

        A 429 is retried up to ``MAX_RETRIES`` times in total, waiting for the
        catalog's ``Retry-After`` hint when it sends one and doubling a 1s
        delay otherwise. Other error statuses raise ``requests.HTTPError``
        straight away.
        """
        for attempt in range(1, MAX_RETRIES + 1):
            self._pacer.wait()
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
            if response.status_code != 429:
                response.raise_for_status()
                return response

            delay = self._retry_delay(response, attempt)
            logger.warning(
                "Catalog search throttled on %s (attempt %d/%d); retrying in %.1fs.",
                url, attempt, MAX_RETRIES, delay,
            )
            time.sleep(delay)

        raise CatalogApiError(
            f"Catalog API request {method} {url} failed after {MAX_RETRIES} retries due to rate limiting."
        )

    @staticmethod
    def _retry_delay(response: requests.Response, attempt: int) -> float:
        """Seconds to wait before the next attempt: ``Retry-After`` if numeric, else 1s, 2s, 4s..."""
        try:
            return float(response.headers['Retry-After'])
        except (KeyError, TypeError, ValueError):
            return 2.0 ** (attempt - 1)
