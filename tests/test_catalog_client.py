import json
import threading
import time
from unittest.mock import patch

import pytest
import requests
import responses as responses_lib

from catalog_sync.catalog_client import CatalogClient, RequestPacer
from catalog_sync.exceptions import CatalogApiError
from tests.catalog_payloads import BASE_URL

SEARCH_URL = f'{BASE_URL}/catalog/search'


# ---------------------------------------------------------------------------
# Search request
# ---------------------------------------------------------------------------

class TestSearchCatalogObjects:
    @responses_lib.activate
    def test_posts_to_search_endpoint(self):
        responses_lib.add(responses_lib.POST, SEARCH_URL, json={'objects': []}, status=200)
        client = CatalogClient()
        client.search_catalog_objects(['ITEM', 'CATEGORY'])
        assert len(responses_lib.calls) == 1
        assert responses_lib.calls[0].request.url == SEARCH_URL

    @responses_lib.activate
    def test_sends_bearer_token(self):
        responses_lib.add(responses_lib.POST, SEARCH_URL, json={}, status=200)
        CatalogClient().search_catalog_objects(['ITEM'])
        assert responses_lib.calls[0].request.headers['Authorization'] == 'Bearer catalog-secret-token'

    @responses_lib.activate
    def test_request_body(self):
        responses_lib.add(responses_lib.POST, SEARCH_URL, json={}, status=200)
        CatalogClient().search_catalog_objects(('ITEM', 'CATEGORY'), limit=200)

        sent_body = json.loads(responses_lib.calls[0].request.body)
        assert sent_body == {
            'object_types': ['ITEM', 'CATEGORY'],
            'include_deleted_objects': False,
            'include_related_objects': True,
            'limit': 200,
        }

    @responses_lib.activate
    def test_cursor_is_forwarded(self):
        responses_lib.add(responses_lib.POST, SEARCH_URL, json={}, status=200)
        CatalogClient().search_catalog_objects(['ITEM'], cursor='page-2')
        assert json.loads(responses_lib.calls[0].request.body)['cursor'] == 'page-2'

    @responses_lib.activate
    def test_returns_decoded_body(self):
        body = {'objects': [{'type': 'ITEM', 'id': 'ITEM-1'}], 'cursor': 'next'}
        responses_lib.add(responses_lib.POST, SEARCH_URL, json=body, status=200)
        assert CatalogClient().search_catalog_objects(['ITEM']) == body


# ---------------------------------------------------------------------------
# Retry on 429
# ---------------------------------------------------------------------------

class TestRetryOn429:
    @responses_lib.activate
    def test_retry_after_header_respected(self):
        responses_lib.add(responses_lib.POST, SEARCH_URL, status=429, headers={'Retry-After': '0'})
        responses_lib.add(responses_lib.POST, SEARCH_URL, json={'objects': []}, status=200)

        with patch('catalog_sync.catalog_client.time.sleep') as mock_sleep:
            result = CatalogClient().search_catalog_objects(['ITEM'])

        assert result == {'objects': []}
        assert len(responses_lib.calls) == 2
        mock_sleep.assert_called_once_with(0.0)

    @responses_lib.activate
    def test_exponential_backoff_when_no_retry_after(self):
        responses_lib.add(responses_lib.POST, SEARCH_URL, status=429)
        responses_lib.add(responses_lib.POST, SEARCH_URL, status=429)
        responses_lib.add(responses_lib.POST, SEARCH_URL, json={}, status=200)

        with patch('catalog_sync.catalog_client.time.sleep') as mock_sleep:
            CatalogClient().search_catalog_objects(['ITEM'])

        sleep_args = [call.args[0] for call in mock_sleep.call_args_list]
        assert sleep_args == [1.0, 2.0]

    @responses_lib.activate
    def test_retry_after_on_later_attempt_replaces_backoff(self):
        responses_lib.add(responses_lib.POST, SEARCH_URL, status=429)
        responses_lib.add(responses_lib.POST, SEARCH_URL, status=429, headers={'Retry-After': '3'})
        responses_lib.add(responses_lib.POST, SEARCH_URL, json={}, status=200)

        with patch('catalog_sync.catalog_client.time.sleep') as mock_sleep:
            CatalogClient().search_catalog_objects(['ITEM'])

        assert [call.args[0] for call in mock_sleep.call_args_list] == [1.0, 3.0]

    @responses_lib.activate
    def test_non_numeric_retry_after_falls_back_to_backoff(self):
        responses_lib.add(responses_lib.POST, SEARCH_URL, status=429, headers={'Retry-After': 'soon'})
        responses_lib.add(responses_lib.POST, SEARCH_URL, json={}, status=200)

        with patch('catalog_sync.catalog_client.time.sleep') as mock_sleep:
            CatalogClient().search_catalog_objects(['ITEM'])

        mock_sleep.assert_called_once_with(1.0)

    @responses_lib.activate
    def test_raises_after_max_retries_exceeded(self):
        for _ in range(3):
            responses_lib.add(responses_lib.POST, SEARCH_URL, status=429)

        with patch('catalog_sync.catalog_client.time.sleep'):
            with pytest.raises(CatalogApiError, match='rate limiting'):
                CatalogClient().search_catalog_objects(['ITEM'])


# ---------------------------------------------------------------------------
# Other HTTP errors
# ---------------------------------------------------------------------------

class TestHttpErrors:
    @pytest.mark.parametrize('status_code', [400, 401, 500])
    @responses_lib.activate
    def test_non_429_error_raises_immediately(self, status_code):
        responses_lib.add(responses_lib.POST, SEARCH_URL, json={'errors': []}, status=status_code)

        with pytest.raises(requests.HTTPError):
            CatalogClient().search_catalog_objects(['ITEM'])

        assert len(responses_lib.calls) == 1


class TestBaseUrlNormalization:
    @responses_lib.activate
    def test_trailing_slash_in_base_url_does_not_duplicate(self, settings):
        settings.CATALOG_API_BASE_URL = BASE_URL + '/'
        responses_lib.add(responses_lib.POST, SEARCH_URL, json={}, status=200)

        CatalogClient().search_catalog_objects(['ITEM'])

        assert responses_lib.calls[0].request.url == SEARCH_URL


# ---------------------------------------------------------------------------
# Request pacing
# ---------------------------------------------------------------------------

class TestRequestPacer:
    def test_first_request_is_immediate(self):
        pacer = RequestPacer(rate=5)
        with patch('catalog_sync.catalog_client.time.sleep') as mock_sleep:
            pacer.wait()
        mock_sleep.assert_not_called()

    def test_back_to_back_requests_are_spaced(self):
        pacer = RequestPacer(rate=5)
        pacer.wait()
        start = time.monotonic()
        pacer.wait()
        elapsed = time.monotonic() - start
        assert elapsed >= 0.15, f"Second request should wait ~0.2s, got {elapsed:.2f}s"

    def test_zero_rate_disables_pacing(self):
        pacer = RequestPacer(rate=0)
        with patch('catalog_sync.catalog_client.time.sleep') as mock_sleep:
            for _ in range(5):
                pacer.wait()
        mock_sleep.assert_not_called()

    def test_concurrent_waits_complete_without_errors(self):
        pacer = RequestPacer(rate=1000)
        errors = []

        def wait():
            try:
                pacer.wait()
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=wait) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors
