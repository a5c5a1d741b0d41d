import json
from unittest.mock import patch

import pytest
import responses as responses_lib

from catalog_sync.catalog_client import CatalogClient
from catalog_sync.exceptions import CatalogFetchError
from catalog_sync.fetcher import fetch_catalog
from tests.catalog_payloads import BASE_URL, category_obj, image_obj, item_obj, search_response

SEARCH_URL = f'{BASE_URL}/catalog/search'


@responses_lib.activate
def test_single_page_builds_items_and_graph():
    responses_lib.add(responses_lib.POST, SEARCH_URL, json=search_response(
        [item_obj('ITEM-1', 'Alfajor', category_ids=['CAT-ALF'], image_ids=['IMG-1'])],
        [category_obj('CAT-ALF', 'ALFAJORES'), image_obj('IMG-1', 'https://img.example.com/1.jpg')],
    ))

    snapshot = fetch_catalog(CatalogClient(), limit=100)

    assert [item['external_id'] for item in snapshot.items] == ['ITEM-1']
    assert snapshot.graph.get_category('CAT-ALF').name == 'ALFAJORES'
    assert snapshot.graph.get_image('IMG-1').url == 'https://img.example.com/1.jpg'
    sent_body = json.loads(responses_lib.calls[0].request.body)
    assert sent_body['object_types'] == ['ITEM', 'CATEGORY']
    assert sent_body['include_deleted_objects'] is False
    assert sent_body['include_related_objects'] is True
    assert sent_body['limit'] == 100


@responses_lib.activate
def test_top_level_categories_are_merged_into_graph():
    responses_lib.add(responses_lib.POST, SEARCH_URL, json=search_response(
        [item_obj('ITEM-1', 'Alfajor'), category_obj('CAT-TOP', 'EMPANADAS')],
        [category_obj('CAT-REL', 'ALFAJORES')],
    ))

    snapshot = fetch_catalog(CatalogClient())

    assert {category.id for category in snapshot.graph.categories()} == {'CAT-TOP', 'CAT-REL'}
    assert len(snapshot.items) == 1


@responses_lib.activate
def test_pages_are_followed_until_cursor_runs_out():
    responses_lib.add(responses_lib.POST, SEARCH_URL, json=search_response(
        [item_obj('ITEM-1', 'Alfajor')], [category_obj('CAT-ALF', 'ALFAJORES')], cursor='page-2',
    ))
    responses_lib.add(responses_lib.POST, SEARCH_URL, json=search_response(
        [item_obj('ITEM-2', 'Empanada')], [image_obj('IMG-1', 'https://img.example.com/1.jpg')],
    ))

    snapshot = fetch_catalog(CatalogClient())

    assert [item['external_id'] for item in snapshot.items] == ['ITEM-1', 'ITEM-2']
    assert snapshot.graph.get_category('CAT-ALF') is not None
    assert snapshot.graph.get_image('IMG-1') is not None
    assert len(responses_lib.calls) == 2
    assert 'cursor' not in json.loads(responses_lib.calls[0].request.body)
    assert json.loads(responses_lib.calls[1].request.body)['cursor'] == 'page-2'


@responses_lib.activate
def test_items_without_item_data_are_dropped():
    responses_lib.add(responses_lib.POST, SEARCH_URL, json=search_response(
        [item_obj('ITEM-1', 'Alfajor'), {'type': 'ITEM', 'id': 'ITEM-BROKEN'}],
    ))

    snapshot = fetch_catalog(CatalogClient())

    assert [item['external_id'] for item in snapshot.items] == ['ITEM-1']


@responses_lib.activate
def test_http_error_becomes_fetch_error():
    responses_lib.add(responses_lib.POST, SEARCH_URL, json={'errors': []}, status=500)

    with pytest.raises(CatalogFetchError):
        fetch_catalog(CatalogClient())


@responses_lib.activate
def test_exhausted_rate_limit_retries_become_fetch_error():
    for _ in range(3):
        responses_lib.add(responses_lib.POST, SEARCH_URL, status=429)

    with patch('catalog_sync.catalog_client.time.sleep'):
        with pytest.raises(CatalogFetchError, match='rate limiting'):
            fetch_catalog(CatalogClient())


@responses_lib.activate
def test_repeated_cursor_aborts_fetch():
    for _ in range(2):
        responses_lib.add(responses_lib.POST, SEARCH_URL, json=search_response([], cursor='same'))

    with pytest.raises(CatalogFetchError, match='twice'):
        fetch_catalog(CatalogClient())


@responses_lib.activate
def test_non_object_response_becomes_fetch_error():
    responses_lib.add(responses_lib.POST, SEARCH_URL, json=['not', 'a', 'page'])

    with pytest.raises(CatalogFetchError):
        fetch_catalog(CatalogClient())
