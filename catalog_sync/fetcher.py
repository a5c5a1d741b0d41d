import logging
from typing import NamedTuple

import requests

from .catalog_client import CatalogClient
from .exceptions import CatalogApiError, CatalogFetchError
from .graph import RelatedObjectGraph
from .transformer import build_catalog_item

logger = logging.getLogger(__name__)

ITEM = 'ITEM'
OBJECT_TYPES = ('ITEM', 'CATEGORY')


class CatalogSnapshot(NamedTuple):
    items: list
    graph: RelatedObjectGraph


def _fetch_page(client: CatalogClient, limit: int, cursor) -> dict:
    try:
        page = client.search_catalog_objects(
            OBJECT_TYPES,
            include_deleted=False,
            include_related=True,
            limit=limit,
            cursor=cursor,
        )
    except (requests.RequestException, CatalogApiError, ValueError) as exc:
        raise CatalogFetchError(f"Failed to fetch catalog: {exc}") from exc

    if not isinstance(page, dict):
        raise CatalogFetchError(f"Unexpected catalog response of type {type(page).__name__}.")
    return page


def fetch_catalog(client: CatalogClient, limit: int = 1000) -> CatalogSnapshot:
    """
    Fetch the whole catalog, following cursors until the last page.

    Items are flattened into catalog item dicts. Every non-item object, whether
    it came back at the top level or among the related objects, feeds the
    related-object graph.
    """
    raw_items = []
    other_objects = []
    related_objects = []
    seen_cursors = set()
    cursor = None
    pages = 0

    while True:
        page = _fetch_page(client, limit, cursor)
        pages += 1
        for obj in page.get('objects') or []:
            if obj.get('type') == ITEM:
                raw_items.append(obj)
            else:
                other_objects.append(obj)
        related_objects.extend(page.get('related_objects') or [])

        cursor = page.get('cursor')
        if not cursor:
            break
        if cursor in seen_cursors:
            raise CatalogFetchError(f"Catalog service returned cursor {cursor!r} twice.")
        seen_cursors.add(cursor)

    graph = RelatedObjectGraph.from_objects(other_objects + related_objects)

    items = []
    for raw in raw_items:
        item = build_catalog_item(raw)
        if item is not None:
            items.append(item)

    logger.info(
        "Fetched %d catalog items in %d page(s); %d categories and %d images in related objects.",
        len(items), pages, len(graph.categories()), len(graph.images()),
    )
    return CatalogSnapshot(items, graph)
