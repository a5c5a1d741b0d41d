import pytest

from catalog_sync.filters import FilterConfig
from catalog_sync.graph import RelatedObjectGraph
from catalog_sync.transformer import build_catalog_item
from tests.catalog_payloads import BASE_URL, CATEGORIES, IMAGES


@pytest.fixture(autouse=True)
def override_settings(settings):
    settings.CATALOG_API_BASE_URL = BASE_URL
    settings.CATALOG_API_TOKEN = 'catalog-secret-token'
    settings.CATALOG_API_RATE_LIMIT = 0
    settings.CATALOG_SYNC_BATCH_DELAY = 0
    settings.CATALOG_SYNC_PRODUCT_NAME_PATTERNS = [r'alfajor', r'empanada']
    settings.CATALOG_SYNC_ALLOWED_CATEGORIES = ['ALFAJORES', 'EMPANADAS']
    settings.CATALOG_SYNC_PROTECTED_CATEGORIES = ['CATERING- DESSERTS', 'PLATTERS']
    settings.CATALOG_SYNC_BATCH_SIZE = 50
    settings.CATALOG_SYNC_ENABLE_IMAGES = True


@pytest.fixture()
def graph():
    return RelatedObjectGraph.from_objects(CATEGORIES + IMAGES)


@pytest.fixture()
def config():
    return FilterConfig.from_settings()


@pytest.fixture()
def make_items():
    """Turn raw item objects into catalog item dicts."""
    def _make(*raw_items):
        return [build_catalog_item(raw) for raw in raw_items]
    return _make
