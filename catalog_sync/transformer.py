import logging
import re
from typing import Optional

from django.utils.text import slugify

logger = logging.getLogger(__name__)

PRIVATE_VISIBILITY = 'PRIVATE'


def _parse_amount(value, external_id) -> int:
    """Convert a price amount to int minor units; unparseable values count as 0."""
    try:
        # Minor units are whole numbers: no truncation, no booleans.
        if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
            raise ValueError(value)
        amount = int(value)
    except (TypeError, ValueError, OverflowError):
        logger.warning("Item %s has unparseable price amount %r – treating as 0.", external_id, value)
        return 0
    if amount < 0:
        logger.warning("Item %s has negative price amount %s – treating as 0.", external_id, amount)
        return 0
    return amount


def extract_price(item_data: dict, external_id) -> int:
    """Price of the first variation in minor units, or 0 (with a warning) if there is none."""
    variations = item_data.get('variations') or []
    if not variations:
        logger.warning("Item %s has no variations – price set to 0.", external_id)
        return 0

    variation_data = (variations[0] or {}).get('item_variation_data') or {}
    price_money = variation_data.get('price_money') or {}
    amount = price_money.get('amount')
    if amount is None:
        logger.warning("Item %s has no listed price on its first variation – price set to 0.", external_id)
        return 0
    return _parse_amount(amount, external_id)


def collect_category_ids(item_data: dict) -> list:
    """Union of the list-valued ``categories`` and the legacy scalar ``category_id``."""
    ids = []
    for ref in item_data.get('categories') or []:
        category_id = ref.get('id') if isinstance(ref, dict) else ref
        if category_id and category_id not in ids:
            ids.append(category_id)
    legacy_id = item_data.get('category_id')
    if legacy_id and legacy_id not in ids:
        ids.append(legacy_id)
    return ids


def compute_active(item: dict) -> bool:
    return (
        not item['is_deleted']
        and item['available_online']
        and item['present_at_all_locations']
        and item['visibility'] != PRIVATE_VISIBILITY
    )


def generate_slug(name: str) -> str:
    """
    URL-safe slug: lowercase, non-alphanumerics stripped, whitespace runs
    turned into single hyphens, no leading or trailing hyphens.
    """
    slug = slugify(name or '').replace('_', '')
    return re.sub(r'-{2,}', '-', slug).strip('-')


def build_catalog_item(raw: dict) -> Optional[dict]:
    """
    Flatten a raw ITEM object from the catalog service into a catalog item dict.

    Returns None (and logs a warning) if the object carries no item data.
    """
    external_id = raw.get('id', '<unknown>')
    item_data = raw.get('item_data')
    if not item_data:
        logger.warning("Skipping object %s – no item data.", external_id)
        return None

    return {
        'external_id': external_id,
        'name': item_data.get('name') or 'Unknown Product',
        'description': item_data.get('description') or '',
        'price_minor_units': extract_price(item_data, external_id),
        'image_ref_ids': list(item_data.get('image_ids') or []),
        'category_ref_ids': collect_category_ids(item_data),
        'is_deleted': bool(raw.get('is_deleted', False)),
        'visibility': item_data.get('visibility') or 'PUBLIC',
        'available_online': item_data.get('available_online', True) is not False,
        'present_at_all_locations': raw.get(
            'present_at_all_locations', item_data.get('present_at_all_locations', True)
        ) is not False,
    }
