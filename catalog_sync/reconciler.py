import dataclasses
import logging
import time
from dataclasses import dataclass, field

from django.conf import settings
from django.db import transaction

from .assets import resolve_image_urls
from .filters import FilterAction, FilterConfig, evaluate_item
from .graph import RelatedObjectGraph
from .protection import LocalProtection
from .transformer import compute_active, generate_slug

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_NAME = 'Products'
DEFAULT_CATEGORY_ORDER = 999
CATEGORY_ORDER = {
    'ALFAJORES': 1,
    'EMPANADAS': 2,
}
MAX_SLUG_SUFFIX = 100


@dataclass
class RunStats:
    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    protected: int = 0
    errors: int = 0
    images_processed: int = 0
    error_messages: list = field(default_factory=list)

    @property
    def synced(self) -> int:
        return self.created + self.updated

    def as_dict(self) -> dict:
        return dataclasses.asdict(self)


def chunked(items, size):
    for start in range(0, len(items), size):
        yield items[start:start + size]


class Reconciler:
    """
    Turns fetched catalog items into creates and updates against the local store.

    Batches run one after another with a short pause in between, and items
    inside a batch run one after another too. Each item is its own atomic unit:
    a failing item is logged and counted, and the rest of the batch carries on.
    """

    def __init__(self, config: FilterConfig, store, sleep=time.sleep):
        self.config = config
        self.store = store
        self._sleep = sleep

    def reconcile(self, items: list, graph: RelatedObjectGraph, stats: RunStats = None,
                  protection: LocalProtection = None) -> RunStats:
        stats = stats if stats is not None else RunStats()
        protection = protection or LocalProtection(self.config)
        batches = list(chunked(items, self.config.batch_size))

        for index, batch in enumerate(batches, start=1):
            logger.info("Processing batch %d/%d (%d items).", index, len(batches), len(batch))
            self._process_batch(batch, graph, stats, protection)
            if index < len(batches):
                self._sleep(settings.CATALOG_SYNC_BATCH_DELAY)

        logger.info(
            "Reconciliation complete. created=%d, updated=%d, skipped=%d, protected=%d, errors=%d.",
            stats.created, stats.updated, stats.skipped, stats.protected, stats.errors,
        )
        return stats

    def _process_batch(self, batch: list, graph: RelatedObjectGraph, stats: RunStats, protection: LocalProtection):
        for item in batch:
            external_id = item.get('external_id')
            try:
                self._process_item(item, graph, stats, protection)
                stats.processed += 1
            except Exception as exc:
                stats.errors += 1
                stats.error_messages.append(f"{external_id}: {exc}")
                logger.error("Failed to sync item %s: %s", external_id, exc)

    def _process_item(self, item: dict, graph: RelatedObjectGraph, stats: RunStats, protection: LocalProtection):
        external_id = item['external_id']
        decision = evaluate_item(item, graph, self.config)

        if decision.action is FilterAction.SKIP_PROTECTED:
            stats.protected += 1
            logger.debug("Item %s skipped: %s.", external_id, decision.reason)
            return
        if decision.action is FilterAction.SKIP_UNMATCHED:
            stats.skipped += 1
            logger.debug("Item %s skipped: %s.", external_id, decision.reason)
            return

        existing = self.store.find_product_by_external_id(external_id)
        skip_reason = protection.skip_reason(existing) if existing is not None else None
        if skip_reason:
            stats.protected += 1
            logger.debug("Item %s skipped: %s.", external_id, skip_reason)
            return

        if self.config.dry_run:
            images = self._resolve_images(item, graph)
            if existing is not None:
                stats.updated += 1
            else:
                stats.created += 1
            if images:
                stats.images_processed += 1
            logger.debug("Dry run: would %s item %s.", 'update' if existing else 'create', external_id)
            return

        with transaction.atomic():
            category = self._ensure_category(decision.category)
            data = {
                'name': item['name'],
                'description': item['description'],
                'price_minor_units': item['price_minor_units'],
                'category': category,
                'active': compute_active(item),
            }
            if self.config.enable_image_sync:
                data['images'] = self._resolve_images(item, graph)

            if existing is not None:
                self.store.update_product(existing.pk, data)
                stats.updated += 1
                logger.debug("Updated product %s (%s).", data['name'], external_id)
            else:
                data.setdefault('images', [])
                data['external_id'] = external_id
                data['slug'] = self._unique_slug(item['name'], external_id)
                self.store.create_product(data)
                stats.created += 1
                logger.debug("Created product %s (%s).", data['name'], external_id)

        if data.get('images'):
            stats.images_processed += 1

    def _resolve_images(self, item: dict, graph: RelatedObjectGraph) -> list:
        if not self.config.enable_image_sync:
            return []
        image_ids = item['image_ref_ids']
        return resolve_image_urls(image_ids, graph, expect_images=bool(image_ids))

    def _ensure_category(self, match):
        """Find the local category for a matched external category, creating it when missing."""
        if match is not None and match.name:
            name, external_id = match.name, match.category_id
        else:
            name, external_id = DEFAULT_CATEGORY_NAME, None

        category = self.store.find_category_by_name_or_external_id(name, external_id)
        if category is not None:
            if external_id and not category.external_id:
                self.store.update_category(category.pk, {'external_id': external_id})
                category.external_id = external_id
                logger.info("Linked category %s to external id %s.", category.name, external_id)
            return category

        category = self.store.create_category({
            'name': name,
            'slug': generate_slug(name),
            'external_id': external_id,
            'order': CATEGORY_ORDER.get(name.strip().upper(), DEFAULT_CATEGORY_ORDER),
        })
        logger.info("Created category %s (external id %s).", name, external_id)
        return category

    def _unique_slug(self, name: str, external_id) -> str:
        base = generate_slug(name) or generate_slug(external_id) or 'product'
        slug = base
        for counter in range(1, MAX_SLUG_SUFFIX + 1):
            if not self.store.product_slug_exists(slug):
                return slug
            slug = f"{base}-{counter}"
        return f"{base}-{generate_slug(external_id)}"
