import logging

from celery import shared_task

from .orchestrator import preview_filtered_sync, sync_filtered_products

logger = logging.getLogger(__name__)


@shared_task(bind=True, name='catalog_sync.sync_filtered_products')
def sync_filtered_products_task(self, **overrides):
    """
    Run a filtered catalog sync in the background.

    Keyword arguments override the configured filter defaults for this run
    only (``batch_size``, ``selected_categories``, ``dry_run`` ...). Overlapping
    runs are not coordinated here; schedule the task so that only one runs at
    a time.
    """
    logger.info("Filtered catalog sync task %s started.", self.request.id)
    result = sync_filtered_products(**overrides)
    logger.info(
        "Filtered catalog sync task %s finished: success=%s, synced=%d, protected=%d, errors=%d.",
        self.request.id, result['success'], result['synced_products'],
        result['protected_items'], len(result['errors']),
    )
    return result


@shared_task(bind=True, name='catalog_sync.preview_filtered_sync')
def preview_filtered_sync_task(self, **overrides):
    """Read-only preview of a filtered sync."""
    return preview_filtered_sync(**overrides)
