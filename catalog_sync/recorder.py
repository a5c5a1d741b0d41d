import logging
import time
import uuid

from django.db import transaction

from .filters import FilterConfig
from .reconciler import RunStats

logger = logging.getLogger(__name__)

SYNC_TYPE = 'FILTERED'


def generate_sync_id() -> str:
    return f"sync_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class SyncRunRecorder:
    """
    Writes the run history row for one sync run.

    Bookkeeping must never take a run down, so both methods swallow store
    errors after logging them and always return None.
    """

    def __init__(self, store, sync_id: str = None):
        self.store = store
        self.sync_id = sync_id or generate_sync_id()

    def start(self, started_at, config: FilterConfig) -> None:
        try:
            with transaction.atomic():
                self.store.create_sync_run({
                    'id': self.sync_id,
                    'sync_type': SYNC_TYPE,
                    'started_at': started_at,
                    'products_synced': 0,
                    'products_skipped': 0,
                    'errors': [],
                    'metadata': {'config': config.as_dict(), 'strategy': SYNC_TYPE},
                })
        except Exception as exc:
            logger.warning("Failed to create sync run record %s: %s", self.sync_id, exc)

    def finalize(self, success: bool, completed_at, stats: RunStats, config: FilterConfig, error=None) -> None:
        errors = list(stats.error_messages)
        if error is not None:
            errors.insert(0, str(error))
        try:
            with transaction.atomic():
                updated = self.store.update_sync_run(self.sync_id, {
                    'completed_at': completed_at,
                    'products_synced': stats.synced,
                    'products_skipped': stats.skipped + stats.protected,
                    'errors': errors,
                    'metadata': {
                        'config': config.as_dict(),
                        'strategy': SYNC_TYPE,
                        'stats': stats.as_dict(),
                        'success': success,
                    },
                })
        except Exception as exc:
            logger.warning("Failed to finalize sync run record %s: %s", self.sync_id, exc)
            return
        if not updated:
            logger.warning("Sync run record %s not found – nothing finalized.", self.sync_id)
