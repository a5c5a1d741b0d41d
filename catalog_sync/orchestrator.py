import enum
import logging
import time
from typing import Optional

from django.conf import settings
from django.utils import timezone

from .catalog_client import CatalogClient
from .exceptions import CatalogFetchError
from .fetcher import fetch_catalog
from .filters import FilterConfig
from .preview import PreviewPlanner
from .protection import LocalProtection
from .reconciler import Reconciler, RunStats
from .recorder import SYNC_TYPE, SyncRunRecorder
from .store import DjangoCatalogStore

logger = logging.getLogger(__name__)


class SyncState(enum.Enum):
    INITIALIZED = 'initialized'
    FETCHING = 'fetching'
    RECONCILING = 'reconciling'
    FINALIZING = 'finalizing'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'


class SyncOrchestrator:
    """
    Runs one filtered catalog sync from start to finish.

    ``run()`` always hands back a report: a fetch failure ends the run early
    with ``success=False`` instead of raising. ``preview()`` is read-only and
    never writes run history.
    """

    def __init__(self, config: FilterConfig, client: CatalogClient = None, store=None, sleep=time.sleep):
        self.config = config
        self.client = client or CatalogClient()
        self.store = store or DjangoCatalogStore()
        self.recorder = None
        self.protection = None
        self.reconciler = Reconciler(config, self.store, sleep=sleep)
        self.state = SyncState.INITIALIZED

    @property
    def sync_id(self) -> Optional[str]:
        return self.recorder.sync_id if self.recorder is not None else None

    def _transition(self, state: SyncState):
        logger.debug("Sync %s: %s -> %s", self.sync_id, self.state.value, state.value)
        self.state = state

    def _init_protection(self):
        self.protection = LocalProtection.load(self.store, self.config)

    def run(self) -> dict:
        # Each invocation is its own run with its own history row.
        self.recorder = SyncRunRecorder(self.store)
        self.state = SyncState.INITIALIZED
        started_at = timezone.now()
        stats = RunStats()
        logger.info("Starting filtered catalog sync %s (dry_run=%s).", self.sync_id, self.config.dry_run)

        self.recorder.start(started_at, self.config)

        try:
            self._init_protection()
            self._transition(SyncState.FETCHING)
            snapshot = fetch_catalog(self.client, settings.CATALOG_FETCH_LIMIT)

            self._transition(SyncState.RECONCILING)
            self.reconciler.reconcile(snapshot.items, snapshot.graph, stats, self.protection)
        except Exception as exc:
            logger.exception("Filtered catalog sync %s failed: %s", self.sync_id, exc)
            self._transition(SyncState.FINALIZING)
            completed_at = timezone.now()
            self.recorder.finalize(False, completed_at, stats, self.config, error=exc)
            self._transition(SyncState.FAILED)
            return self._build_report(False, stats, started_at, completed_at, error=exc)

        self._transition(SyncState.FINALIZING)
        completed_at = timezone.now()
        self.recorder.finalize(True, completed_at, stats, self.config)
        self._transition(SyncState.SUCCEEDED)
        return self._build_report(True, stats, started_at, completed_at)

    def preview(self) -> dict:
        logger.info("Generating filtered sync preview.")
        self._init_protection()
        self._transition(SyncState.FETCHING)
        try:
            snapshot = fetch_catalog(self.client, settings.CATALOG_FETCH_LIMIT)
        except CatalogFetchError:
            self._transition(SyncState.FAILED)
            raise
        result = PreviewPlanner(self.config, self.store, self.protection).plan(snapshot.items, snapshot.graph)
        self._transition(SyncState.SUCCEEDED)
        return result

    def _build_report(self, success: bool, stats: RunStats, started_at, completed_at, error=None) -> dict:
        if success:
            message = (
                f"Filtered sync completed successfully. Synced {stats.synced} products, "
                f"protected {stats.protected} catering items."
            )
            errors = list(stats.error_messages)
        else:
            message = f"Sync failed: {error}"
            errors = [str(error)] + list(stats.error_messages)

        return {
            'success': success,
            'message': message,
            'synced_products': stats.synced,
            'protected_items': stats.protected,
            'errors': errors,
            'product_details': {
                'created': stats.created,
                'updated': stats.updated,
                'with_images': stats.images_processed,
                'without_images': stats.synced - stats.images_processed,
                'skipped': stats.skipped,
            },
            'metadata': {
                'sync_id': self.sync_id,
                'started_at': started_at.isoformat(),
                'completed_at': completed_at.isoformat(),
                'strategy': SYNC_TYPE,
                'dry_run': self.config.dry_run,
            },
        }


def sync_filtered_products(**overrides) -> dict:
    """Run a filtered sync with the configured defaults, overridden per keyword."""
    return SyncOrchestrator(FilterConfig.from_settings(**overrides)).run()


def preview_filtered_sync(**overrides) -> dict:
    """Show what a filtered sync would do. Raises CatalogFetchError if the catalog cannot be fetched."""
    return SyncOrchestrator(FilterConfig.from_settings(**overrides)).preview()
