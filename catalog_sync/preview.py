import logging

from .filters import FilterAction, FilterConfig, evaluate_item
from .graph import RelatedObjectGraph
from .protection import LocalProtection

logger = logging.getLogger(__name__)

CREATE = 'CREATE'
UPDATE = 'UPDATE'


class PreviewPlanner:
    """Read-only counterpart of the reconciler: classifies items without writing anything."""

    def __init__(self, config: FilterConfig, store, protection: LocalProtection = None):
        self.config = config
        self.store = store
        self.protection = protection or LocalProtection(config)

    def plan(self, items: list, graph: RelatedObjectGraph) -> dict:
        products_to_sync = []
        items_to_skip = []
        protected = 0

        for item in items:
            decision = evaluate_item(item, graph, self.config)
            skip_reason = decision.reason
            existing = None

            if decision.should_sync:
                existing = self.store.find_product_by_external_id(item['external_id'])
                local_reason = self.protection.skip_reason(existing) if existing is not None else None
                if local_reason:
                    decision = decision._replace(action=FilterAction.SKIP_PROTECTED)
                    skip_reason = local_reason

            if decision.should_sync:
                category = decision.category.name if decision.category is not None else None
                products_to_sync.append({
                    'id': item['external_id'],
                    'name': item['name'],
                    'category': category or 'Unknown',
                    'action': UPDATE if existing is not None else CREATE,
                })
            else:
                if decision.action is FilterAction.SKIP_PROTECTED:
                    protected += 1
                items_to_skip.append({
                    'id': item['external_id'],
                    'name': item['name'],
                    'reason': skip_reason,
                })

        logger.info(
            "Preview: %d items fetched, %d would sync, %d would be skipped (%d protected).",
            len(items), len(products_to_sync), len(items_to_skip), protected,
        )
        return {
            'products_to_sync': products_to_sync,
            'items_to_skip': items_to_skip,
            'summary': {
                'total_products': len(items),
                'will_sync': len(products_to_sync),
                'will_skip': len(items_to_skip),
                'protected_items': protected,
            },
        }
