import logging
from typing import Optional

from .filters import RESERVED_CATEGORY_PREFIX, FilterConfig, is_protected_category

logger = logging.getLogger(__name__)

# Local categories that always sync, whatever other protection flags say.
RETAIL_CATEGORY_NAMES = ('ALFAJORES', 'EMPANADAS', 'Products')


class LocalProtection:
    """
    Protection rules for products that already exist locally.

    A local product is left alone when it sits in a protected category, or
    when it was listed at price 0 outside the retail categories at the start
    of the run (those are hand-made catering entries). Products in a retail
    category are never protected.
    """

    def __init__(self, config: FilterConfig, protected_external_ids=()):
        self.config = config
        self.protected_external_ids = frozenset(protected_external_ids)

    @classmethod
    def load(cls, store, config: FilterConfig) -> 'LocalProtection':
        external_ids = store.find_zero_price_external_ids(exclude_categories=RETAIL_CATEGORY_NAMES)
        protection = cls(config, external_ids)
        logger.info(
            "Protection initialized: %d zero-price local products, categories starting with %r "
            "plus %d configured protected categories.",
            len(protection.protected_external_ids), RESERVED_CATEGORY_PREFIX, len(config.protected_categories),
        )
        return protection

    def skip_reason(self, product) -> Optional[str]:
        """Why ``product`` must not be touched, or None when it may be synced."""
        category_name = product.category.name if product.category is not None else None
        if category_name in RETAIL_CATEGORY_NAMES:
            return None
        if is_protected_category(category_name, self.config):
            return f"Local product is in protected category '{category_name}'"
        if product.external_id in self.protected_external_ids:
            return "Local product is a zero-price item outside the retail categories"
        return None
