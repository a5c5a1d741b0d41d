import dataclasses
import enum
import logging
import re
from dataclasses import dataclass
from typing import NamedTuple, Optional

from django.conf import settings

from .graph import RelatedObjectGraph

logger = logging.getLogger(__name__)

# Categories starting with this token are never touched, whatever the config says.
RESERVED_CATEGORY_PREFIX = 'CATERING'


@dataclass(frozen=True)
class FilterConfig:
    allowed_product_name_patterns: tuple = ()
    allowed_categories: tuple = ()
    selected_categories: tuple = ()
    protected_categories: tuple = ()
    batch_size: int = 50
    enable_image_sync: bool = True
    dry_run: bool = False

    def __post_init__(self):
        for name in (
            'allowed_product_name_patterns',
            'allowed_categories',
            'selected_categories',
            'protected_categories',
        ):
            value = getattr(self, name) or ()
            if isinstance(value, str):
                value = (value,)
            object.__setattr__(self, name, tuple(value))
        if not isinstance(self.batch_size, int) or self.batch_size < 1:
            raise ValueError(f"batch_size must be a positive integer, got {self.batch_size!r}")
        for pattern in self.allowed_product_name_patterns:
            re.compile(pattern)

    @classmethod
    def from_settings(cls, **overrides) -> 'FilterConfig':
        """Defaults from Django settings, with per-run keyword overrides applied on top."""
        base = cls(
            allowed_product_name_patterns=settings.CATALOG_SYNC_PRODUCT_NAME_PATTERNS,
            allowed_categories=settings.CATALOG_SYNC_ALLOWED_CATEGORIES,
            protected_categories=settings.CATALOG_SYNC_PROTECTED_CATEGORIES,
            batch_size=settings.CATALOG_SYNC_BATCH_SIZE,
            enable_image_sync=settings.CATALOG_SYNC_ENABLE_IMAGES,
        )
        return dataclasses.replace(base, **overrides)

    @property
    def active_categories(self) -> tuple:
        """``selected_categories`` replaces ``allowed_categories`` when given."""
        return self.selected_categories or self.allowed_categories

    def as_dict(self) -> dict:
        return {field: list(value) if isinstance(value, tuple) else value
                for field, value in dataclasses.asdict(self).items()}


class CategoryMatch(NamedTuple):
    category_id: str
    name: Optional[str]
    matches_allowed: bool
    is_protected: bool


class FilterAction(enum.Enum):
    SYNC = 'sync'
    SKIP_UNMATCHED = 'skip-unmatched'
    SKIP_PROTECTED = 'skip-protected'


class FilterDecision(NamedTuple):
    action: FilterAction
    reason: Optional[str] = None
    category: Optional[CategoryMatch] = None

    @property
    def should_sync(self) -> bool:
        return self.action is FilterAction.SYNC


def names_overlap(a: str, b: str) -> bool:
    """Case-insensitive containment in either direction ("Alfajores" ~ "ALFAJORES - Classic")."""
    a, b = a.casefold().strip(), b.casefold().strip()
    if not a or not b:
        return False
    return a in b or b in a


def is_hard_protected(name: Optional[str]) -> bool:
    return bool(name) and name.strip().upper().startswith(RESERVED_CATEGORY_PREFIX)


def is_config_protected(name: Optional[str], config: FilterConfig) -> bool:
    return bool(name) and any(names_overlap(name, protected) for protected in config.protected_categories)


def is_protected_category(name: Optional[str], config: FilterConfig) -> bool:
    return is_hard_protected(name) or is_config_protected(name, config)


def resolve_category(category_id, graph: RelatedObjectGraph, config: FilterConfig) -> CategoryMatch:
    category = graph.get_category(category_id)
    if category is None:
        logger.debug("Category %s not in related objects – treating as unmatched.", category_id)
        return CategoryMatch(category_id, None, False, False)

    matches_allowed = any(names_overlap(category.name, allowed) for allowed in config.active_categories)
    return CategoryMatch(category_id, category.name, matches_allowed, is_protected_category(category.name, config))


def name_matches(name: str, config: FilterConfig) -> bool:
    return any(re.search(pattern, name or '', re.IGNORECASE) for pattern in config.allowed_product_name_patterns)


def evaluate_item(item: dict, graph: RelatedObjectGraph, config: FilterConfig) -> FilterDecision:
    """
    Decide whether a catalog item is synced.

    Protection is checked first and cannot be overridden: an item in a
    protected category is skipped even when its name matches an allowed
    pattern. Only then do the name patterns and the allowed categories get a
    say.
    """
    matches = [resolve_category(category_id, graph, config) for category_id in item['category_ref_ids']]

    for match in matches:
        if match.is_protected:
            return FilterDecision(
                FilterAction.SKIP_PROTECTED,
                f"Category '{match.name}' is protected",
                match,
            )

    allowed = [match for match in matches if match.matches_allowed]
    resolved = [match for match in matches if match.name is not None]
    placement = (allowed or resolved or [None])[0]

    if name_matches(item['name'], config):
        return FilterDecision(FilterAction.SYNC, category=placement)
    if allowed:
        return FilterDecision(FilterAction.SYNC, category=placement)
    return FilterDecision(
        FilterAction.SKIP_UNMATCHED,
        'Does not match product name or category filters',
        placement,
    )
