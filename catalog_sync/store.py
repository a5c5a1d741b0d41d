from typing import Optional

from .models import Category, Product, SyncRun


class DjangoCatalogStore:
    """
    Local store used by the sync engine, backed by the Django ORM.

    The engine only talks to the database through these methods, so tests and
    alternative backends can substitute any object with the same interface.
    Each call is its own unit of work; callers decide about transactions.
    """

    def find_product_by_external_id(self, external_id) -> Optional[Product]:
        return (
            Product.objects.select_related('category')
            .filter(external_id=external_id)
            .first()
        )

    def find_zero_price_external_ids(self, exclude_categories=()) -> list:
        """External ids of categorized products priced at 0, outside ``exclude_categories``."""
        return list(
            Product.objects.filter(price_minor_units=0, category__isnull=False, external_id__isnull=False)
            .exclude(category__name__in=exclude_categories)
            .values_list('external_id', flat=True)
        )

    def product_slug_exists(self, slug: str) -> bool:
        return Product.objects.filter(slug=slug).exists()

    def create_product(self, data: dict) -> Product:
        return Product.objects.create(**data)

    def update_product(self, product_id, data: dict) -> Product:
        product = Product.objects.get(pk=product_id)
        for field, value in data.items():
            setattr(product, field, value)
        product.save()
        return product

    def find_category_by_name_or_external_id(self, name: str, external_id=None) -> Optional[Category]:
        if external_id:
            # A category already linked to the external id wins over a name match.
            category = Category.objects.filter(external_id=external_id).first()
            if category is not None:
                return category
        return Category.objects.filter(name__iexact=name).order_by('id').first()

    def create_category(self, data: dict) -> Category:
        return Category.objects.create(**data)

    def update_category(self, category_id, data: dict) -> int:
        return Category.objects.filter(pk=category_id).update(**data)

    def create_sync_run(self, data: dict) -> SyncRun:
        return SyncRun.objects.create(**data)

    def update_sync_run(self, sync_id, data: dict) -> int:
        return SyncRun.objects.filter(pk=sync_id).update(**data)
