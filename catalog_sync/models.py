from django.db import models


class Category(models.Model):
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255)
    external_id = models.CharField(max_length=64, unique=True, null=True, blank=True)
    order = models.IntegerField(default=0)

    class Meta:
        ordering = ['order', 'name']
        verbose_name_plural = 'categories'

    def __str__(self):
        return self.name


class Product(models.Model):
    external_id = models.CharField(max_length=64, unique=True, null=True, blank=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default='')
    price_minor_units = models.PositiveIntegerField(default=0)
    category = models.ForeignKey(
        Category, null=True, blank=True, on_delete=models.PROTECT, related_name='products',
    )
    images = models.JSONField(default=list, blank=True)
    active = models.BooleanField(default=True)
    slug = models.SlugField(max_length=255, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.external_id or 'local'})"


class SyncRun(models.Model):
    id = models.CharField(max_length=64, primary_key=True)
    sync_type = models.CharField(max_length=32, default='FILTERED')
    started_at = models.DateTimeField()
    completed_at = models.DateTimeField(null=True, blank=True)
    products_synced = models.PositiveIntegerField(default=0)
    products_skipped = models.PositiveIntegerField(default=0)
    errors = models.JSONField(default=list, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ['-started_at']

    def __str__(self):
        return f"{self.id} ({self.sync_type})"
