import json

from django.core.management.base import BaseCommand, CommandError

from catalog_sync.exceptions import CatalogFetchError
from catalog_sync.orchestrator import preview_filtered_sync, sync_filtered_products


class Command(BaseCommand):
    help = "Sync allowed products from the external catalog, leaving protected items untouched."

    def add_arguments(self, parser):
        parser.add_argument('--preview', action='store_true', help="Only show what would be synced.")
        parser.add_argument('--dry-run', action='store_true', help="Run every step except the writes.")
        parser.add_argument('--batch-size', type=int, help="Items per batch.")
        parser.add_argument('--no-images', action='store_true', help="Do not sync product images.")
        parser.add_argument(
            '--category', action='append', dest='categories', default=[],
            help="Sync only this category (repeatable). Replaces the configured allowed categories.",
        )

    def handle(self, *args, **options):
        overrides = {}
        if options['batch_size'] is not None:
            overrides['batch_size'] = options['batch_size']
        if options['no_images']:
            overrides['enable_image_sync'] = False
        if options['categories']:
            overrides['selected_categories'] = options['categories']

        try:
            if options['preview']:
                result = preview_filtered_sync(**overrides)
            else:
                result = sync_filtered_products(dry_run=options['dry_run'], **overrides)
        except (CatalogFetchError, ValueError) as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(json.dumps(result, indent=2, ensure_ascii=False))
        if not options['preview'] and not result['success']:
            raise CommandError(result['message'])
