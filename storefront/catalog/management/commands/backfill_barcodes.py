from django.core.management.base import BaseCommand
from storefront.core.cache_signals import suspend_cache_signals
from storefront.core.cache_utils import invalidate_namespace, PRODUCTS_NAMESPACE
from ...models import Product
from ...utils import assign_barcode, find_barcode


class Command(BaseCommand):
    help = 'Generate barcodes for every product colour/size that does not have one yet'

    def handle(self, *args, **options):
        created_count = 0
        error_count = 0

        with suspend_cache_signals():
            for product in Product.objects.all():
                colors = [c.get('name') for c in (product.colors or []) if c.get('name')]
                missing = [
                    (color, size) for color in colors for size in (product.sizes or [])
                    if not find_barcode(product, color, size)
                ]
                if not missing:
                    continue
                try:
                    for color, size in missing:
                        assign_barcode(product, color, size, save=False)
                    product.save(update_fields=['barcodes', 'updated_at'])
                    created_count += len(missing)
                    self.stdout.write(f'  ✓ {product.name}: {len(missing)} barcodes')
                except ValueError as e:
                    error_count += 1
                    self.stdout.write(self.style.ERROR(f'  ✗ Error creating barcodes for {product.name}: {str(e)}'))
        invalidate_namespace(PRODUCTS_NAMESPACE)

        self.stdout.write(self.style.SUCCESS(
            f'\nCompleted: {created_count} barcodes created, {error_count} errors'
        ))
