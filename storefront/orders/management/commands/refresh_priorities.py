from django.core.management.base import BaseCommand

from storefront.orders.models import Order
from storefront.orders.production import refresh_priorities, EXCLUDED_FROM_PRODUCTION


class Command(BaseCommand):
    help = 'Recalculate delivery priority for orders still in production'

    def handle(self, *args, **options):
        orders = Order.objects.exclude(production_status='completed').exclude(status__in=EXCLUDED_FROM_PRODUCTION)
        updated = refresh_priorities(orders)
        self.stdout.write(self.style.SUCCESS(f'Updated priority on {updated} order(s)'))
