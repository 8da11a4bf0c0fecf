from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db.models import Q
from django.utils import timezone

from storefront.orders.models import TempOrder


class Command(BaseCommand):
    help = 'Delete abandoned checkout data'

    def add_arguments(self, parser):
        parser.add_argument('--hours', type=int, default=2, help='Age in hours after which rows are removed')

    def handle(self, *args, **options):
        cutoff = timezone.now() - timedelta(hours=options['hours'])
        deleted, _ = TempOrder.objects.filter(Q(created_at__lt=cutoff) | Q(items=[])).delete()
        self.stdout.write(self.style.SUCCESS(f'Deleted {deleted} temporary order(s)'))
