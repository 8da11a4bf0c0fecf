from django.core.management.base import BaseCommand
from ...models import CategoryVisibility

DEFAULT_CATEGORIES = [
    ('tshirts', 'T-Shirts', 'Classic and comfortable t-shirts for everyday wear', {}),
    ('jerseys', 'Jerseys', 'Sporty jerseys for athletic performance', {}),
    ('tanktops', 'Tank Tops', 'Sleeveless tops perfect for workouts and warm weather', {'unisex': False, 'kids': False}),
    ('longsleeve', 'Long Sleeve Shirts', 'Long sleeve shirts for cooler weather', {}),
    ('hoodies', 'Hoodies', 'Comfortable hoodies for casual wear', {}),
    ('sweatshirts', 'Sweatshirts', 'Warm and cozy sweatshirts', {}),
    ('sweatpants', 'Sweatpants', 'Comfortable sweatpants for casual wear', {'unisex': False}),
    ('accessories', 'Accessories', 'Various accessories to complement your outfit', {}),
    ('shortsleeve', 'Short Sleeve Shirts', 'Short sleeve shirts for warm weather', {}),
    ('crewneck', 'Crew Necks', 'Crew neck jumpers and tops', {}),
]


class Command(BaseCommand):
    help = 'Create the default category visibility rows (skipped when rows already exist)'

    def add_arguments(self, parser):
        parser.add_argument('--force', action='store_true', help='Create missing rows even if some exist')

    def handle(self, *args, **options):
        existing = CategoryVisibility.objects.count()
        if existing and not options['force']:
            self.stdout.write(f'Found {existing} existing category visibility settings. Skipping initialization.')
            return

        created_count = 0
        for sort_order, (category, display_name, description, hidden_for) in enumerate(DEFAULT_CATEGORIES, start=1):
            gender_visibility = {'men': True, 'women': True, 'unisex': True, 'kids': True}
            gender_visibility.update(hidden_for)
            _, created = CategoryVisibility.objects.get_or_create(
                category=category,
                defaults={
                    'display_name': display_name,
                    'description': description,
                    'sort_order': sort_order,
                    'gender_visibility': gender_visibility,
                    'is_visible': True,
                }
            )
            if created:
                created_count += 1
                self.stdout.write(f'  ✓ {category}: {display_name}')

        self.stdout.write(self.style.SUCCESS(f'\nCompleted: {created_count} category visibility settings created'))
