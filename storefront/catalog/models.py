from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from decimal import Decimal


CATEGORY_CHOICES = [
    ('tshirts', 'T-Shirts'),
    ('jerseys', 'Jerseys'),
    ('tanktops', 'Tank Tops'),
    ('longsleeve', 'Long Sleeve'),
    ('hoodies', 'Hoodies'),
    ('sweatshirts', 'Sweatshirts'),
    ('sweatpants', 'Sweatpants'),
    ('accessories', 'Accessories'),
    ('shortsleeve', 'Short Sleeve'),
    ('crewneck', 'Crew Neck'),
]

GENDER_CHOICES = [
    ('men', 'Men'),
    ('women', 'Women'),
    ('unisex', 'Unisex'),
    ('kids', 'Kids'),
]

SIZE_CHOICES = ['XS', 'S', 'M', 'L', 'XL', 'XXL', '3XL']

# Two digit size codes used in barcode values
SIZE_CODES = {
    'XS': '01',
    'S': '02',
    'M': '03',
    'L': '04',
    'XL': '05',
    'XXL': '06',
    '3XL': '07',
}


def default_gender_visibility():
    return {gender: True for gender, _ in GENDER_CHOICES}


class Product(models.Model):
    """Storefront product with a per colour/size stock matrix"""
    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField()
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    base_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    images = models.JSONField(default=list, blank=True)  # [{"url": ..., "alt": ...}]
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, db_index=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, default='unisex', db_index=True)
    sizes = models.JSONField(default=list, blank=True)
    colors = models.JSONField(default=list, blank=True)  # [{"name": ..., "hexCode": ...}]
    stock = models.JSONField(default=dict, blank=True)  # stock[color][size] = quantity
    barcodes = models.JSONField(default=list, blank=True)
    featured = models.BooleanField(default=False, db_index=True)
    customizable = models.BooleanField(default=True)
    low_stock_threshold = models.PositiveIntegerField(default=5)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def get_stock(self, color, size):
        return int((self.stock or {}).get(color, {}).get(size, 0) or 0)

    def check_stock(self, color, size, quantity):
        """True when the colour/size cell holds at least ``quantity`` units"""
        return self.get_stock(color, size) >= quantity

    def update_stock(self, color, size, delta, save=True):
        """Add ``delta`` (may be negative) to a stock cell, creating the colour row on demand"""
        stock = dict(self.stock or {})
        row = dict(stock.get(color, {}))
        row[size] = self.get_stock(color, size) + delta
        stock[color] = row
        self.stock = stock
        if save:
            self.save(update_fields=['stock', 'updated_at'])
        return row[size]

    def total_stock(self):
        return sum(int(qty or 0) for row in (self.stock or {}).values() for qty in row.values())

    class Meta:
        db_table = 'products'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['category', 'gender'], name='idx_product_category_gender'),
        ]


class CategoryVisibility(models.Model):
    """Storefront visibility of a product category, optionally per gender"""
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, unique=True)
    is_visible = models.BooleanField(default=True)
    display_name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default='')
    sort_order = models.IntegerField(default=0)
    gender_visibility = models.JSONField(default=default_gender_visibility)
    updated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
                                   null=True, blank=True, related_name='category_visibility_updates')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.display_name} ({'visible' if self.is_visible else 'hidden'})"

    def is_visible_for(self, gender=None):
        if not self.is_visible:
            return False
        if not gender:
            return True
        return bool((self.gender_visibility or {}).get(gender, True))

    class Meta:
        db_table = 'category_visibility'
        ordering = ['sort_order', 'category']
        verbose_name_plural = 'category visibility'


class CarouselBackground(models.Model):
    """Home page hero slide (slots 1 to 5)"""
    slide_id = models.PositiveSmallIntegerField(unique=True, validators=[MinValueValidator(1), MaxValueValidator(5)])
    title = models.CharField(max_length=100)
    subtitle = models.CharField(max_length=100)
    description = models.TextField(max_length=500)
    button_text = models.CharField(max_length=50)
    button_link = models.CharField(max_length=200)
    image_url = models.URLField(max_length=500, blank=True, default='')
    bg_gradient = models.CharField(max_length=200)
    text_color = models.CharField(max_length=50)
    is_active = models.BooleanField(default=True)
    order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Slide {self.slide_id}: {self.title}"

    class Meta:
        db_table = 'carousel_backgrounds'
        ordering = ['order', 'slide_id']
        indexes = [
            models.Index(fields=['is_active', 'order'], name='idx_carousel_active_order'),
        ]
