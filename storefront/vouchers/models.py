from decimal import Decimal, ROUND_HALF_UP

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F
from django.utils import timezone


class Voucher(models.Model):
    """Discount code. Amounts are in pounds."""
    TYPE_CHOICES = [
        ('percentage', 'Percentage'),
        ('fixed', 'Fixed Amount'),
        ('free_shipping', 'Free Shipping'),
    ]

    APPLIES_TO_CHOICES = [
        ('all', 'All Products'),
        ('specific_products', 'Specific Products'),
        ('specific_categories', 'Specific Categories'),
    ]

    code = models.CharField(max_length=50, unique=True, db_index=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    value = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    minimum_order_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'),
                                               validators=[MinValueValidator(Decimal('0.00'))])
    maximum_discount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True,
                                           validators=[MinValueValidator(Decimal('0.00'))])
    usage_limit = models.PositiveIntegerField(default=1)  # 0 means unlimited
    used_count = models.PositiveIntegerField(default=0)
    valid_from = models.DateTimeField(default=timezone.now)
    valid_until = models.DateTimeField()
    is_active = models.BooleanField(default=True, db_index=True)
    description = models.CharField(max_length=255, blank=True, default='')
    applies_to = models.CharField(max_length=30, choices=APPLIES_TO_CHOICES, default='all')
    product_ids = models.JSONField(default=list, blank=True)
    category_ids = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.code

    def save(self, *args, **kwargs):
        self.code = (self.code or '').strip().upper()
        super().save(*args, **kwargs)

    @property
    def has_usage_left(self):
        return self.usage_limit == 0 or self.used_count < self.usage_limit

    def is_valid(self, now=None):
        now = now or timezone.now()
        return (
            self.is_active
            and self.has_usage_left
            and self.valid_from <= now <= self.valid_until
        )

    def meets_minimum(self, subtotal):
        return Decimal(str(subtotal)) >= (self.minimum_order_amount or Decimal('0.00'))

    def applies_to_items(self, items):
        if self.applies_to == 'specific_products':
            product_ids = {str(p) for p in self.product_ids or []}
            return any(str(item.get('product') or item.get('product_id') or '') in product_ids for item in items)
        if self.applies_to == 'specific_categories':
            category_ids = set(self.category_ids or [])
            return any(item.get('category') in category_ids for item in items if item.get('category'))
        return True

    def can_apply_to_order(self, subtotal, items=None):
        return self.meets_minimum(subtotal) and self.applies_to_items(items or [])

    def calculate_discount(self, subtotal):
        """Discount in pounds, never more than the subtotal"""
        subtotal = Decimal(str(subtotal))
        if self.type == 'percentage':
            discount = subtotal * self.value / Decimal('100')
            if self.maximum_discount:
                discount = min(discount, self.maximum_discount)
        elif self.type == 'fixed':
            discount = self.value
        else:
            discount = Decimal('0.00')
        discount = min(discount, subtotal)
        return discount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    def increment_usage(self):
        Voucher.objects.filter(pk=self.pk).update(used_count=F('used_count') + 1)
        self.refresh_from_db(fields=['used_count'])

    class Meta:
        db_table = 'vouchers'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['code', 'is_active'], name='idx_voucher_code_active'),
            models.Index(fields=['valid_until'], name='idx_voucher_valid_until'),
        ]
