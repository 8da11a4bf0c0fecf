from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Supply(models.Model):
    """Consumable bought in for production (blanks, vinyl, ink...)"""
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    image = models.URLField(max_length=500, blank=True, default='')
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    unit = models.CharField(max_length=50)
    category = models.CharField(max_length=100, db_index=True)
    minimum_order_quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    supplier_name = models.CharField(max_length=200, db_index=True)
    supplier_contact = models.CharField(max_length=200, blank=True, default='')
    supplier_email = models.EmailField(blank=True, default='')
    supplier_phone = models.CharField(max_length=50, blank=True, default='')
    supplier_website = models.URLField(max_length=500, blank=True, default='')
    notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.supplier_name})"

    class Meta:
        db_table = 'supplies'
        ordering = ['category', 'name']
        verbose_name_plural = 'supplies'


class SupplyOrder(models.Model):
    """Order placed with one or more suppliers"""
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('pending', 'Pending'),
        ('ordered', 'Ordered'),
        ('received', 'Received'),
        ('cancelled', 'Cancelled'),
    ]

    reference = models.CharField(max_length=20, unique=True, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft', db_index=True)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    ordered_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='supply_orders')
    ordered_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.reference

    def get_total(self):
        return sum((item.line_total for item in self.items.all()), Decimal('0.00'))

    class Meta:
        db_table = 'supply_orders'
        ordering = ['-created_at']


class SupplyOrderItem(models.Model):
    supply_order = models.ForeignKey(SupplyOrder, on_delete=models.CASCADE, related_name='items')
    supply = models.ForeignKey(Supply, on_delete=models.PROTECT, related_name='order_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price_at_order = models.DecimalField(max_digits=10, decimal_places=2)
    notes = models.TextField(blank=True, default='')

    @property
    def line_total(self):
        return self.price_at_order * self.quantity

    class Meta:
        db_table = 'supply_order_items'
        ordering = ['id']
