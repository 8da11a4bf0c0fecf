from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone


SHIPPING_METHOD_CHOICES = [
    ('Standard Delivery', 'Standard Delivery'),
    ('Express Delivery', 'Express Delivery'),
    ('Next Day Delivery', 'Next Day Delivery'),
]


class OrderQuerySet(models.QuerySet):
    def not_refunded(self):
        # orders without the metadata key must be kept, so exclude by id
        return self.exclude(pk__in=Order.objects.filter(metadata__refunded=True).values('pk'))


class Order(models.Model):
    """Customer order with a snapshot of shipping details and voucher"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('paid', 'Paid'),
        ('shipped', 'Shipped'),
        ('delivered', 'Delivered'),
        ('cancelled', 'Cancelled'),
        ('payment_failed', 'Payment Failed'),
    ]

    PRODUCTION_STATUS_CHOICES = [
        ('not_started', 'Not Started'),
        ('in_production', 'In Production'),
        ('quality_check', 'Quality Check'),
        ('ready_to_ship', 'Ready to Ship'),
        ('completed', 'Completed'),
    ]

    reference = models.CharField(max_length=20, unique=True, db_index=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                             related_name='orders')
    user_identifier = models.CharField(max_length=255, default='guest', db_index=True)
    visitor_id = models.CharField(max_length=100, blank=True, null=True, db_index=True)
    order_source = models.CharField(max_length=50, blank=True, null=True)

    # Shipping details
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(db_index=True)
    phone = models.CharField(max_length=20)
    address = models.CharField(max_length=255)
    address_line2 = models.CharField(max_length=255, blank=True, default='')
    city = models.CharField(max_length=100)
    county = models.CharField(max_length=100)
    postcode = models.CharField(max_length=10)
    country = models.CharField(max_length=100, default='United Kingdom')
    shipping_method = models.CharField(max_length=30, choices=SHIPPING_METHOD_CHOICES, default='Standard Delivery')
    shipping_cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    estimated_delivery_days = models.CharField(max_length=50, blank=True, default='')

    total = models.DecimalField(max_digits=10, decimal_places=2)
    vat = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)

    # Production
    production_status = models.CharField(max_length=20, choices=PRODUCTION_STATUS_CHOICES,
                                         default='not_started', db_index=True)
    delivery_priority = models.IntegerField(default=10, db_index=True)
    production_notes = models.TextField(blank=True, default='')
    production_start_date = models.DateTimeField(null=True, blank=True)
    production_completed_date = models.DateTimeField(null=True, blank=True)

    # Shipping label
    tracking_number = models.CharField(max_length=100, blank=True, default='')
    courier = models.CharField(max_length=50, blank=True, default='')
    shipped_at = models.DateTimeField(null=True, blank=True)
    label_download_url = models.URLField(max_length=500, blank=True, default='')
    label_id = models.CharField(max_length=100, blank=True, default='')
    shipment_id = models.CharField(max_length=100, blank=True, default='')
    actual_shipping_cost = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    # Cancellation
    cancellation_requested = models.BooleanField(default=False)
    cancellation_reason = models.TextField(blank=True, default='')
    cancellation_requested_at = models.DateTimeField(null=True, blank=True)
    cancellation_requested_by = models.CharField(max_length=255, blank=True, default='')
    cancellation_notes = models.TextField(blank=True, default='')

    # Voucher snapshot
    voucher = models.ForeignKey('vouchers.Voucher', on_delete=models.SET_NULL, null=True, blank=True,
                                related_name='orders')
    voucher_code = models.CharField(max_length=50, blank=True, default='')
    voucher_discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    voucher_type = models.CharField(max_length=20, blank=True, default='')
    voucher_value = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = OrderQuerySet.as_manager()

    def __str__(self):
        return self.reference

    @property
    def customer_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_refunded(self):
        return bool((self.metadata or {}).get('refunded'))

    @property
    def has_customization(self):
        return any(item.is_customized for item in self.items.all())

    def stock_lines(self):
        """Order items in the line format the stock services take"""
        return [
            {'product': item.product_id, 'color': item.color, 'size': item.size, 'quantity': item.quantity}
            for item in self.items.all()
        ]

    def is_owned_by(self, user):
        if not user or not user.is_authenticated:
            return False
        if self.user_id and self.user_id == user.pk:
            return True
        return bool(user.email) and self.user_identifier.lower() == user.email.lower()

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', '-created_at'], name='idx_order_status_created'),
            models.Index(fields=['production_status', '-delivery_priority'], name='idx_order_production_priority'),
        ]


class OrderItem(models.Model):
    """Line of an order, copied from the cart at checkout"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('catalog.Product', on_delete=models.SET_NULL, null=True, blank=True,
                                related_name='order_items')
    product_ref = models.CharField(max_length=100, blank=True, default='')
    name = models.CharField(max_length=200)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1), MaxValueValidator(10)])
    size = models.CharField(max_length=10)
    color = models.CharField(max_length=50, blank=True, default='')
    image = models.URLField(max_length=500, blank=True, default='')

    # Customisation
    is_customized = models.BooleanField(default=False)
    custom_name = models.CharField(max_length=50, blank=True, default='')
    custom_number = models.CharField(max_length=10, blank=True, default='')
    name_characters = models.PositiveIntegerField(default=0)
    number_characters = models.PositiveIntegerField(default=0)
    customization_cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    def __str__(self):
        return f"{self.order.reference} - {self.name} x{self.quantity}"

    @property
    def line_total(self):
        return (self.price + self.customization_cost) * self.quantity

    class Meta:
        db_table = 'order_items'


def temp_order_expiry():
    return timezone.now() + timedelta(hours=1)


class TempOrder(models.Model):
    """Checkout data parked while the card payment is confirmed"""
    order_data_key = models.CharField(max_length=64, unique=True, db_index=True)
    items = models.JSONField(default=list)
    shipping_details = models.JSONField(default=dict)
    voucher_code = models.CharField(max_length=50, blank=True, default='')
    voucher_discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    voucher_type = models.CharField(max_length=20, blank=True, default='')
    voucher_value = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    voucher_id = models.CharField(max_length=50, blank=True, default='')
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    expires_at = models.DateTimeField(default=temp_order_expiry)

    def __str__(self):
        return self.order_data_key

    class Meta:
        db_table = 'temp_orders'
