from decimal import Decimal

from rest_framework import serializers
from storefront.core.validators import validate_uk_phone, validate_uk_postcode, normalize_postcode
from .models import Order, OrderItem, TempOrder, SHIPPING_METHOD_CHOICES
from .production import priority_tier, due_date


class OrderItemSerializer(serializers.ModelSerializer):
    customization = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'product_ref', 'name', 'price', 'quantity', 'size', 'color', 'image',
                  'customization']

    def get_customization(self, obj):
        return {
            'name': obj.custom_name,
            'number': obj.custom_number,
            'is_customized': obj.is_customized,
            'name_characters': obj.name_characters,
            'number_characters': obj.number_characters,
            'customization_cost': str(obj.customization_cost),
        }


class CustomizationInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    number = serializers.CharField(max_length=10, required=False, allow_blank=True, default='')
    is_customized = serializers.BooleanField(required=False, default=False)
    name_characters = serializers.IntegerField(min_value=0, required=False, default=0)
    number_characters = serializers.IntegerField(min_value=0, required=False, default=0)
    customization_cost = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'),
                                                  required=False, default=Decimal('0.00'))


class OrderItemInputSerializer(serializers.Serializer):
    product = serializers.IntegerField(required=False, allow_null=True)
    product_ref = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    name = serializers.CharField(max_length=200)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))
    quantity = serializers.IntegerField(min_value=1, max_value=10)
    size = serializers.CharField(max_length=10)
    color = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    image = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    customization = CustomizationInputSerializer(required=False)
    order_source = serializers.CharField(max_length=50, required=False, allow_blank=True)


class ShippingDetailsSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=20, validators=[validate_uk_phone])
    address = serializers.CharField(max_length=255)
    address_line2 = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    city = serializers.CharField(max_length=100)
    county = serializers.CharField(max_length=100)
    postcode = serializers.CharField(max_length=10)
    country = serializers.CharField(max_length=100, required=False, default='United Kingdom')
    shipping_method = serializers.ChoiceField(choices=SHIPPING_METHOD_CHOICES)
    shipping_cost = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))
    estimated_delivery_days = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')

    def validate_postcode(self, value):
        value = normalize_postcode(value)
        validate_uk_postcode(value)
        return value


class OrderCreateSerializer(serializers.Serializer):
    """Checkout payload posted once the card payment succeeded"""
    payment_intent_id = serializers.CharField(max_length=255)
    items = OrderItemInputSerializer(many=True, allow_empty=False)
    shipping_details = ShippingDetailsSerializer()
    total = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))
    vat = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))
    voucher_code = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    voucher_discount = serializers.DecimalField(max_digits=10, decimal_places=2, required=False,
                                                default=Decimal('0.00'))
    voucher_type = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    voucher_value = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    voucher_id = serializers.IntegerField(required=False, allow_null=True)
    visitor_id = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    user_id = serializers.IntegerField(required=False, allow_null=True)


class OrderListSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(read_only=True)
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = ['id', 'reference', 'customer_name', 'email', 'total', 'status', 'production_status',
                  'shipping_method', 'delivery_priority', 'voucher_code', 'tracking_number',
                  'item_count', 'created_at']

    def get_item_count(self, obj):
        return sum(item.quantity for item in obj.items.all())


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    customer_name = serializers.CharField(read_only=True)
    shipping_details = serializers.SerializerMethodField()
    priority_tier = serializers.SerializerMethodField()
    due_date = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'reference', 'user', 'user_identifier', 'visitor_id', 'order_source', 'customer_name',
            'email', 'items', 'shipping_details', 'total', 'vat', 'status', 'production_status',
            'delivery_priority', 'priority_tier', 'due_date', 'production_notes', 'production_start_date',
            'production_completed_date', 'tracking_number', 'courier', 'shipped_at', 'label_download_url',
            'label_id', 'shipment_id', 'actual_shipping_cost', 'cancellation_requested',
            'cancellation_reason', 'cancellation_requested_at', 'cancellation_requested_by',
            'cancellation_notes', 'voucher_code', 'voucher_discount', 'voucher_type', 'voucher_value',
            'metadata', 'created_at', 'updated_at'
        ]

    def get_shipping_details(self, obj):
        return {
            'first_name': obj.first_name,
            'last_name': obj.last_name,
            'email': obj.email,
            'phone': obj.phone,
            'address': obj.address,
            'address_line2': obj.address_line2,
            'city': obj.city,
            'county': obj.county,
            'postcode': obj.postcode,
            'country': obj.country,
            'shipping_method': obj.shipping_method,
            'shipping_cost': str(obj.shipping_cost),
            'estimated_delivery_days': obj.estimated_delivery_days,
        }

    def get_priority_tier(self, obj):
        return priority_tier(obj.delivery_priority)

    def get_due_date(self, obj):
        return due_date(obj).isoformat()


class TempOrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = TempOrder
        fields = ['order_data_key', 'items', 'shipping_details', 'voucher_code', 'voucher_discount',
                  'voucher_type', 'voucher_value', 'voucher_id', 'amount', 'created_at', 'expires_at']
        read_only_fields = ['order_data_key', 'created_at', 'expires_at']

    def validate_items(self, value):
        if not isinstance(value, list) or not value:
            raise serializers.ValidationError('At least one item is required')
        return value
