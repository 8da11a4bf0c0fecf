from decimal import Decimal

from django.db import transaction
from rest_framework import serializers
from storefront.core.utils import generate_reference
from .models import Supply, SupplyOrder, SupplyOrderItem

SUPPLY_ORDER_PREFIX = 'SUP'


class SupplySerializer(serializers.ModelSerializer):
    class Meta:
        model = Supply
        fields = ['id', 'name', 'description', 'image', 'price', 'unit', 'category', 'minimum_order_quantity',
                  'supplier_name', 'supplier_contact', 'supplier_email', 'supplier_phone', 'supplier_website',
                  'notes', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {
            'name': {'error_messages': {'required': 'Supply name is required', 'blank': 'Supply name is required'}},
            'price': {'error_messages': {'required': 'Price is required', 'null': 'Price is required'}},
            'unit': {'error_messages': {'required': 'Unit is required', 'blank': 'Unit is required'}},
            'category': {'error_messages': {'required': 'Category is required', 'blank': 'Category is required'}},
            'supplier_name': {'error_messages': {'required': 'Supplier name is required',
                                                 'blank': 'Supplier name is required'}},
        }


class SupplyOrderItemSerializer(serializers.ModelSerializer):
    supply_name = serializers.CharField(source='supply.name', read_only=True)
    supplier_name = serializers.CharField(source='supply.supplier_name', read_only=True)
    unit = serializers.CharField(source='supply.unit', read_only=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = SupplyOrderItem
        fields = ['id', 'supply', 'supply_name', 'supplier_name', 'unit', 'quantity', 'price_at_order',
                  'line_total', 'notes']
        read_only_fields = ['price_at_order']


class SupplyOrderSerializer(serializers.ModelSerializer):
    """Supply order with nested items; items are passed in ``context['items_data']``"""
    items = SupplyOrderItemSerializer(many=True, read_only=True)
    ordered_by_email = serializers.EmailField(source='ordered_by.email', read_only=True, default=None)

    class Meta:
        model = SupplyOrder
        fields = ['id', 'reference', 'status', 'total_amount', 'ordered_by', 'ordered_by_email', 'ordered_at',
                  'notes', 'items', 'created_at', 'updated_at']
        read_only_fields = ['reference', 'total_amount', 'ordered_by', 'ordered_at', 'created_at', 'updated_at']

    def _validated_items(self):
        items_data = self.context.get('items_data')
        if items_data is None:
            return None
        serializer = SupplyOrderItemSerializer(data=items_data, many=True)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    def validate(self, attrs):
        items = self._validated_items()
        if self.instance is None and not items:
            raise serializers.ValidationError({'items': 'At least one item is required'})
        self._items = items
        return attrs

    def _replace_items(self, supply_order, items):
        supply_order.items.all().delete()
        SupplyOrderItem.objects.bulk_create([
            SupplyOrderItem(
                supply_order=supply_order,
                supply=item['supply'],
                quantity=item['quantity'],
                price_at_order=item['supply'].price,
                notes=item.get('notes', ''),
            )
            for item in items
        ])
        supply_order.total_amount = sum(
            (item['supply'].price * item['quantity'] for item in items), Decimal('0.00')
        )
        supply_order.save(update_fields=['total_amount', 'updated_at'])

    @transaction.atomic
    def create(self, validated_data):
        validated_data['reference'] = generate_reference(SupplyOrder, SUPPLY_ORDER_PREFIX)
        supply_order = super().create(validated_data)
        self._replace_items(supply_order, self._items)
        return supply_order

    @transaction.atomic
    def update(self, instance, validated_data):
        supply_order = super().update(instance, validated_data)
        if self._items is not None:
            self._replace_items(supply_order, self._items)
        return supply_order
