import json

from rest_framework import serializers
from .models import CustomOrder

MINIMUM_QUANTITY = 3


def as_list(value):
    """Accept a JSON list, a JSON-encoded list or a comma separated string"""
    if value in (None, ''):
        return []
    if isinstance(value, str):
        value = value.strip()
        if value.startswith('['):
            try:
                value = json.loads(value)
            except ValueError:
                raise serializers.ValidationError('Invalid list')
        else:
            value = value.split(',')
    if not isinstance(value, (list, tuple)):
        raise serializers.ValidationError('Expected a list')
    return [str(v).strip() for v in value if str(v).strip()]


class FlexibleListField(serializers.Field):
    def to_internal_value(self, data):
        return as_list(data)

    def to_representation(self, value):
        return value


class SizeQuantitiesField(serializers.Field):
    def to_internal_value(self, data):
        if isinstance(data, str):
            try:
                data = json.loads(data or '{}')
            except ValueError:
                raise serializers.ValidationError('Invalid size quantities')
        if not isinstance(data, dict):
            raise serializers.ValidationError('Size quantities must be an object')
        return data

    def to_representation(self, value):
        return value


class CustomOrderSerializer(serializers.ModelSerializer):
    printing_surface = FlexibleListField()
    design_location = FlexibleListField()
    selected_colors = FlexibleListField()
    size_quantities = SizeQuantitiesField()
    total_quantity = serializers.IntegerField(read_only=True)

    class Meta:
        model = CustomOrder
        fields = ['id', 'first_name', 'last_name', 'email', 'phone', 'preferred_contact', 'company', 'address',
                  'city', 'province', 'postal_code', 'selected_product', 'printing_type', 'printing_surface',
                  'design_location', 'selected_colors', 'size_quantities', 'total_quantity', 'print_size',
                  'needs_design_assistance', 'design_files', 'additional_notes', 'status', 'invoice_data',
                  'payment_link', 'submitted_at', 'updated_at']
        read_only_fields = ['design_files', 'status', 'invoice_data', 'payment_link', 'submitted_at',
                            'updated_at']

    def validate_printing_surface(self, value):
        if not value:
            raise serializers.ValidationError('Please select at least one printing surface')
        return value

    def validate_design_location(self, value):
        if not value:
            raise serializers.ValidationError('Please select at least one design location')
        return value

    def validate_selected_colors(self, value):
        if not value:
            raise serializers.ValidationError('Please select at least one colour')
        return value

    def validate_size_quantities(self, value):
        try:
            total = CustomOrder(size_quantities=value).total_quantity
        except (TypeError, ValueError):
            raise serializers.ValidationError('Quantities must be whole numbers')
        if total < MINIMUM_QUANTITY:
            raise serializers.ValidationError(f'Minimum order quantity is {MINIMUM_QUANTITY} items')
        return value


class CustomOrderUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomOrder
        fields = ['status', 'invoice_data', 'payment_link']
