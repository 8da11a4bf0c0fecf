from decimal import Decimal

from rest_framework import serializers
from .models import Voucher


class VoucherSerializer(serializers.ModelSerializer):
    code = serializers.CharField(max_length=50)

    class Meta:
        model = Voucher
        fields = [
            'id', 'code', 'type', 'value', 'minimum_order_amount', 'maximum_discount',
            'usage_limit', 'used_count', 'valid_from', 'valid_until', 'is_active',
            'description', 'applies_to', 'product_ids', 'category_ids', 'created_at', 'updated_at'
        ]
        read_only_fields = ['used_count', 'created_at', 'updated_at']
        extra_kwargs = {
            'valid_from': {'required': True},
            'usage_limit': {'required': True},
        }

    def validate_code(self, value):
        value = value.strip().upper()
        if not value:
            raise serializers.ValidationError('Voucher code is required')
        queryset = Voucher.objects.filter(code__iexact=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError('Voucher code already exists')
        return value

    def validate_usage_limit(self, value):
        if value < 1:
            raise serializers.ValidationError('Usage limit must be greater than 0')
        return value

    def validate(self, attrs):
        voucher_type = attrs.get('type', getattr(self.instance, 'type', None))
        value = attrs.get('value', getattr(self.instance, 'value', None))
        if voucher_type != 'free_shipping' and (value is None or value <= Decimal('0')):
            raise serializers.ValidationError({'value': 'Value must be greater than 0'})
        if voucher_type == 'percentage' and value is not None and value > Decimal('100'):
            raise serializers.ValidationError({'value': 'Percentage cannot exceed 100'})

        valid_from = attrs.get('valid_from', getattr(self.instance, 'valid_from', None))
        valid_until = attrs.get('valid_until', getattr(self.instance, 'valid_until', None))
        if valid_from and valid_until and valid_until <= valid_from:
            raise serializers.ValidationError({'valid_until': 'Valid until must be after valid from'})
        return attrs


class PublicVoucherSerializer(serializers.ModelSerializer):
    class Meta:
        model = Voucher
        fields = ['code', 'type', 'value', 'minimum_order_amount', 'maximum_discount',
                  'valid_until', 'description']
