from rest_framework import serializers
from .models import StockAlert


class StockAlertSerializer(serializers.ModelSerializer):
    product_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = StockAlert
        fields = ['id', 'product_id', 'product_name', 'color', 'size', 'current_stock',
                  'status', 'resolved_at', 'created_at']
        read_only_fields = ['product_name', 'color', 'size', 'current_stock', 'resolved_at', 'created_at']
