from rest_framework import serializers
from .models import Transaction


class TransactionSerializer(serializers.ModelSerializer):
    order_reference = serializers.CharField(source='order.reference', read_only=True)

    class Meta:
        model = Transaction
        fields = ['id', 'order', 'order_reference', 'amount', 'currency', 'payment_method', 'status',
                  'payment_intent_id', 'refund_id', 'error_message', 'metadata', 'created_at', 'updated_at']
