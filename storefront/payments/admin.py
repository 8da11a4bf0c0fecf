from django.contrib import admin
from .models import Transaction


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['order', 'amount', 'currency', 'payment_method', 'status', 'payment_intent_id', 'created_at']
    list_filter = ['status', 'payment_method', 'created_at']
    search_fields = ['order__reference', 'payment_intent_id', 'refund_id']
    ordering = ['-created_at']
    readonly_fields = ['order', 'user', 'amount', 'currency', 'payment_intent_id', 'refund_id',
                       'metadata', 'created_at', 'updated_at']
