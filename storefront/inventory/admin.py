from django.contrib import admin
from .models import StockAlert


@admin.register(StockAlert)
class StockAlertAdmin(admin.ModelAdmin):
    list_display = ['product_name', 'color', 'size', 'current_stock', 'status', 'created_at', 'resolved_at']
    list_filter = ['status', 'created_at']
    search_fields = ['product_name', 'color', 'size']
    ordering = ['-created_at']
    readonly_fields = ['product', 'product_name', 'color', 'size', 'current_stock', 'created_at']
