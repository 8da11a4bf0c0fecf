from django.contrib import admin
from .models import Order, OrderItem, TempOrder


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ['name', 'size', 'color', 'quantity', 'price', 'is_customized', 'custom_name', 'custom_number',
              'customization_cost']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['reference', 'first_name', 'last_name', 'email', 'total', 'status', 'production_status',
                    'delivery_priority', 'created_at']
    list_filter = ['status', 'production_status', 'shipping_method', 'created_at']
    search_fields = ['reference', 'email', 'first_name', 'last_name', 'tracking_number']
    ordering = ['-created_at']
    readonly_fields = ['reference', 'created_at', 'updated_at']
    inlines = [OrderItemInline]


@admin.register(TempOrder)
class TempOrderAdmin(admin.ModelAdmin):
    list_display = ['order_data_key', 'amount', 'created_at', 'expires_at']
    ordering = ['-created_at']
