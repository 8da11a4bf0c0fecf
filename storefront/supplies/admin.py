from django.contrib import admin
from .models import Supply, SupplyOrder, SupplyOrderItem


@admin.register(Supply)
class SupplyAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'supplier_name', 'price', 'unit', 'minimum_order_quantity']
    list_filter = ['category', 'supplier_name']
    search_fields = ['name', 'description', 'supplier_name']


class SupplyOrderItemInline(admin.TabularInline):
    model = SupplyOrderItem
    extra = 0


@admin.register(SupplyOrder)
class SupplyOrderAdmin(admin.ModelAdmin):
    list_display = ['reference', 'status', 'total_amount', 'ordered_by', 'ordered_at', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['reference', 'notes']
    readonly_fields = ['reference', 'created_at', 'updated_at']
    inlines = [SupplyOrderItemInline]
