from django.contrib import admin
from .models import Voucher


@admin.register(Voucher)
class VoucherAdmin(admin.ModelAdmin):
    list_display = ['code', 'type', 'value', 'used_count', 'usage_limit', 'valid_from', 'valid_until', 'is_active']
    list_filter = ['type', 'is_active', 'applies_to']
    search_fields = ['code', 'description']
    ordering = ['-created_at']
    readonly_fields = ['used_count', 'created_at', 'updated_at']
