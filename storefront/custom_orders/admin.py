from django.contrib import admin
from .models import CustomOrder


@admin.register(CustomOrder)
class CustomOrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'first_name', 'last_name', 'email', 'selected_product', 'status', 'submitted_at']
    list_filter = ['status', 'submitted_at']
    search_fields = ['first_name', 'last_name', 'email', 'company', 'selected_product']
    readonly_fields = ['design_files', 'submitted_at', 'updated_at']
