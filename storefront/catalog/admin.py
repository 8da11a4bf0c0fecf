from django.contrib import admin
from .models import Product, CategoryVisibility, CarouselBackground


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'gender', 'price', 'featured', 'customizable', 'created_at']
    list_filter = ['category', 'gender', 'featured', 'customizable', 'created_at']
    search_fields = ['name', 'description']
    ordering = ['-created_at']
    readonly_fields = ['barcodes', 'created_at', 'updated_at']


@admin.register(CategoryVisibility)
class CategoryVisibilityAdmin(admin.ModelAdmin):
    list_display = ['category', 'display_name', 'is_visible', 'sort_order', 'updated_by', 'updated_at']
    list_filter = ['is_visible']
    ordering = ['sort_order']
    readonly_fields = ['updated_by', 'created_at', 'updated_at']


@admin.register(CarouselBackground)
class CarouselBackgroundAdmin(admin.ModelAdmin):
    list_display = ['slide_id', 'title', 'is_active', 'order', 'updated_at']
    list_filter = ['is_active']
    search_fields = ['title', 'subtitle']
    ordering = ['order', 'slide_id']
