"""
URL configuration for the storefront project.

Every app mounts its API under ``api/v1/``; the Django admin stays at ``admin/``.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Mr Shirt Personalisation Admin Panel"
admin.site.site_title = "Mr Shirt Personalisation Admin Portal"
admin.site.index_title = "Welcome to the Mr Shirt Personalisation back office"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('storefront.core.urls')),
    path('api/v1/', include('storefront.catalog.urls')),
    path('api/v1/', include('storefront.inventory.urls')),
    path('api/v1/', include('storefront.orders.urls')),
    path('api/v1/', include('storefront.payments.urls')),
    path('api/v1/', include('storefront.vouchers.urls')),
    path('api/v1/', include('storefront.supplies.urls')),
    path('api/v1/', include('storefront.custom_orders.urls')),
    path('api/v1/', include('storefront.reports.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
