from django.urls import path
from . import views, admin_views

urlpatterns = [
    # Customer orders
    path('orders/create/', views.create_order, name='order-create'),
    path('orders/', views.order_list, name='order-list'),
    path('orders/temp/', views.temp_order_create, name='temp-order-create'),
    path('orders/temp/<str:key>/', views.temp_order_detail, name='temp-order-detail'),
    path('orders/<int:pk>/', views.order_detail, name='order-detail'),
    path('orders/<int:pk>/cancel/', views.cancel_order, name='order-cancel'),
    path('orders/<int:pk>/invoice/', views.order_invoice, name='order-invoice'),

    # Admin orders
    path('admin/orders/', admin_views.admin_order_list, name='admin-order-list'),
    path('admin/orders/<int:pk>/', admin_views.admin_order_detail, name='admin-order-detail'),
    path('admin/orders/<int:pk>/actions/', admin_views.admin_order_actions, name='admin-order-actions'),
    path('admin/orders/<int:pk>/ship/', admin_views.ship_order, name='admin-order-ship'),
    path('admin/orders/<int:pk>/generate-label/', admin_views.generate_label, name='admin-order-generate-label'),

    # Production
    path('admin/production-orders/', admin_views.production_order_list, name='production-order-list'),
    path('admin/production-orders/<int:pk>/', admin_views.production_order_update, name='production-order-update'),
    path('admin/production/schedule/', admin_views.production_schedule, name='production-schedule'),

    # Shipping
    path('admin/shipping/carriers/', admin_views.shipping_carriers, name='shipping-carriers'),
    path('admin/shipping/services/', admin_views.shipping_services, name='shipping-services'),
    path('admin/shipping/rates/', admin_views.shipping_rates, name='shipping-rates'),
]
