from django.urls import path
from . import views

urlpatterns = [
    path('custom-orders/', views.custom_order_create, name='custom-order-create'),
    path('admin/custom-orders/', views.admin_custom_order_list, name='admin-custom-order-list'),
    path('admin/custom-orders/<int:pk>/', views.admin_custom_order_detail, name='admin-custom-order-detail'),
    path('admin/custom-orders/<int:pk>/payment-link/', views.custom_order_payment_link,
         name='admin-custom-order-payment-link'),
]
