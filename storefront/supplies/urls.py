from django.urls import path
from . import views

urlpatterns = [
    path('admin/supplies/', views.supply_list_create, name='admin-supply-list-create'),
    path('admin/supplies/orders/', views.supply_order_list_create, name='admin-supply-order-list-create'),
    path('admin/supplies/orders/<int:pk>/', views.supply_order_detail, name='admin-supply-order-detail'),
    path('admin/supplies/orders/<int:pk>/pdf/', views.supply_order_pdf, name='admin-supply-order-pdf'),
    path('admin/supplies/<int:pk>/', views.supply_detail, name='admin-supply-detail'),
]
