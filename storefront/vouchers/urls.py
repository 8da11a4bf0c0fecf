from django.urls import path
from .views import validate_voucher, discount_codes, voucher_list_create, voucher_detail

urlpatterns = [
    path('vouchers/validate/', validate_voucher, name='voucher-validate'),
    path('discount-codes/', discount_codes, name='discount-codes'),

    # Admin voucher endpoints
    path('admin/vouchers/', voucher_list_create, name='voucher-list-create'),
    path('admin/vouchers/<int:pk>/', voucher_detail, name='voucher-detail'),
]
