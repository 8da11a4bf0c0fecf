from django.urls import path
from . import views

urlpatterns = [
    # Storefront
    path('products/', views.product_list, name='product-list'),
    path('products/<int:pk>/', views.product_public_detail, name='product-public-detail'),
    path('category-visibility/', views.category_visibility_public, name='category-visibility'),
    path('carousel-backgrounds/', views.carousel_backgrounds_public, name='carousel-backgrounds'),

    # Admin products and barcodes
    path('admin/products/', views.admin_product_list_create, name='admin-product-list-create'),
    path('admin/products/<int:pk>/', views.admin_product_detail, name='admin-product-detail'),
    path('admin/products/<int:pk>/barcodes/', views.product_barcodes, name='admin-product-barcodes'),
    path('admin/barcodes/labels/', views.barcode_labels, name='admin-barcode-labels'),

    # Admin storefront content
    path('admin/category-visibility/', views.admin_category_visibility, name='admin-category-visibility'),
    path('admin/carousel-backgrounds/', views.admin_carousel_list_create, name='admin-carousel-list-create'),
    path('admin/carousel-backgrounds/<int:pk>/', views.admin_carousel_detail, name='admin-carousel-detail'),
    path('admin/uploads/', views.admin_upload, name='admin-upload'),
]
