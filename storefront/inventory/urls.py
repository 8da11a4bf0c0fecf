from django.urls import path
from .views import stock_alert_list, stock_alert_detail, stock_list, stock_update

urlpatterns = [
    # StockAlert endpoints
    path('admin/stock-alerts/', stock_alert_list, name='stock-alert-list'),
    path('admin/stock-alerts/<int:pk>/', stock_alert_detail, name='stock-alert-detail'),

    # Stock matrix endpoints
    path('admin/stock/', stock_list, name='stock-list'),
    path('admin/stock/<int:product_id>/', stock_update, name='stock-update'),
]
