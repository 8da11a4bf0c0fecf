from django.urls import path
from . import views

urlpatterns = [
    path('admin/reports/tax/', views.tax_report, name='tax-report'),
    path('admin/analytics/sales/', views.sales_analytics, name='sales-analytics'),
    path('admin/analytics/customers/', views.customer_analytics, name='customer-analytics'),
    path('admin/dashboard/stats/', views.dashboard_stats, name='dashboard-stats'),
]
