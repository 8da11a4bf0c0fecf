from django.urls import path
from . import views

urlpatterns = [
    path('payment/create-payment-intent/', views.create_payment_intent, name='create-payment-intent'),
    path('webhooks/stripe/', views.stripe_webhook, name='stripe-webhook'),
    path('admin/orders/<int:pk>/refund/', views.order_refund, name='admin-order-refund'),
]
