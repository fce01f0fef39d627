from django.urls import path

from .views import (
    OrderPaymentsView, PaymentDetailView, PaymentStatisticsView, ProcessPaymentView,
    RefundPaymentView, UpdatePaymentStatusView, ValidatePaymentView,
)

# Prefix 'api/payments/' diatur di foodcourt/urls.py

urlpatterns = [
    path('', ProcessPaymentView.as_view(), name='process-payment'),
    path('validate/', ValidatePaymentView.as_view(), name='validate-payment'),
    path('statistics/', PaymentStatisticsView.as_view(), name='payment-statistics'),
    path('orders/<int:order_id>/', OrderPaymentsView.as_view(), name='order-payments'),
    path('<int:payment_id>/', PaymentDetailView.as_view(), name='payment-detail'),
    path('<int:payment_id>/refund/', RefundPaymentView.as_view(), name='refund-payment'),
    path('<int:payment_id>/status/', UpdatePaymentStatusView.as_view(), name='update-payment-status'),
]
