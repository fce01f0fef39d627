from django.urls import path

from .views import (
    CancelOrderView, OrderDetailView, OrderListCreateView,
    TenantOrdersView, UpdateOrderStatusView,
)

# Prefix 'api/orders/' sudah diatur di foodcourt/urls.py

urlpatterns = [
    path('', OrderListCreateView.as_view(), name='order-list'),
    path('tenants/<int:tenant_id>/', TenantOrdersView.as_view(), name='tenant-orders'),
    path('<int:order_id>/', OrderDetailView.as_view(), name='order-detail'),
    path('<int:order_id>/status/', UpdateOrderStatusView.as_view(), name='update-order-status'),
    path('<int:order_id>/cancel/', CancelOrderView.as_view(), name='cancel-order'),
]
