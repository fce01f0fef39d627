from django.urls import path

from .views import (
    MonthlyComparisonView, ProcessSettlementView, RevenueByMethodView, RevenueSplitView,
    RevenueStatisticsView, SystemRevenueView, TenantRevenueView, TopTenantsView,
)

# Prefix 'api/revenue/' diatur di foodcourt/urls.py.
# Riwayat & inisiasi settlement ada di tenants/urls.py (nested router).

urlpatterns = [
    path('split/', RevenueSplitView.as_view(), name='revenue-split'),
    path('statistics/', RevenueStatisticsView.as_view(), name='revenue-statistics'),
    path('system/', SystemRevenueView.as_view(), name='revenue-system'),
    path('by-method/', RevenueByMethodView.as_view(), name='revenue-by-method'),
    path('top-tenants/', TopTenantsView.as_view(), name='revenue-top-tenants'),
    path('monthly/', MonthlyComparisonView.as_view(), name='revenue-monthly'),
    path('tenants/<int:tenant_id>/', TenantRevenueView.as_view(), name='tenant-revenue'),
    path('settlements/<int:settlement_id>/process/', ProcessSettlementView.as_view(), name='process-settlement'),
]
