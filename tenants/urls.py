# tenants/urls.py
from django.urls import path, include
from rest_framework_nested import routers

from revenue.views import TenantSettlementViewSet
from .views import CheckoutCounterViewSet, TenantViewSet

router = routers.DefaultRouter()
router.register(r'tenants/counters', CheckoutCounterViewSet, basename='counter')
router.register(r'tenants', TenantViewSet, basename='tenant')

tenants_router = routers.NestedDefaultRouter(router, r'tenants', lookup='tenant')
tenants_router.register(r'settlements', TenantSettlementViewSet, basename='tenant-settlements')

urlpatterns = [
    path('', include(router.urls)),
    path('', include(tenants_router.urls)),
]
