import logging

from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from common.mixins import SuccessEnvelopeMixin
from users.permissions import IsKasirUser, IsPengelolaUser, IsTenantStaff, staff_tenant_ids
from .models import CheckoutCounter, Tenant
from .serializers import CheckoutCounterSerializer, TenantSerializer

logger = logging.getLogger(__name__)


class TenantViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    serializer_class = TenantSerializer
    lookup_value_regex = r'\d+'

    def get_queryset(self):
        queryset = Tenant.objects.all()
        allowed = staff_tenant_ids(self.request.user)
        if allowed is not None:
            queryset = queryset.filter(pk__in=allowed)
        status_filter = self.request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        return queryset

    def get_permissions(self):
        if self.action in ['list', 'retrieve']:
            permission_classes = [IsAuthenticated, IsTenantStaff]
        else:
            permission_classes = [IsPengelolaUser]
        return [permission() for permission in permission_classes]

    def perform_create(self, serializer):
        tenant = serializer.save()
        logger.info("Tenant %s created by %s", tenant.code, self.request.user.username)

    def perform_destroy(self, instance):
        logger.info("Tenant %s deleted by %s", instance.code, self.request.user.username)
        instance.delete()


class CheckoutCounterViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    serializer_class = CheckoutCounterSerializer
    queryset = CheckoutCounter.objects.all()
    http_method_names = ['get', 'post', 'head', 'options']

    def get_permissions(self):
        if self.action in ['list', 'retrieve']:
            permission_classes = [IsKasirUser | IsPengelolaUser]
        else:
            permission_classes = [IsPengelolaUser]
        return [permission() for permission in permission_classes]
