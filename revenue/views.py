from rest_framework import status, viewsets
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from rest_framework.views import APIView

from users.permissions import IsPengelolaUser, IsTenantStaff, staff_tenant_ids
from . import services
from .serializers import (
    InitiateSettlementSerializer, PeriodQuerySerializer, ProcessSettlementSerializer,
    SettlementHistoryQuerySerializer, SettlementSerializer, SplitQuerySerializer,
)


def _period(request):
    query = PeriodQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    return query.validated_data


def _check_tenant_access(user, tenant_id):
    allowed = staff_tenant_ids(user)
    if allowed is not None and int(tenant_id) not in allowed:
        raise PermissionDenied("Anda tidak memiliki izin untuk mengakses data dari tenant ini.")


class RevenueSplitView(APIView):
    permission_classes = [IsPengelolaUser]

    def get(self, request):
        query = SplitQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return Response({'success': True, 'data': services.calculate_revenue_split(**query.validated_data)})


class RevenueStatisticsView(APIView):
    permission_classes = [IsPengelolaUser]

    def get(self, request):
        stats = services.get_revenue_statistics(_period(request).get('month'))
        stats['settlement_details'] = SettlementSerializer(stats['settlement_details'], many=True).data
        return Response({'success': True, 'data': stats})


class SystemRevenueView(APIView):
    permission_classes = [IsPengelolaUser]

    def get(self, request):
        period = _period(request)
        return Response({'success': True, 'data': services.get_system_revenue(period.get('month'), period.get('year'))})


class RevenueByMethodView(APIView):
    permission_classes = [IsPengelolaUser]

    def get(self, request):
        return Response({'success': True, 'data': services.get_revenue_by_method(_period(request).get('month'))})


class TopTenantsView(APIView):
    permission_classes = [IsPengelolaUser]

    def get(self, request):
        period = _period(request)
        return Response({
            'success': True,
            'data': services.get_top_tenants_by_revenue(period.get('month'), period['limit']),
        })


class MonthlyComparisonView(APIView):
    permission_classes = [IsPengelolaUser]

    def get(self, request):
        return Response({'success': True, 'data': services.get_monthly_comparison(_period(request)['months'])})


class TenantRevenueView(APIView):
    permission_classes = [IsTenantStaff]

    def get(self, request, tenant_id):
        _check_tenant_access(request.user, tenant_id)
        period = _period(request)
        revenue = services.get_tenant_revenue(tenant_id, period.get('month'), period.get('year'))
        return Response({'success': True, 'data': revenue})


class ProcessSettlementView(APIView):
    permission_classes = [IsPengelolaUser]

    def post(self, request, settlement_id):
        serializer = ProcessSettlementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        settlement = services.process_settlement(settlement_id, serializer.validated_data['transfer_id'])
        return Response({'success': True, 'message': "Settlement processed", 'data': SettlementSerializer(settlement).data})


class TenantSettlementViewSet(viewsets.ViewSet):
    """
    Settlement satu tenant.
    list: riwayat settlement, create: mulai settlement untuk satu bulan.
    """

    def get_permissions(self):
        if self.action == 'create':
            return [IsPengelolaUser()]
        return [IsTenantStaff()]

    def list(self, request, tenant_pk=None):
        _check_tenant_access(request.user, tenant_pk)
        query = SettlementHistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        history = services.get_settlement_history(int(tenant_pk), **query.validated_data)
        return Response({
            'success': True,
            'data': SettlementSerializer(history['settlements'], many=True).data,
            'pagination': {'total': history['total'], 'limit': history['limit'], 'offset': history['offset']},
        })

    def create(self, request, tenant_pk=None):
        serializer = InitiateSettlementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        settlement = services.initiate_settlement(tenant_id=int(tenant_pk), **serializer.validated_data)
        return Response(
            {'success': True, 'message': "Settlement initiated", 'data': SettlementSerializer(settlement).data},
            status=status.HTTP_201_CREATED,
        )
