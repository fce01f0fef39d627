from rest_framework import status
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from common.exceptions import NotFound
from users.permissions import IsKasirUser, IsPengelolaUser, IsTenantStaff, staff_tenant_ids
from . import services
from .models import Order
from .serializers import (
    OrderCancelSerializer, OrderCreateSerializer, OrderDetailSerializer,
    OrderListQuerySerializer, OrderSerializer, OrderStatusSerializer,
)


def get_order_or_404(order_id):
    order = Order.objects.select_related('tenant').filter(pk=order_id).first()
    if order is None:
        raise NotFound("Order not found")
    return order


class OrderListCreateView(APIView):
    """
    GET: daftar order dengan filter dan paginasi.
    POST: buat order baru beserta item-itemnya.
    """
    permission_classes = [IsAuthenticated, IsTenantStaff]

    def get(self, request):
        query = OrderListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = services.list_orders(tenant_ids=staff_tenant_ids(request.user), **query.validated_data)
        return Response({
            'success': True,
            'data': OrderSerializer(result['orders'], many=True).data,
            'pagination': {'total': result['total'], 'limit': result['limit'], 'offset': result['offset']},
        })

    def post(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        allowed = staff_tenant_ids(request.user)
        if allowed is not None and data['tenant_id'] not in allowed:
            raise PermissionDenied("Anda tidak memiliki izin untuk membuat order di tenant ini.")

        order = services.create_order(**data)
        return Response({'success': True, 'data': OrderSerializer(order).data}, status=status.HTTP_201_CREATED)


class OrderDetailView(APIView):
    permission_classes = [IsAuthenticated, IsTenantStaff]

    def get(self, request, order_id):
        self.check_object_permissions(request, get_order_or_404(order_id))
        order = services.get_order(order_id)
        return Response({'success': True, 'data': OrderDetailSerializer(order).data})


class UpdateOrderStatusView(APIView):
    permission_classes = [IsAuthenticated, IsTenantStaff]

    def patch(self, request, order_id):
        self.check_object_permissions(request, get_order_or_404(order_id))
        serializer = OrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = services.update_order_status(order_id, serializer.validated_data['status'])
        return Response({'success': True, 'data': OrderSerializer(order).data})


class CancelOrderView(APIView):
    permission_classes = [IsKasirUser | IsPengelolaUser]

    def post(self, request, order_id):
        serializer = OrderCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.cancel_order(order_id, serializer.validated_data.get('reason'))
        return Response({'success': True, 'message': "Order cancelled", 'data': result})


class TenantOrdersView(APIView):
    permission_classes = [IsAuthenticated, IsTenantStaff]

    def get(self, request, tenant_id):
        allowed = staff_tenant_ids(request.user)
        if allowed is not None and tenant_id not in allowed:
            raise PermissionDenied("Anda tidak memiliki izin untuk mengakses order dari tenant ini.")
        orders = services.get_orders_by_tenant(tenant_id, status=request.query_params.get('status'))
        return Response({'success': True, 'data': OrderSerializer(orders, many=True).data, 'count': len(orders)})
