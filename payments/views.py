from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from users.permissions import IsAdminUser, IsKasirUser, IsPengelolaUser, IsTenantStaff
from orders.views import get_order_or_404
from . import services
from .serializers import (
    PaymentSerializer, PaymentStatisticsQuerySerializer, PaymentStatusSerializer,
    ProcessPaymentSerializer, RefundPaymentSerializer, ValidatePaymentSerializer,
)


class ProcessPaymentView(APIView):
    """Kasir menerima pembayaran untuk sebuah order."""
    permission_classes = [IsKasirUser]

    def post(self, request):
        serializer = ProcessPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = services.process_payment(
            order_id=data['order_id'],
            amount=data['amount'],
            payment_method=data['payment_method'],
            counter_id=data['checkout_counter_id'],
            kasir_id=request.user.pk,
            details=data.get('payment_details'),
            notes=data.get('notes', ''),
        )
        return Response({
            'success': True,
            'message': "Payment processed",
            'data': {
                'payment': PaymentSerializer(result['payment']).data,
                'change': result['change'],
            },
        }, status=status.HTTP_201_CREATED)


class ValidatePaymentView(APIView):
    permission_classes = [IsKasirUser]

    def post(self, request):
        serializer = ValidatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.validate_payment_amount(
            serializer.validated_data['order_id'], serializer.validated_data['amount']
        )
        return Response({'success': True, 'data': result})


class PaymentStatisticsView(APIView):
    permission_classes = [IsPengelolaUser]

    def get(self, request):
        query = PaymentStatisticsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return Response({'success': True, 'data': services.get_payment_statistics(**query.validated_data)})


class PaymentDetailView(APIView):
    permission_classes = [IsKasirUser | IsPengelolaUser]

    def get(self, request, payment_id):
        payment = services.get_payment(payment_id)
        return Response({'success': True, 'data': PaymentSerializer(payment).data})


class RefundPaymentView(APIView):
    permission_classes = [IsKasirUser | IsPengelolaUser]

    def post(self, request, payment_id):
        serializer = RefundPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.refund_payment(payment_id, serializer.validated_data.get('reason'))
        return Response({'success': True, 'message': "Payment refunded", 'data': result})


class UpdatePaymentStatusView(APIView):
    permission_classes = [IsAdminUser]

    def patch(self, request, payment_id):
        serializer = PaymentStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = services.update_payment_status(payment_id, serializer.validated_data['status'])
        return Response({'success': True, 'data': PaymentSerializer(payment).data})


class OrderPaymentsView(APIView):
    permission_classes = [IsTenantStaff]

    def get(self, request, order_id):
        self.check_object_permissions(request, get_order_or_404(order_id))
        payments = services.get_payments_by_order(order_id)
        return Response({'success': True, 'data': PaymentSerializer(payments, many=True).data})
