from django.http import HttpResponse
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from users.permissions import IsKasirUser, IsPengelolaUser, IsTenantStaff
from . import services
from .serializers import GenerateQRSerializer, QRCodeSerializer, ScanQRSerializer


class GenerateQRCodeView(APIView):
    permission_classes = [IsKasirUser | IsPengelolaUser]

    def post(self, request):
        serializer = GenerateQRSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        qr_code = services.generate_qr_code(serializer.validated_data['order_id'])
        return Response({'success': True, 'data': QRCodeSerializer(qr_code).data}, status=status.HTTP_201_CREATED)


class QRStatisticsView(APIView):
    permission_classes = [IsPengelolaUser]

    def get(self, request):
        tenant_id = request.query_params.get('tenant_id')
        stats = services.get_qr_statistics(int(tenant_id) if tenant_id and tenant_id.isdigit() else None)
        return Response({'success': True, 'data': stats})


class ScanQRCodeView(APIView):
    permission_classes = [IsKasirUser]

    def post(self, request):
        serializer = ScanQRSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        qr_code = services.mark_qr_as_scanned(
            serializer.validated_data['qr_token'],
            request.user.pk,
            serializer.validated_data['checkout_counter_id'],
        )
        return Response({'success': True, 'message': "QR code scanned", 'data': QRCodeSerializer(qr_code).data})


class QRCodeDetailView(APIView):
    """
    GET: QR code berdasarkan order id (angka) atau token.
    DELETE: nonaktifkan QR code (berdasarkan token).
    """

    def get_permissions(self):
        if self.request.method == 'DELETE':
            return [(IsKasirUser | IsPengelolaUser)()]
        return [IsTenantStaff()]

    def get(self, request, identifier):
        qr_code = services.get_qr_code(identifier)
        self.check_object_permissions(request, qr_code.order)
        return Response({'success': True, 'data': QRCodeSerializer(qr_code).data})

    def delete(self, request, identifier):
        qr_code = services.deactivate_qr(identifier)
        return Response({'success': True, 'message': "QR code deactivated", 'data': {'qr_token': qr_code.qr_token}})


class ValidateQRTokenView(APIView):
    permission_classes = [IsKasirUser]

    def get(self, request, token):
        return Response({'success': True, 'data': services.validate_qr_token(token)})


class QRCodeImageView(APIView):
    # Gambar dibuka langsung oleh pelanggan dari link, tanpa login
    permission_classes = [AllowAny]

    def get(self, request, token):
        qr_code = services.get_qr_code_by_token(token)
        return HttpResponse(services.render_qr_png(qr_code), content_type="image/png")
