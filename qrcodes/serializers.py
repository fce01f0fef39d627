from rest_framework import serializers

from .models import QRCode


class QRCodeSerializer(serializers.ModelSerializer):
    qr_url = serializers.CharField(read_only=True)
    order_number = serializers.CharField(source='order.order_number', read_only=True)

    class Meta:
        model = QRCode
        fields = [
            'id', 'order', 'order_number', 'qr_token', 'qr_url', 'qr_data', 'status', 'scan_count',
            'scanned_at', 'scanned_by', 'checkout_counter', 'expires_at', 'created_at',
        ]


class GenerateQRSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()


class ScanQRSerializer(serializers.Serializer):
    qr_token = serializers.CharField(max_length=64)
    checkout_counter_id = serializers.IntegerField()
