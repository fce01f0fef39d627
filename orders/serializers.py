from rest_framework import serializers

from payments.serializers import PaymentSerializer
from qrcodes.serializers import QRCodeSerializer
from tenants.serializers import TenantSummarySerializer
from .models import Order, OrderItem


class OrderItemCreateSerializer(serializers.Serializer):
    item_name = serializers.CharField(max_length=100)
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    notes = serializers.CharField(max_length=255, required=False, allow_blank=True)


class OrderCreateSerializer(serializers.Serializer):
    tenant_id = serializers.IntegerField()
    customer_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    customer_phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    order_type = serializers.ChoiceField(choices=Order.ORDER_TYPE_CHOICES, default=Order.TYPE_TAKEAWAY)
    table_number = serializers.CharField(max_length=10, required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    items = OrderItemCreateSerializer(many=True, allow_empty=False)


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)


class OrderCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)


class OrderListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES, required=False)
    tenant_id = serializers.IntegerField(required=False)
    payment_status = serializers.ChoiceField(choices=Order.PAYMENT_STATUS_CHOICES, required=False)
    order_type = serializers.ChoiceField(choices=Order.ORDER_TYPE_CHOICES, required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    limit = serializers.IntegerField(min_value=1, required=False, default=20)
    offset = serializers.IntegerField(min_value=0, required=False, default=0)


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ['id', 'item_name', 'quantity', 'unit_price', 'subtotal', 'notes']


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    tenant = TenantSummarySerializer(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'tenant', 'customer_name', 'customer_phone', 'total_amount',
            'status', 'payment_status', 'order_type', 'table_number', 'notes', 'items',
            'created_at', 'paid_at', 'ready_at', 'completed_at',
        ]


class OrderDetailSerializer(OrderSerializer):
    qr_code = serializers.SerializerMethodField()
    payment = serializers.SerializerMethodField()

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ['qr_code', 'payment']

    def get_qr_code(self, obj):
        # Reverse one-to-one: getattr menangkap RelatedObjectDoesNotExist
        qr_code = getattr(obj, 'qr_code', None)
        return QRCodeSerializer(qr_code).data if qr_code is not None else None

    def get_payment(self, obj):
        payment = getattr(obj, 'latest_payment', None)
        return PaymentSerializer(payment).data if payment is not None else None
