from rest_framework import serializers

from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True)
    kasir = serializers.CharField(source='kasir.username', read_only=True, default=None)
    counter_code = serializers.CharField(source='checkout_counter.counter_code', read_only=True, default=None)

    class Meta:
        model = Payment
        fields = [
            'id', 'order', 'order_number', 'checkout_counter', 'counter_code', 'kasir',
            'amount_paid', 'payment_method', 'transaction_reference', 'status',
            'payment_details', 'notes', 'created_at',
        ]


class ProcessPaymentSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    payment_method = serializers.ChoiceField(choices=Payment.METHOD_CHOICES)
    checkout_counter_id = serializers.IntegerField()
    payment_details = serializers.JSONField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class ValidatePaymentSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class RefundPaymentSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)


class PaymentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Payment.STATUS_CHOICES)


class PaymentStatisticsQuerySerializer(serializers.Serializer):
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    payment_method = serializers.ChoiceField(choices=Payment.METHOD_CHOICES, required=False)
    checkout_counter_id = serializers.IntegerField(required=False)
