from rest_framework import serializers

from .models import Settlement


class SettlementSerializer(serializers.ModelSerializer):
    tenant_name = serializers.CharField(source='tenant.name', read_only=True)

    class Meta:
        model = Settlement
        fields = [
            'id', 'tenant', 'tenant_name', 'period_month', 'total_sales', 'tenant_share',
            'operator_share', 'platform_share', 'bank_account', 'status', 'transfer_id',
            'created_at', 'processed_at',
        ]


class InitiateSettlementSerializer(serializers.Serializer):
    month = serializers.RegexField(r'^\d{4}-(0[1-9]|1[0-2])$', error_messages={'invalid': "Format bulan harus YYYY-MM"})
    bank_account = serializers.CharField(max_length=100)


class ProcessSettlementSerializer(serializers.Serializer):
    transfer_id = serializers.CharField(max_length=100)


class SettlementHistoryQuerySerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=1, max_value=9998, required=False)
    status = serializers.ChoiceField(choices=Settlement.STATUS_CHOICES, required=False)
    limit = serializers.IntegerField(min_value=1, required=False, default=50)
    offset = serializers.IntegerField(min_value=0, required=False, default=0)


class SplitQuerySerializer(serializers.Serializer):
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    tenant_pct = serializers.DecimalField(max_digits=5, decimal_places=2, required=False)
    operator_pct = serializers.DecimalField(max_digits=5, decimal_places=2, required=False)
    platform_pct = serializers.DecimalField(max_digits=5, decimal_places=2, required=False)


class PeriodQuerySerializer(serializers.Serializer):
    month = serializers.RegexField(r'^\d{4}-(0[1-9]|1[0-2])$', required=False)
    year = serializers.IntegerField(min_value=1, max_value=9998, required=False)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False, default=10)
    months = serializers.IntegerField(min_value=1, max_value=24, required=False, default=6)
