from rest_framework import serializers

from .models import CheckoutCounter, Tenant


class TenantSerializer(serializers.ModelSerializer):
    class Meta:
        model = Tenant
        fields = [
            'id', 'name', 'code', 'location', 'description', 'phone', 'owner_name',
            'revenue_share_percentage', 'status', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate_code(self, value):
        return value.strip().upper()

    def validate_revenue_share_percentage(self, value):
        if value < 0 or value > 100:
            raise serializers.ValidationError("Persentase harus di antara 0 dan 100")
        return value


class TenantSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Tenant
        fields = ['id', 'name', 'code', 'location']


class CheckoutCounterSerializer(serializers.ModelSerializer):
    class Meta:
        model = CheckoutCounter
        fields = ['id', 'counter_name', 'counter_code', 'max_kasir', 'status', 'created_at']
        read_only_fields = ['created_at']
