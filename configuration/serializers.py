from rest_framework import serializers

from .values import SettingType


class SettingCreateSerializer(serializers.Serializer):
    key = serializers.SlugField(max_length=100)
    value = serializers.JSONField()
    data_type = serializers.ChoiceField(choices=SettingType.choices, default=SettingType.STRING)
    description = serializers.CharField(required=False, allow_blank=True, default='')


class SettingUpdateSerializer(serializers.Serializer):
    value = serializers.JSONField()
    description = serializers.CharField(required=False, allow_blank=True)


class RevenueSettingsSerializer(serializers.Serializer):
    tenant_percentage = serializers.DecimalField(max_digits=6, decimal_places=2)
    pengelola_percentage = serializers.DecimalField(max_digits=6, decimal_places=2)
    system_percentage = serializers.DecimalField(max_digits=6, decimal_places=2)


class GeneralSettingsSerializer(serializers.Serializer):
    qr_expiry_hours = serializers.IntegerField(min_value=1, required=False)
    tax_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, required=False)
    business_name = serializers.CharField(max_length=255, required=False)
    business_address = serializers.CharField(required=False, allow_blank=True)
    phone_number = serializers.CharField(max_length=30, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    timezone = serializers.CharField(max_length=64, required=False)


class NotificationSettingsSerializer(serializers.Serializer):
    email_notifications = serializers.BooleanField(required=False)
    sms_notifications = serializers.BooleanField(required=False)
    push_notifications = serializers.BooleanField(required=False)
    notification_email = serializers.EmailField(required=False, allow_blank=True)
    notify_on_payment_failure = serializers.BooleanField(required=False)
    notify_on_refund = serializers.BooleanField(required=False)
