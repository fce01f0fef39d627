import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from users.permissions import IsAdminUser, IsPengelolaUser
from . import services
from .serializers import (
    GeneralSettingsSerializer, NotificationSettingsSerializer, RevenueSettingsSerializer,
    SettingCreateSerializer, SettingUpdateSerializer,
)

logger = logging.getLogger(__name__)


class AdminWriteMixin:
    """Pengelola boleh membaca, hanya Admin yang boleh mengubah."""

    def get_permissions(self):
        if self.request.method in ('GET', 'HEAD', 'OPTIONS'):
            return [IsPengelolaUser()]
        return [IsAdminUser()]


class SettingListView(AdminWriteMixin, APIView):
    def get(self, request):
        return Response({'success': True, 'data': services.get_all_settings()})

    def post(self, request):
        serializer = SettingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        setting = services.create_setting(user=request.user, **serializer.validated_data)
        return Response({'success': True, 'data': setting}, status=status.HTTP_201_CREATED)


class SettingDetailView(AdminWriteMixin, APIView):
    def get(self, request, key):
        return Response({'success': True, 'data': services.get_setting(key)})

    def put(self, request, key):
        serializer = SettingUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        setting = services.update_setting(key, user=request.user, **serializer.validated_data)
        return Response({'success': True, 'data': setting})

    def delete(self, request, key):
        services.delete_setting(key)
        return Response({'success': True, 'message': f"Setting {key} deleted"})


class RevenueSettingsView(AdminWriteMixin, APIView):
    def get(self, request):
        return Response({'success': True, 'data': services.get_revenue_settings()})

    def put(self, request):
        serializer = RevenueSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.update_revenue_settings(user=request.user, **serializer.validated_data)
        return Response({'success': True, 'data': result})


class GeneralSettingsView(AdminWriteMixin, APIView):
    def get(self, request):
        return Response({'success': True, 'data': services.get_general_settings()})

    def put(self, request):
        serializer = GeneralSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.update_general_settings(serializer.validated_data, user=request.user)
        return Response({'success': True, 'data': result})


class NotificationSettingsView(AdminWriteMixin, APIView):
    def get(self, request):
        return Response({'success': True, 'data': services.get_notification_settings()})

    def put(self, request):
        serializer = NotificationSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.update_notification_settings(serializer.validated_data, user=request.user)
        return Response({'success': True, 'data': result})
