from django.urls import path

from .views import (
    GenerateQRCodeView, QRCodeDetailView, QRCodeImageView,
    QRStatisticsView, ScanQRCodeView, ValidateQRTokenView,
)

# Prefix 'api/qr/' diatur di foodcourt/urls.py

urlpatterns = [
    path('generate/', GenerateQRCodeView.as_view(), name='generate-qr'),
    path('statistics/', QRStatisticsView.as_view(), name='qr-statistics'),
    path('scan/', ScanQRCodeView.as_view(), name='scan-qr'),
    path('<str:token>/validate/', ValidateQRTokenView.as_view(), name='validate-qr'),
    path('<str:token>/image/', QRCodeImageView.as_view(), name='qr-image'),
    path('<str:identifier>/', QRCodeDetailView.as_view(), name='qr-detail'),
]
