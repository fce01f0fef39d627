"""
URL configuration for foodcourt project.

Every API endpoint lives under the 'api/' prefix, one include per app.
"""
# Lokasi: foodcourt/urls.py

from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView, SpectacularSwaggerView

urlpatterns = [
    path('admin/', admin.site.urls),

    path('api/orders/', include('orders.urls')),
    path('api/payments/', include('payments.urls')),
    path('api/qr/', include('qrcodes.urls')),
    path('api/revenue/', include('revenue.urls')),
    path('api/settings/', include('configuration.urls')),
    path('api/', include('tenants.urls')),

    # URL Dokumentasi API
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
]
