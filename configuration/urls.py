from django.urls import path

from .views import (
    GeneralSettingsView, NotificationSettingsView, RevenueSettingsView,
    SettingDetailView, SettingListView,
)

# Prefix 'api/settings/' diatur di foodcourt/urls.py

urlpatterns = [
    path('', SettingListView.as_view(), name='setting-list'),
    path('revenue/', RevenueSettingsView.as_view(), name='settings-revenue'),
    path('general/', GeneralSettingsView.as_view(), name='settings-general'),
    path('notifications/', NotificationSettingsView.as_view(), name='settings-notifications'),
    path('<slug:key>/', SettingDetailView.as_view(), name='setting-detail'),
]
