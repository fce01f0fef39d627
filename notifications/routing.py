from django.urls import re_path
from . import consumers

websocket_urlpatterns = [
  re_path(r'ws/tenant/(?P<tenant_id>\d+)/notifications/$', consumers.TenantNotificationConsumer.as_asgi()),
  re_path(r'ws/kasir/(?P<counter_id>\d+)/notifications/$', consumers.KasirNotificationConsumer.as_asgi()),
  re_path(r'ws/display/$', consumers.DisplayConsumer.as_asgi()),
]
