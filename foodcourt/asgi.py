"""
ASGI config for foodcourt project.

HTTP goes to the regular Django application, websockets go to the
notification consumers (tenant dashboards, kasir counters, display monitor).
"""

import os
from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'foodcourt.settings')

# Initialise Django before importing anything that touches models.
django_asgi_app = get_asgi_application()

from channels.auth import AuthMiddlewareStack  # noqa: E402
from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
import notifications.routing  # noqa: E402

application = ProtocolTypeRouter({
  "http": django_asgi_app,
  "websocket": AuthMiddlewareStack(
    URLRouter(
      notifications.routing.websocket_urlpatterns
    ))
})
