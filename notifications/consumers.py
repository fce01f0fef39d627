import json

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from users.permissions import ADMIN_GROUP, KASIR_GROUP, PENGELOLA_GROUP
from .emitter import DISPLAY_GROUP, kasir_group, tenant_group


class NotificationConsumer(AsyncWebsocketConsumer):
  """Bergabung ke satu grup channel lalu meneruskan event dari server ke client."""
  group_name = None

  async def connect(self):
    self.user = self.scope.get('user')
    self.group_name = self.get_group_name()

    if await self.is_allowed():
      await self.channel_layer.group_add(self.group_name, self.channel_name)
      await self.accept()
    else:
      # Tolak koneksi jika tidak diizinkan
      await self.close()

  async def disconnect(self, close_code):
    if self.group_name:
      await self.channel_layer.group_discard(self.group_name, self.channel_name)

  # Pesan dari client tidak dipakai
  async def receive(self, text_data=None, bytes_data=None):
    pass

  async def order_notification(self, event):
    await self.send(text_data=json.dumps(event['message']))

  def get_group_name(self):
    raise NotImplementedError

  async def is_allowed(self):
    return True


class TenantNotificationConsumer(NotificationConsumer):
  def get_group_name(self):
    self.tenant_id = self.scope['url_route']['kwargs']['tenant_id']
    return tenant_group(self.tenant_id)

  async def is_allowed(self):
    return bool(self.user and self.user.is_authenticated) and await self.is_user_staff_of_tenant(self.user, self.tenant_id)

  @database_sync_to_async
  def is_user_staff_of_tenant(self, user, tenant_id):
    if user.is_staff or user.groups.filter(name__in=[ADMIN_GROUP, PENGELOLA_GROUP]).exists():
      return True
    return user.tenants.filter(id=tenant_id).exists()


class KasirNotificationConsumer(NotificationConsumer):
  def get_group_name(self):
    return kasir_group(self.scope['url_route']['kwargs']['counter_id'])

  async def is_allowed(self):
    return bool(self.user and self.user.is_authenticated) and await self.is_kasir(self.user)

  @database_sync_to_async
  def is_kasir(self, user):
    return user.is_staff or user.groups.filter(name__in=[ADMIN_GROUP, KASIR_GROUP]).exists()


class DisplayConsumer(NotificationConsumer):
  """Monitor antrian publik, tidak perlu login."""

  def get_group_name(self):
    return DISPLAY_GROUP
