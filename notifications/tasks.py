import logging

from asgiref.sync import async_to_sync
from celery import shared_task
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


@shared_task
def broadcast_event(event, payload, groups):
    """
    Kirim event ke setiap grup channel (dashboard tenant, kasir, display).
    Satu grup yang gagal tidak menghentikan grup lainnya.
    """
    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.warning("No channel layer configured, dropping %s event", event)
        return 0

    message = {'type': event, 'data': payload}
    delivered = 0
    for group in groups:
        try:
            async_to_sync(channel_layer.group_send)(
                group,
                {'type': 'order.notification', 'message': message}
            )
            delivered += 1
        except Exception:
            logger.exception("Failed to broadcast %s to %s", event, group)
    logger.info("Broadcast %s to %d group(s)", event, delivered)
    return delivered
