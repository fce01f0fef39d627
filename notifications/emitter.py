"""
Lifecycle event emission.

Services call one method per event on an emitter. ``EventEmitter`` is the
no-op base; ``ChannelsEventEmitter`` defers every event until the surrounding
transaction commits and hands it to the ``broadcast_event`` celery task, which
fans it out over the channels layer.

Emission never raises: any failure is logged and dropped.
"""
import json
import logging

from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction

logger = logging.getLogger(__name__)

DISPLAY_GROUP = 'display'


def tenant_group(tenant_id):
  return f"tenant_{tenant_id}"


def kasir_group(counter_id):
  return f"kasir_{counter_id}"


def _order_summary(order):
  return {
    'order_id': order.pk,
    'order_number': order.order_number,
    'tenant_id': order.tenant_id,
    'customer_name': order.customer_name,
    'total_amount': order.total_amount,
    'status': order.status,
    'payment_status': order.payment_status,
    'order_type': order.order_type,
    'table_number': order.table_number,
  }


class EventEmitter:
  def order_created(self, order):
    pass

  def order_status_changed(self, order, previous_status, new_status):
    pass

  def order_cancelled(self, order, refund_amount, reason=None):
    pass

  def payment_processed(self, payment, change):
    pass

  def payment_refunded(self, refund, original):
    pass

  def qr_scanned(self, qr_code):
    pass


class ChannelsEventEmitter(EventEmitter):
  def order_created(self, order):
    self._emit('order_created', lambda: (
      _order_summary(order),
      [tenant_group(order.tenant_id), DISPLAY_GROUP],
    ))

  def order_status_changed(self, order, previous_status, new_status):
    self._emit('order_status_changed', lambda: (
      {**_order_summary(order), 'previous': previous_status, 'new': new_status},
      [tenant_group(order.tenant_id), DISPLAY_GROUP],
    ))

  def order_cancelled(self, order, refund_amount, reason=None):
    self._emit('order_cancelled', lambda: (
      {**_order_summary(order), 'refund_amount': refund_amount, 'reason': reason},
      [tenant_group(order.tenant_id), DISPLAY_GROUP],
    ))

  def payment_processed(self, payment, change):
    self._emit('payment_processed', lambda: (
      {
        'payment_id': payment.pk,
        'order_id': payment.order_id,
        'order_number': payment.order.order_number,
        'amount_paid': payment.amount_paid,
        'payment_method': payment.payment_method,
        'transaction_reference': payment.transaction_reference,
        'change': change,
      },
      [tenant_group(payment.order.tenant_id), kasir_group(payment.checkout_counter_id), DISPLAY_GROUP],
    ))

  def payment_refunded(self, refund, original):
    self._emit('payment_refunded', lambda: (
      {
        'refund_id': refund.pk,
        'original_payment_id': original.pk,
        'order_id': original.order_id,
        'refund_amount': abs(refund.amount_paid),
        'transaction_reference': refund.transaction_reference,
      },
      [tenant_group(original.order.tenant_id), kasir_group(original.checkout_counter_id)],
    ))

  def qr_scanned(self, qr_code):
    self._emit('qr_scanned', lambda: (
      {
        'qr_id': qr_code.pk,
        'order_id': qr_code.order_id,
        'order_number': qr_code.order.order_number,
        'scanned_at': qr_code.scanned_at,
        'scanned_by': qr_code.scanned_by_id,
        'checkout_counter_id': qr_code.checkout_counter_id,
      },
      [tenant_group(qr_code.order.tenant_id), kasir_group(qr_code.checkout_counter_id), DISPLAY_GROUP],
    ))

  def _emit(self, event, build):
    try:
      payload, groups = build()
      # JSON aman untuk serializer celery (Decimal, datetime)
      payload = json.loads(json.dumps(payload, cls=DjangoJSONEncoder))
      transaction.on_commit(lambda: self._send(event, payload, groups))
    except Exception:
      logger.exception("Failed to prepare %s event", event)

  def _send(self, event, payload, groups):
    from .tasks import broadcast_event

    try:
      broadcast_event.delay(event, payload, groups)
    except Exception:
      logger.exception("Failed to enqueue %s event", event)


default_emitter = ChannelsEventEmitter()


def get_emitter(emitter=None):
  return emitter if emitter is not None else default_emitter
