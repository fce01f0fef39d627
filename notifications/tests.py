import os
from decimal import Decimal
from unittest import mock, skipIf

from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.conf import settings
from django.test import SimpleTestCase, TestCase

from common.testing import make_counter, make_tenant, make_user
from orders.services import create_order, update_order_status
from payments.services import process_payment
from .emitter import ChannelsEventEmitter, EventEmitter, get_emitter
from .routing import websocket_urlpatterns
from .tasks import broadcast_event

ITEMS = [{'item_name': 'Soto Betawi', 'quantity': 1, 'unit_price': 30000}]


class ChannelsEmitterTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant()
        self.emitter = ChannelsEventEmitter()

    def test_event_is_sent_after_commit(self):
        with mock.patch('notifications.tasks.broadcast_event.delay') as delay:
            with self.captureOnCommitCallbacks(execute=False) as callbacks:
                order = create_order(tenant_id=self.tenant.pk, items=ITEMS, emitter=self.emitter)
            delay.assert_not_called()

            for callback in callbacks:
                callback()

        delay.assert_called_once()
        event, payload, groups = delay.call_args.args
        self.assertEqual(event, 'order_created')
        self.assertEqual(payload['order_id'], order.pk)
        self.assertEqual(payload['total_amount'], '30000')
        self.assertEqual(groups, [f'tenant_{self.tenant.pk}', 'display'])

    def test_status_change_payload(self):
        order = create_order(tenant_id=self.tenant.pk, items=ITEMS, emitter=EventEmitter())
        with mock.patch('notifications.tasks.broadcast_event.delay') as delay:
            with self.captureOnCommitCallbacks(execute=True):
                update_order_status(order.pk, 'paid', emitter=self.emitter)
        _, payload, _ = delay.call_args.args
        self.assertEqual((payload['previous'], payload['new']), ('pending', 'paid'))

    def test_payment_goes_to_kasir_group(self):
        counter = make_counter()
        kasir = make_user('kasir1', 'Kasir')
        order = create_order(tenant_id=self.tenant.pk, items=ITEMS, emitter=EventEmitter())
        with mock.patch('notifications.tasks.broadcast_event.delay') as delay:
            with self.captureOnCommitCallbacks(execute=True):
                process_payment(order_id=order.pk, amount=50000, payment_method='cash',
                                counter_id=counter.pk, kasir_id=kasir.pk, emitter=self.emitter)
        event, payload, groups = delay.call_args.args
        self.assertEqual(event, 'payment_processed')
        self.assertEqual(Decimal(payload['change']), Decimal('20000'))
        self.assertIn(f'kasir_{counter.pk}', groups)

    def test_broker_failure_is_swallowed(self):
        with mock.patch('notifications.tasks.broadcast_event.delay', side_effect=ConnectionError("broker down")):
            with self.assertLogs('notifications.emitter', level='ERROR'):
                with self.captureOnCommitCallbacks(execute=True):
                    order = create_order(tenant_id=self.tenant.pk, items=ITEMS, emitter=self.emitter)
        self.assertIsNotNone(order.pk)

    def test_bad_payload_is_swallowed(self):
        with self.assertLogs('notifications.emitter', level='ERROR'):
            self.emitter.order_created(object())

    def test_default_emitter(self):
        custom = EventEmitter()
        self.assertIs(get_emitter(custom), custom)
        self.assertIsInstance(get_emitter(), ChannelsEventEmitter)


class BroadcastTaskTests(SimpleTestCase):
    @skipIf('CELERY_TASK_ALWAYS_EAGER' in os.environ, "eager mode set from the environment")
    def test_tasks_are_queued_outside_tests(self):
        """Tes: di luar test, broadcast dikirim ke worker, bukan dijalankan di thread request."""
        self.assertFalse(settings.CELERY_TASK_ALWAYS_EAGER)

    def test_one_failing_group_does_not_stop_the_rest(self):
        layer = mock.Mock()
        layer.group_send = mock.AsyncMock(side_effect=[None, RuntimeError("redis down"), None])
        with mock.patch('notifications.tasks.get_channel_layer', return_value=layer):
            with self.assertLogs('notifications.tasks', level='ERROR'):
                delivered = broadcast_event('order_created', {'order_id': 1}, ['tenant_1', 'kasir_2', 'display'])

        self.assertEqual(delivered, 2)
        self.assertEqual(layer.group_send.await_count, 3)
        group, message = layer.group_send.await_args_list[0].args
        self.assertEqual(group, 'tenant_1')
        self.assertEqual(message, {
            'type': 'order.notification',
            'message': {'type': 'order_created', 'data': {'order_id': 1}},
        })

    def test_without_channel_layer(self):
        with mock.patch('notifications.tasks.get_channel_layer', return_value=None):
            self.assertEqual(broadcast_event('order_created', {}, ['display']), 0)


class ConsumerTests(SimpleTestCase):
    async def test_display_receives_broadcast(self):
        communicator = WebsocketCommunicator(URLRouter(websocket_urlpatterns), '/ws/display/')
        connected, _ = await communicator.connect()
        self.assertTrue(connected)

        await get_channel_layer().group_send('display', {
            'type': 'order.notification',
            'message': {'type': 'order_status_changed', 'data': {'order_id': 7, 'new': 'ready'}},
        })
        message = await communicator.receive_json_from()
        self.assertEqual(message['type'], 'order_status_changed')
        self.assertEqual(message['data']['new'], 'ready')
        await communicator.disconnect()

    async def test_tenant_channel_requires_login(self):
        communicator = WebsocketCommunicator(URLRouter(websocket_urlpatterns), '/ws/tenant/1/notifications/')
        connected, _ = await communicator.connect()
        self.assertFalse(connected)
