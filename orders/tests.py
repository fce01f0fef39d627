from decimal import Decimal
from unittest import mock

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from common.exceptions import InvalidInput, InvalidState, InvalidTransition, NotFound
from common.testing import RecordingEmitter, make_counter, make_tenant, make_user
from notifications.emitter import ChannelsEventEmitter
from payments.models import Payment
from payments.services import process_payment
from . import services
from .models import Order, OrderItem

ITEMS = [
    {'item_name': 'Nasi Goreng', 'quantity': 2, 'unit_price': 25000},
    {'item_name': 'Es Jeruk', 'quantity': 1, 'unit_price': 35000},
]


class OrderLifecycleTests(TestCase):
    """
    Tes siklus hidup order: pembuatan, transisi status, dan pembatalan.
    """
    def setUp(self):
        self.tenant = make_tenant()
        self.counter = make_counter()
        self.kasir = make_user('kasir1', 'Kasir')
        self.emitter = RecordingEmitter()

    def _create(self, items=ITEMS, **extra):
        return services.create_order(tenant_id=self.tenant.pk, items=items, customer_name='Budi',
                                     emitter=self.emitter, **extra)

    def _pay(self, order, amount):
        return process_payment(order_id=order.pk, amount=amount, payment_method='cash',
                               counter_id=self.counter.pk, kasir_id=self.kasir.pk, emitter=self.emitter)

    def test_full_lifecycle_from_pending_to_completed(self):
        """Tes: order berjalan dari pending sampai completed, lalu tidak bisa kembali."""
        order = self._create()
        self.assertEqual(order.total_amount, Decimal('85000'))
        self.assertEqual(order.status, Order.STATUS_PENDING)
        self.assertEqual(order.payment_status, Order.PAYMENT_UNPAID)
        self.assertTrue(order.order_number.startswith('WRG-'))

        result = self._pay(order, 85000)
        self.assertEqual(result['change'], Decimal('0'))
        order.refresh_from_db()
        self.assertEqual(order.payment_status, Order.PAYMENT_PAID)
        self.assertIsNotNone(order.paid_at)

        for new_status in ['paid', 'preparing', 'ready', 'completed']:
            order = services.update_order_status(order.pk, new_status, emitter=self.emitter)
            self.assertEqual(order.status, new_status)
        self.assertIsNotNone(order.ready_at)
        self.assertIsNotNone(order.completed_at)

        with self.assertRaises(InvalidTransition) as ctx:
            services.update_order_status(order.pk, 'pending')
        self.assertIn("'completed'", str(ctx.exception.detail))
        self.assertIn("'pending'", str(ctx.exception.detail))

    def test_items_are_stored_with_subtotals(self):
        order = self._create()
        subtotals = sorted(order.items.values_list('subtotal', flat=True))
        self.assertEqual(subtotals, [Decimal('35000'), Decimal('50000')])
        self.assertEqual(sum(subtotals), order.total_amount)

    def test_transition_table_is_enforced_for_every_pair(self):
        statuses = [choice for choice, _ in Order.STATUS_CHOICES]
        for current in statuses:
            for target in statuses:
                order = Order.objects.create(
                    order_number=f"T-{current}-{target}", tenant=self.tenant, total_amount=1000, status=current,
                )
                allowed = target in services.ORDER_TRANSITIONS[current]
                if allowed:
                    services.update_order_status(order.pk, target, emitter=self.emitter)
                    order.refresh_from_db()
                    self.assertEqual(order.status, target)
                else:
                    with self.assertRaises(InvalidTransition):
                        services.update_order_status(order.pk, target, emitter=self.emitter)

    def test_get_order_attaches_latest_payment(self):
        order = self._create()
        self.assertIsNone(services.get_order(order.pk).latest_payment)
        charge = self._pay(order, 85000)['payment']
        self.assertEqual(services.get_order(order.pk).latest_payment, charge)
        with self.assertRaises(NotFound):
            services.get_order(9999)

    def test_terminal_statuses_have_no_exit(self):
        self.assertEqual(services.ORDER_TRANSITIONS[Order.STATUS_COMPLETED], set())
        self.assertEqual(services.ORDER_TRANSITIONS[Order.STATUS_CANCELLED], set())

    def test_create_order_requires_items(self):
        with self.assertRaises(InvalidInput):
            self._create(items=[])
        self.assertFalse(Order.objects.exists())

    def test_create_order_rejects_bad_item(self):
        with self.assertRaises(InvalidInput):
            self._create(items=[{'item_name': 'Teh', 'quantity': 0, 'unit_price': 5000}])
        with self.assertRaises(InvalidInput):
            self._create(items=[{'item_name': 'Teh', 'quantity': 1, 'unit_price': -1}])
        self.assertFalse(OrderItem.objects.exists())

    def test_create_order_unknown_tenant(self):
        with self.assertRaises(NotFound):
            services.create_order(tenant_id=9999, items=ITEMS)

    def test_create_order_inactive_tenant(self):
        self.tenant.status = 'inactive'
        self.tenant.save()
        with self.assertRaises(InvalidState):
            self._create()

    def test_table_number_kept_only_for_dine_in(self):
        takeaway = self._create(order_type='takeaway', table_number='12')
        dine_in = self._create(order_type='dine_in', table_number='12')
        self.assertIsNone(takeaway.table_number)
        self.assertEqual(dine_in.table_number, '12')

    def test_update_status_missing_order(self):
        with self.assertRaises(NotFound):
            services.update_order_status(9999, 'paid')

    def test_cancel_paid_order_creates_one_refund_entry(self):
        """Tes: batal setelah bayar membuat tepat satu baris refund bernilai negatif."""
        order = self._create()
        charge = self._pay(order, 90000)['payment']

        result = services.cancel_order(order.pk, 'Pelanggan batal', emitter=self.emitter)

        self.assertEqual(result, {'order_id': order.pk, 'refund_amount': Decimal('85000')})
        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_CANCELLED)
        self.assertEqual(order.payment_status, Order.PAYMENT_REFUNDED)
        self.assertEqual(order.total_amount, Decimal('85000'))

        refunds = Payment.objects.filter(order=order, amount_paid__lt=0)
        self.assertEqual(refunds.count(), 1)
        refund = refunds.get()
        self.assertEqual(refund.amount_paid, -charge.amount_paid)
        self.assertEqual(refund.transaction_reference, f"REFUND-{charge.transaction_reference}")
        self.assertEqual(refund.status, Payment.STATUS_REFUNDED)
        self.assertEqual(refund.payment_details['refund_reason'], 'Pelanggan batal')
        charge.refresh_from_db()
        self.assertEqual(charge.status, Payment.STATUS_REFUNDED)
        self.assertIn('payment_refunded', self.emitter.names())

    def test_cancel_unpaid_order_has_no_refund(self):
        order = self._create()
        result = services.cancel_order(order.pk, emitter=self.emitter)
        self.assertEqual(result['refund_amount'], Decimal('0'))
        self.assertFalse(Payment.objects.exists())
        order.refresh_from_db()
        self.assertEqual(order.payment_status, Order.PAYMENT_REFUNDED)

    def test_cancel_completed_order_fails(self):
        order = Order.objects.create(order_number='X-1', tenant=self.tenant, total_amount=1000,
                                     status=Order.STATUS_COMPLETED)
        with self.assertRaises(InvalidState):
            services.cancel_order(order.pk)

    def test_cancel_twice_fails(self):
        order = self._create()
        services.cancel_order(order.pk, emitter=self.emitter)
        with self.assertRaises(InvalidState):
            services.cancel_order(order.pk, emitter=self.emitter)

    def test_events_emitted(self):
        order = self._create()
        services.update_order_status(order.pk, 'paid', emitter=self.emitter)
        services.cancel_order(order.pk, emitter=self.emitter)
        self.assertEqual(self.emitter.names(), ['order_created', 'order_status_changed', 'order_cancelled'])
        _, (_, previous, new) = self.emitter.events[1]
        self.assertEqual((previous, new), ('pending', 'paid'))

    def test_failing_broadcast_does_not_fail_operation(self):
        with mock.patch('notifications.tasks.broadcast_event.delay', side_effect=RuntimeError("broker down")):
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                order = services.create_order(tenant_id=self.tenant.pk, items=ITEMS,
                                              emitter=ChannelsEventEmitter())
        self.assertEqual(len(callbacks), 1)
        self.assertTrue(Order.objects.filter(pk=order.pk).exists())


class ListOrdersTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant()
        self.other = make_tenant(code='BKS', name='Bakso Pak Kumis')
        for i in range(5):
            services.create_order(tenant_id=self.tenant.pk, items=ITEMS[:1], emitter=RecordingEmitter())
        services.create_order(tenant_id=self.other.pk, items=ITEMS[:1], emitter=RecordingEmitter())

    def test_total_counts_before_pagination(self):
        result = services.list_orders(tenant_id=self.tenant.pk, limit=2, offset=1)
        self.assertEqual(result['total'], 5)
        self.assertEqual(len(result['orders']), 2)
        self.assertEqual((result['limit'], result['offset']), (2, 1))

    def test_newest_first(self):
        orders = services.list_orders()['orders']
        created = [order.created_at for order in orders]
        self.assertEqual(created, sorted(created, reverse=True))

    def test_limit_is_capped(self):
        self.assertEqual(services.list_orders(limit=500)['limit'], 100)

    def test_negative_offset_rejected(self):
        with self.assertRaises(InvalidInput):
            services.list_orders(offset=-1)

    def test_orders_by_tenant(self):
        self.assertEqual(len(services.get_orders_by_tenant(self.other.pk)), 1)
        with self.assertRaises(NotFound):
            services.get_orders_by_tenant(9999)


class OrderAPITests(APITestCase):
    def setUp(self):
        self.tenant = make_tenant()
        self.other_tenant = make_tenant(code='BKS', name='Bakso Pak Kumis')
        self.kasir = make_user('kasir1', 'Kasir')
        self.staff = make_user('staff1', 'Tenant')
        self.other_tenant.staff.add(self.staff)
        self.list_url = reverse('order-list')

    def test_create_order_success(self):
        self.client.force_authenticate(user=self.kasir)
        data = {'tenant_id': self.tenant.pk, 'customer_name': 'Siti', 'items': ITEMS}
        response = self.client.post(self.list_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['data']['status'], 'pending')
        self.assertEqual(Decimal(response.data['data']['total_amount']), Decimal('85000'))
        self.assertEqual(len(response.data['data']['items']), 2)

    def test_create_order_with_empty_items_fails(self):
        self.client.force_authenticate(user=self.kasir)
        response = self.client.post(self.list_url, {'tenant_id': self.tenant.pk, 'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])

    def test_tenant_staff_cannot_create_for_other_tenant(self):
        self.client.force_authenticate(user=self.staff)
        response = self.client.post(self.list_url, {'tenant_id': self.tenant.pk, 'items': ITEMS}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_missing_order_uses_error_envelope(self):
        self.client.force_authenticate(user=self.kasir)
        response = self.client.get(reverse('order-detail', kwargs={'order_id': 9999}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['success'], False)
        self.assertEqual(response.data['error']['code'], 'not_found')
        self.assertEqual(response.data['error']['message'], 'Order not found')

    def test_invalid_transition_returns_400(self):
        order = services.create_order(tenant_id=self.tenant.pk, items=ITEMS, emitter=RecordingEmitter())
        self.client.force_authenticate(user=self.kasir)
        url = reverse('update-order-status', kwargs={'order_id': order.pk})
        response = self.client.patch(url, {'status': 'completed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'invalid_transition')

    def test_staff_from_wrong_tenant_cannot_access_order(self):
        order = services.create_order(tenant_id=self.tenant.pk, items=ITEMS, emitter=RecordingEmitter())
        self.client.force_authenticate(user=self.staff)
        response = self.client.get(reverse('order-detail', kwargs={'order_id': order.pk}))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_staff_list_is_scoped_to_own_tenant(self):
        services.create_order(tenant_id=self.tenant.pk, items=ITEMS, emitter=RecordingEmitter())
        services.create_order(tenant_id=self.other_tenant.pk, items=ITEMS, emitter=RecordingEmitter())
        self.client.force_authenticate(user=self.staff)
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pagination']['total'], 1)

    def test_unauthenticated_user_is_rejected(self):
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
