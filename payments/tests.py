from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from common.exceptions import InsufficientAmount, InvalidInput, InvalidState, NotFound
from common.testing import RecordingEmitter, make_counter, make_tenant, make_user
from orders.models import Order
from orders.services import cancel_order, create_order
from . import services
from .models import Payment


def _order(tenant, price=50000, quantity=1):
    return create_order(
        tenant_id=tenant.pk,
        items=[{'item_name': 'Ayam Geprek', 'quantity': quantity, 'unit_price': price}],
        emitter=RecordingEmitter(),
    )


class ProcessPaymentTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant()
        self.counter = make_counter()
        self.kasir = make_user('kasir1', 'Kasir')
        self.emitter = RecordingEmitter()
        self.order = _order(self.tenant)

    def _pay(self, amount, order=None, method='cash'):
        return services.process_payment(
            order_id=(order or self.order).pk, amount=amount, payment_method=method,
            counter_id=self.counter.pk, kasir_id=self.kasir.pk, emitter=self.emitter,
        )

    def test_payment_with_change(self):
        result = self._pay(60000)
        payment = result['payment']
        self.assertEqual(result['change'], Decimal('10000'))
        self.assertEqual(payment.status, Payment.STATUS_SUCCESS)
        self.assertEqual(payment.amount_paid, Decimal('60000'))
        self.assertTrue(payment.transaction_reference.startswith('PAY-'))
        self.assertEqual(payment.kasir, self.kasir)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PAID)
        self.assertEqual(self.order.status, Order.STATUS_PENDING)
        self.assertEqual(self.emitter.names(), ['payment_processed'])

    def test_exact_amount_gives_zero_change(self):
        self.assertEqual(self._pay(50000)['change'], Decimal('0'))

    def test_insufficient_amount_writes_nothing(self):
        """Tes: uang kurang ditolak dan tidak ada pembayaran yang tersimpan."""
        with self.assertRaises(InsufficientAmount) as ctx:
            self._pay(40000)
        self.assertIn("Required: 50000", str(ctx.exception.detail))
        self.assertFalse(Payment.objects.exists())
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_UNPAID)
        self.assertEqual(self.emitter.events, [])

    def test_invalid_method_and_amount(self):
        with self.assertRaises(InvalidInput):
            self._pay(50000, method='bitcoin')
        with self.assertRaises(InvalidInput):
            self._pay(0)
        with self.assertRaises(InvalidInput):
            self._pay('lima puluh ribu')

    def test_missing_order(self):
        with self.assertRaises(NotFound):
            services.process_payment(order_id=9999, amount=1000, payment_method='cash',
                                     counter_id=self.counter.pk, kasir_id=self.kasir.pk)

    def test_missing_counter(self):
        with self.assertRaises(NotFound):
            services.process_payment(order_id=self.order.pk, amount=50000, payment_method='cash',
                                     counter_id=9999, kasir_id=self.kasir.pk)
        self.assertFalse(Payment.objects.exists())

    def test_second_payment_is_rejected(self):
        self._pay(50000)
        with self.assertRaises(InvalidState):
            self._pay(50000)
        self.assertEqual(Payment.objects.count(), 1)

    def test_cancelled_order_cannot_be_paid(self):
        cancel_order(self.order.pk, emitter=self.emitter)
        with self.assertRaises(InvalidState):
            self._pay(50000)


class RefundPaymentTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant()
        self.counter = make_counter()
        self.kasir = make_user('kasir1', 'Kasir')
        self.order = _order(self.tenant)
        self.payment = services.process_payment(
            order_id=self.order.pk, amount=60000, payment_method='qris',
            counter_id=self.counter.pk, kasir_id=self.kasir.pk, emitter=RecordingEmitter(),
        )['payment']

    def test_refund_full_paid_amount(self):
        emitter = RecordingEmitter()
        result = services.refund_payment(self.payment.pk, 'Salah pesan', emitter=emitter)

        self.assertEqual(result['refund_amount'], Decimal('60000'))
        self.assertEqual(result['original_payment_id'], self.payment.pk)
        self.assertTrue(result['reference'].startswith('REFUND-PAY-'))
        self.assertEqual(result['reason'], 'Salah pesan')

        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_REFUNDED)
        self.assertEqual(self.payment.amount_paid, Decimal('60000'))

        refund = Payment.objects.get(pk=result['refund_id'])
        self.assertEqual(refund.amount_paid, Decimal('-60000'))
        self.assertEqual(refund.status, Payment.STATUS_REFUNDED)
        self.assertEqual(refund.payment_details['original_transaction'], self.payment.transaction_reference)
        self.assertTrue(refund.is_refund)

        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_REFUNDED)
        self.assertEqual(emitter.names(), ['payment_refunded'])

    def test_second_refund_fails(self):
        """Tes: pembayaran yang sudah direfund tidak bisa direfund lagi."""
        services.refund_payment(self.payment.pk, emitter=RecordingEmitter())
        with self.assertRaises(InvalidState):
            services.refund_payment(self.payment.pk, emitter=RecordingEmitter())
        self.assertEqual(Payment.objects.filter(amount_paid__lt=0).count(), 1)

    def test_refund_missing_payment(self):
        with self.assertRaises(NotFound):
            services.refund_payment(9999)


class PaymentQueryTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant()
        self.counter = make_counter()
        self.kasir = make_user('kasir1', 'Kasir')
        for amount, method in [(50000, 'cash'), (55000, 'cash'), (50000, 'qris')]:
            order = _order(self.tenant)
            services.process_payment(order_id=order.pk, amount=amount, payment_method=method,
                                     counter_id=self.counter.pk, kasir_id=self.kasir.pk,
                                     emitter=RecordingEmitter())

    def test_statistics_cover_successful_payments(self):
        refunded = Payment.objects.filter(payment_method='qris').get()
        services.refund_payment(refunded.pk, emitter=RecordingEmitter())

        stats = services.get_payment_statistics()
        self.assertEqual(stats['total_transactions'], 2)
        self.assertEqual(stats['total_amount'], Decimal('105000'))
        self.assertEqual(stats['by_method'], [
            {'payment_method': 'cash', 'count': 2, 'total': Decimal('105000')},
        ])

    def test_statistics_filter_by_method(self):
        stats = services.get_payment_statistics(payment_method='qris')
        self.assertEqual(stats['total_transactions'], 1)
        self.assertEqual(stats['total_amount'], Decimal('50000'))

    def test_validate_amount(self):
        order = _order(self.tenant, price=30000)
        self.assertEqual(services.validate_payment_amount(order.pk, 25000)['shortfall'], Decimal('5000'))
        result = services.validate_payment_amount(order.pk, 50000)
        self.assertTrue(result['valid'])
        self.assertEqual(result['change'], Decimal('20000'))
        self.assertEqual(services.validate_payment_amount(9999, 1000), {'valid': False, 'error': "Order not found"})
        self.assertFalse(Payment.objects.filter(order=order).exists())

    def test_update_status(self):
        payment = Payment.objects.first()
        self.assertEqual(services.update_payment_status(payment.pk, 'failed').status, 'failed')
        with self.assertRaises(InvalidInput):
            services.update_payment_status(payment.pk, 'lost')
        with self.assertRaises(NotFound):
            services.update_payment_status(9999, 'failed')

    def test_get_payment(self):
        payment = Payment.objects.first()
        self.assertEqual(services.get_payment(payment.pk).kasir, self.kasir)
        with self.assertRaises(NotFound):
            services.get_payment(9999)

    def test_payments_by_order(self):
        payment = Payment.objects.first()
        self.assertEqual(services.get_payments_by_order(payment.order_id), [payment])


class PaymentAPITests(APITestCase):
    def setUp(self):
        self.tenant = make_tenant()
        self.counter = make_counter()
        self.kasir = make_user('kasir1', 'Kasir')
        self.tenant_user = make_user('tenant1', 'Tenant')
        self.tenant.staff.add(self.tenant_user)
        self.order = _order(self.tenant)
        self.url = reverse('process-payment')

    def test_kasir_processes_payment(self):
        self.client.force_authenticate(user=self.kasir)
        data = {'order_id': self.order.pk, 'amount': '70000', 'payment_method': 'cash',
                'checkout_counter_id': self.counter.pk}
        response = self.client.post(self.url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['data']['change'], Decimal('20000'))
        self.assertEqual(response.data['data']['payment']['kasir'], 'kasir1')

    def test_insufficient_payment_error_code(self):
        self.client.force_authenticate(user=self.kasir)
        data = {'order_id': self.order.pk, 'amount': '10000', 'payment_method': 'cash',
                'checkout_counter_id': self.counter.pk}
        response = self.client.post(self.url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'insufficient_amount')

    def test_tenant_user_cannot_process_payment(self):
        self.client.force_authenticate(user=self.tenant_user)
        data = {'order_id': self.order.pk, 'amount': '50000', 'payment_method': 'cash',
                'checkout_counter_id': self.counter.pk}
        response = self.client.post(self.url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Payment.objects.exists())

    def test_refund_twice_via_api(self):
        payment = services.process_payment(order_id=self.order.pk, amount=50000, payment_method='cash',
                                           counter_id=self.counter.pk, kasir_id=self.kasir.pk,
                                           emitter=RecordingEmitter())['payment']
        self.client.force_authenticate(user=self.kasir)
        url = reverse('refund-payment', kwargs={'payment_id': payment.pk})
        self.assertEqual(self.client.post(url, {'reason': 'Double'}, format='json').status_code, status.HTTP_200_OK)
        response = self.client.post(url, {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'invalid_state')
