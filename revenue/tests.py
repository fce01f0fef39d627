from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from common.exceptions import InvalidInput, InvalidState, NotFound
from common.testing import RecordingEmitter, make_counter, make_tenant, make_user
from configuration.services import update_revenue_settings
from orders.services import create_order
from payments.services import process_payment, refund_payment
from . import services
from .models import Settlement


def _current_month():
    return timezone.localtime().strftime('%Y-%m')


def _sell(tenant, counter, kasir, amount, method='cash'):
    order = create_order(
        tenant_id=tenant.pk,
        items=[{'item_name': 'Sate Ayam', 'quantity': 1, 'unit_price': amount}],
        emitter=RecordingEmitter(),
    )
    return process_payment(order_id=order.pk, amount=amount, payment_method=method,
                           counter_id=counter.pk, kasir_id=kasir.pk, emitter=RecordingEmitter())['payment']


class SplitTests(TestCase):
    def test_even_split(self):
        result = services.split(100000, 97, 2, 1)
        self.assertEqual(result['tenant'], Decimal('97000'))
        self.assertEqual(result['operator'], Decimal('2000'))
        self.assertEqual(result['platform'], Decimal('1000'))
        self.assertEqual(result['percentages']['tenant'], Decimal('97'))

    def test_each_share_rounds_half_up(self):
        # 145.5 -> 146, 3 -> 3, 1.5 -> 2: jumlahnya 151, tidak dikoreksi.
        result = services.split(150, 97, 2, 1)
        self.assertEqual((result['tenant'], result['operator'], result['platform']),
                         (Decimal('146'), Decimal('3'), Decimal('2')))
        total = result['tenant'] + result['operator'] + result['platform']
        self.assertLessEqual(abs(total - result['total_amount']), Decimal('2'))

    def test_split_is_deterministic(self):
        self.assertEqual(services.split(123457, 97, 2, 1), services.split(123457, 97, 2, 1))

    def test_tenant_share_is_monotonic(self):
        shares = [services.split(amount, 97, 2, 1)['tenant'] for amount in (1, 49, 50, 51, 999, 1000, 123457)]
        self.assertEqual(shares, sorted(shares))

    def test_non_positive_total_rejected(self):
        for amount in (0, -100):
            with self.assertRaises(InvalidInput):
                services.split(amount, 97, 2, 1)
        with self.assertRaises(InvalidInput):
            services.split('abc', 97, 2, 1)

    def test_missing_percentages_come_from_settings(self):
        self.assertEqual(services.calculate_revenue_split(100000)['tenant'], Decimal('97000'))
        update_revenue_settings(tenant_percentage=90, pengelola_percentage=8, system_percentage=2)
        result = services.calculate_revenue_split(100000)
        self.assertEqual(result['tenant'], Decimal('90000'))
        self.assertEqual(result['operator'], Decimal('8000'))
        self.assertEqual(result['platform'], Decimal('2000'))

    def test_explicit_percentages_win(self):
        update_revenue_settings(tenant_percentage=90, pengelola_percentage=8, system_percentage=2)
        self.assertEqual(services.calculate_revenue_split(1000, 50, 30, 20)['tenant'], Decimal('500'))

    def test_parse_month(self):
        start, end = services.parse_month('2024-12')
        self.assertEqual((start.year, start.month, end.year, end.month), (2024, 12, 2025, 1))
        for bad in ('2024-13', '2024-1', '24-01', '', None):
            with self.assertRaises(InvalidInput):
                services.parse_month(bad)


class RevenueReportTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant()
        self.other = make_tenant(code='BKS', name='Bakso Pak Kumis')
        self.counter = make_counter()
        self.kasir = make_user('kasir1', 'Kasir')
        _sell(self.tenant, self.counter, self.kasir, 100000)
        _sell(self.tenant, self.counter, self.kasir, 50000, method='qris')
        _sell(self.other, self.counter, self.kasir, 20000)

    def test_tenant_revenue(self):
        revenue = services.get_tenant_revenue(self.tenant.pk, _current_month())
        self.assertEqual(revenue['total_sales'], Decimal('150000'))
        self.assertEqual(revenue['transaction_count'], 2)
        self.assertEqual(revenue['tenant_share'], Decimal('145500'))
        self.assertEqual(revenue['operator_share'], Decimal('3000'))
        self.assertEqual(revenue['platform_share'], Decimal('1500'))

    def test_refunded_payments_are_excluded(self):
        payment = _sell(self.other, self.counter, self.kasir, 30000)
        refund_payment(payment.pk, emitter=RecordingEmitter())
        self.assertEqual(services.get_tenant_revenue(self.other.pk)['total_sales'], Decimal('20000'))

    def test_period_without_sales_has_zero_shares(self):
        revenue = services.get_tenant_revenue(self.tenant.pk, '2001-01')
        self.assertEqual(revenue['total_sales'], Decimal('0'))
        self.assertEqual(revenue['tenant_share'], Decimal('0'))

    def test_missing_tenant(self):
        with self.assertRaises(NotFound):
            services.get_tenant_revenue(9999)

    def test_system_revenue(self):
        revenue = services.get_system_revenue(_current_month())
        self.assertEqual(revenue['total_sales'], Decimal('170000'))
        self.assertEqual(revenue['order_count'], 3)
        self.assertEqual(revenue['system_revenue'], Decimal('1700'))

    def test_revenue_by_method(self):
        rows = {row['payment_method']: row for row in services.get_revenue_by_method()}
        self.assertEqual(rows['cash']['total_amount'], Decimal('120000'))
        self.assertEqual(rows['qris']['transaction_count'], 1)

    def test_top_tenants(self):
        top = services.get_top_tenants_by_revenue(limit=1)
        self.assertEqual(len(top), 1)
        self.assertEqual(top[0]['tenant_code'], 'WRG')

    def test_revenue_statistics(self):
        Settlement.objects.create(tenant=self.other, period_month=_current_month(), total_sales=20000,
                                  tenant_share=19400, operator_share=400, platform_share=200, bank_account='BRI 1')
        stats = services.get_revenue_statistics(_current_month())
        self.assertEqual(stats['system']['total_sales'], Decimal('170000'))
        self.assertEqual(len(stats['by_tenant']), 2)
        self.assertEqual(stats['pending_settlements'], 1)
        self.assertEqual(stats['settlement_details'][0].tenant, self.other)

    def test_monthly_comparison(self):
        months = services.get_monthly_comparison(3)
        self.assertEqual(len(months), 3)
        self.assertEqual(months[-1]['period'], _current_month())
        self.assertEqual(months[-1]['total_sales'], Decimal('170000'))
        with self.assertRaises(InvalidInput):
            services.get_monthly_comparison(25)


class SettlementTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant()
        self.counter = make_counter()
        self.kasir = make_user('kasir1', 'Kasir')
        _sell(self.tenant, self.counter, self.kasir, 100000)
        self.month = _current_month()

    def test_initiate_snapshots_shares(self):
        settlement = services.initiate_settlement(tenant_id=self.tenant.pk, month=self.month,
                                                  bank_account='BCA 1234567890')
        self.assertEqual(settlement.status, Settlement.STATUS_PENDING)
        self.assertEqual(settlement.total_sales, Decimal('100000'))
        self.assertEqual(settlement.tenant_share, Decimal('97000'))
        self.assertEqual(settlement.operator_share, Decimal('2000'))
        self.assertEqual(settlement.platform_share, Decimal('1000'))

    def test_duplicate_period_rejected(self):
        services.initiate_settlement(tenant_id=self.tenant.pk, month=self.month, bank_account='BCA 1')
        with self.assertRaises(InvalidState):
            services.initiate_settlement(tenant_id=self.tenant.pk, month=self.month, bank_account='BCA 1')
        self.assertEqual(Settlement.objects.count(), 1)

    def test_period_without_sales_rejected(self):
        with self.assertRaises(InvalidState):
            services.initiate_settlement(tenant_id=self.tenant.pk, month='2001-01', bank_account='BCA 1')

    def test_initiate_validation(self):
        with self.assertRaises(InvalidInput):
            services.initiate_settlement(tenant_id=self.tenant.pk, month='Januari', bank_account='BCA 1')
        with self.assertRaises(InvalidInput):
            services.initiate_settlement(tenant_id=self.tenant.pk, month=self.month, bank_account='  ')
        with self.assertRaises(NotFound):
            services.initiate_settlement(tenant_id=9999, month=self.month, bank_account='BCA 1')

    def test_process_only_once(self):
        settlement = services.initiate_settlement(tenant_id=self.tenant.pk, month=self.month, bank_account='BCA 1')
        processed = services.process_settlement(settlement.pk, 'TRF-001')
        self.assertEqual(processed.status, Settlement.STATUS_COMPLETED)
        self.assertEqual(processed.transfer_id, 'TRF-001')
        self.assertIsNotNone(processed.processed_at)

        with self.assertRaises(InvalidState):
            services.process_settlement(settlement.pk, 'TRF-002')
        settlement.refresh_from_db()
        self.assertEqual(settlement.transfer_id, 'TRF-001')

    def test_process_missing_settlement(self):
        with self.assertRaises(NotFound):
            services.process_settlement(9999, 'TRF-001')

    def test_history(self):
        Settlement.objects.create(tenant=self.tenant, period_month='2023-05', total_sales=1000, tenant_share=970,
                                  operator_share=20, platform_share=10, bank_account='BCA 1')
        services.initiate_settlement(tenant_id=self.tenant.pk, month=self.month, bank_account='BCA 1')

        history = services.get_settlement_history(self.tenant.pk)
        self.assertEqual(history['total'], 2)
        self.assertEqual(history['settlements'][0].period_month, self.month)

        self.assertEqual(services.get_settlement_history(self.tenant.pk, year=2023)['total'], 1)
        page = services.get_settlement_history(self.tenant.pk, limit=1, offset=1)
        self.assertEqual(page['total'], 2)
        self.assertEqual(page['settlements'][0].period_month, '2023-05')


class SettlementAPITests(APITestCase):
    def setUp(self):
        self.tenant = make_tenant()
        self.counter = make_counter()
        self.kasir = make_user('kasir1', 'Kasir')
        self.pengelola = make_user('pengelola', 'Pengelola')
        self.owner = make_user('pemilik', 'Tenant')
        self.tenant.staff.add(self.owner)
        _sell(self.tenant, self.counter, self.kasir, 100000)
        self.url = reverse('tenant-settlements-list', kwargs={'tenant_pk': self.tenant.pk})

    def test_pengelola_initiates_and_processes(self):
        self.client.force_authenticate(user=self.pengelola)
        response = self.client.post(self.url, {'month': _current_month(), 'bank_account': 'BCA 1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        settlement_id = response.data['data']['id']

        process_url = reverse('process-settlement', kwargs={'settlement_id': settlement_id})
        response = self.client.post(process_url, {'transfer_id': 'TRF-9'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'completed')

    def test_tenant_owner_sees_history_but_cannot_initiate(self):
        self.client.force_authenticate(user=self.owner)
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_200_OK)
        response = self.client.post(self.url, {'month': _current_month(), 'bank_account': 'BCA 1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_split_endpoint(self):
        self.client.force_authenticate(user=self.pengelola)
        response = self.client.get(reverse('revenue-split'), {'total_amount': '100000'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['tenant'], Decimal('97000'))
