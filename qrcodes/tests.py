from datetime import timedelta
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from common.exceptions import Gone, InvalidState, NotFound
from common.testing import RecordingEmitter, make_counter, make_tenant, make_user
from configuration.cache import settings_cache
from configuration.models import Setting
from orders.services import create_order
from . import services
from .models import QRCode, QRCodeScan


def _order(tenant):
    return create_order(
        tenant_id=tenant.pk, customer_name='Rina',
        items=[{'item_name': 'Mie Ayam', 'quantity': 1, 'unit_price': 20000}],
        emitter=RecordingEmitter(),
    )


def _push_expiry_back(qr_code):
    QRCode.objects.filter(pk=qr_code.pk).update(expires_at=timezone.now() - timedelta(minutes=1))


class GenerateQRCodeTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant()
        self.order = _order(self.tenant)

    def test_generate_creates_active_code(self):
        qr_code = services.generate_qr_code(self.order.pk)
        self.assertEqual(qr_code.status, QRCode.STATUS_ACTIVE)
        self.assertEqual(qr_code.scan_count, 0)
        self.assertEqual(len(qr_code.qr_token), 32)
        self.assertEqual(qr_code.qr_data['order_number'], self.order.order_number)
        self.assertTrue(qr_code.qr_url.endswith(f"/qr/{qr_code.qr_token}"))

    def test_generate_is_idempotent_while_active(self):
        first = services.generate_qr_code(self.order.pk)
        second = services.generate_qr_code(self.order.pk)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(first.qr_token, second.qr_token)
        self.assertEqual(QRCode.objects.count(), 1)

    def test_tokens_are_unique_per_order(self):
        other = services.generate_qr_code(_order(self.tenant).pk)
        self.assertNotEqual(services.generate_qr_code(self.order.pk).qr_token, other.qr_token)

    def test_default_expiry_window(self):
        with override_settings(QR_EXPIRY_HOURS=24):
            qr_code = services.generate_qr_code(self.order.pk)
        window = qr_code.expires_at - qr_code.created_at
        self.assertAlmostEqual(window.total_seconds(), 24 * 3600, delta=60)

    def test_expiry_window_follows_setting(self):
        Setting.objects.create(key='qr_expiry_hours', value='2', data_type='number')
        settings_cache.invalidate()
        qr_code = services.generate_qr_code(self.order.pk)
        window = qr_code.expires_at - qr_code.created_at
        self.assertAlmostEqual(window.total_seconds(), 2 * 3600, delta=60)

    def test_generate_for_missing_order(self):
        with self.assertRaises(NotFound):
            services.generate_qr_code(9999)

    def test_generate_after_scan_is_rejected(self):
        qr_code = services.generate_qr_code(self.order.pk)
        QRCode.objects.filter(pk=qr_code.pk).update(status=QRCode.STATUS_SCANNED)
        with self.assertRaises(InvalidState):
            services.generate_qr_code(self.order.pk)

    def test_generate_on_expired_code_persists_expiry(self):
        qr_code = services.generate_qr_code(self.order.pk)
        _push_expiry_back(qr_code)
        with self.assertRaises(InvalidState):
            services.generate_qr_code(self.order.pk)
        qr_code.refresh_from_db()
        self.assertEqual(qr_code.status, QRCode.STATUS_EXPIRED)


class ScanQRCodeTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant()
        self.counter = make_counter()
        self.kasir = make_user('kasir1', 'Kasir')
        self.order = _order(self.tenant)
        self.qr_code = services.generate_qr_code(self.order.pk)
        self.emitter = RecordingEmitter()

    def _scan(self, token=None):
        return services.mark_qr_as_scanned(token or self.qr_code.qr_token, self.kasir.pk, self.counter.pk,
                                           emitter=self.emitter)

    def test_scan_marks_code_and_records_audit(self):
        qr_code = self._scan()
        self.assertEqual(qr_code.status, QRCode.STATUS_SCANNED)
        self.assertEqual(qr_code.scan_count, 1)
        self.assertEqual(qr_code.scanned_by, self.kasir)
        self.assertEqual(qr_code.checkout_counter, self.counter)
        self.assertIsNotNone(qr_code.scanned_at)

        scan = QRCodeScan.objects.get()
        self.assertEqual(scan.order, self.order)
        self.assertEqual(scan.scanned_by, self.kasir)
        self.assertEqual(self.emitter.names(), ['qr_scanned'])

    def test_second_scan_fails(self):
        self._scan()
        with self.assertRaises(InvalidState):
            self._scan()
        self.qr_code.refresh_from_db()
        self.assertEqual(self.qr_code.scan_count, 1)
        self.assertEqual(QRCodeScan.objects.count(), 1)

    def test_expired_code_cannot_be_scanned(self):
        _push_expiry_back(self.qr_code)
        with self.assertRaises(Gone):
            self._scan()
        self.qr_code.refresh_from_db()
        self.assertEqual(self.qr_code.status, QRCode.STATUS_EXPIRED)
        self.assertEqual(self.qr_code.scan_count, 0)
        self.assertEqual(self.emitter.events, [])

    def test_deactivated_code_cannot_be_scanned(self):
        services.deactivate_qr(self.qr_code.qr_token)
        with self.assertRaises(InvalidState):
            self._scan()

    def test_unknown_token_counter_or_user(self):
        with self.assertRaises(NotFound):
            self._scan('0' * 32)
        with self.assertRaises(NotFound):
            services.mark_qr_as_scanned(self.qr_code.qr_token, self.kasir.pk, 9999)
        with self.assertRaises(NotFound):
            services.mark_qr_as_scanned(self.qr_code.qr_token, 9999, self.counter.pk)

    def test_scan_survives_audit_failure(self):
        """Tes: gagal menulis audit scan tidak membatalkan scan."""
        with mock.patch.object(QRCodeScan.objects, 'create', side_effect=DatabaseError("audit table locked")):
            with self.assertLogs('qrcodes.services', level='ERROR'):
                qr_code = self._scan()
        self.assertEqual(qr_code.status, QRCode.STATUS_SCANNED)
        self.assertFalse(QRCodeScan.objects.exists())
        self.qr_code.refresh_from_db()
        self.assertEqual(self.qr_code.status, QRCode.STATUS_SCANNED)


class QRLookupTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant()
        self.order = _order(self.tenant)
        self.qr_code = services.generate_qr_code(self.order.pk)

    def test_lookup_by_order_id_or_token(self):
        self.assertEqual(services.get_qr_code(str(self.order.pk)).pk, self.qr_code.pk)
        self.assertEqual(services.get_qr_code(self.qr_code.qr_token).pk, self.qr_code.pk)
        with self.assertRaises(NotFound):
            services.get_qr_code('tidak-ada')

    def test_token_lookup_ignores_order_id(self):
        self.assertEqual(services.get_qr_code_by_token(self.qr_code.qr_token).pk, self.qr_code.pk)
        with self.assertRaises(NotFound):
            services.get_qr_code_by_token(str(self.order.pk))

    def test_expired_lookup_raises_gone_and_persists(self):
        _push_expiry_back(self.qr_code)
        with self.assertRaises(Gone):
            services.get_qr_code(self.qr_code.qr_token)
        self.qr_code.refresh_from_db()
        self.assertEqual(self.qr_code.status, QRCode.STATUS_EXPIRED)

    def test_validate_token(self):
        result = services.validate_qr_token(self.qr_code.qr_token)
        self.assertTrue(result['valid'])
        self.assertEqual(result['order_number'], self.order.order_number)
        self.assertEqual(services.validate_qr_token('nope'), {'valid': False, 'error': "QR code not found"})

        _push_expiry_back(self.qr_code)
        self.assertFalse(services.validate_qr_token(self.qr_code.qr_token)['valid'])

    def test_statistics(self):
        other = services.generate_qr_code(_order(self.tenant).pk)
        services.deactivate_qr(other.qr_token)
        stats = services.get_qr_statistics()
        self.assertEqual(stats['total'], 2)
        self.assertEqual(stats['active'], 1)
        self.assertEqual(stats['inactive'], 1)
        self.assertEqual(stats['total_scans'], 0)
        self.assertEqual(services.get_qr_statistics(tenant_id=9999)['total'], 0)

    def test_render_png(self):
        png = services.render_qr_png(self.qr_code)
        self.assertTrue(png.startswith(b'\x89PNG'))


class QRCodeAPITests(APITestCase):
    def setUp(self):
        self.tenant = make_tenant()
        self.counter = make_counter()
        self.kasir = make_user('kasir1', 'Kasir')
        self.order = _order(self.tenant)

    def test_generate_and_scan_flow(self):
        self.client.force_authenticate(user=self.kasir)
        response = self.client.post(reverse('generate-qr'), {'order_id': self.order.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        token = response.data['data']['qr_token']

        scan_url = reverse('scan-qr')
        data = {'qr_token': token, 'checkout_counter_id': self.counter.pk}
        response = self.client.post(scan_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'scanned')

        response = self.client.post(scan_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'invalid_state')

    def test_expired_code_returns_410(self):
        qr_code = services.generate_qr_code(self.order.pk)
        _push_expiry_back(qr_code)
        self.client.force_authenticate(user=self.kasir)
        response = self.client.get(reverse('qr-detail', kwargs={'identifier': qr_code.qr_token}))
        self.assertEqual(response.status_code, status.HTTP_410_GONE)
        self.assertEqual(response.data['error']['code'], 'gone')

    def test_image_is_public(self):
        qr_code = services.generate_qr_code(self.order.pk)
        response = self.client.get(reverse('qr-image', kwargs={'token': qr_code.qr_token}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'image/png')

    def test_image_cannot_be_fetched_by_order_id(self):
        """Tes: gambar QR publik hanya bisa diambil dengan token, bukan id order."""
        services.generate_qr_code(self.order.pk)
        response = self.client.get(reverse('qr-image', kwargs={'token': str(self.order.pk)}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_expired_image_returns_410(self):
        qr_code = services.generate_qr_code(self.order.pk)
        _push_expiry_back(qr_code)
        response = self.client.get(reverse('qr-image', kwargs={'token': qr_code.qr_token}))
        self.assertEqual(response.status_code, status.HTTP_410_GONE)
