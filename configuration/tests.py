from decimal import Decimal

from django.core.management import call_command
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from common.exceptions import InvalidInput, NotFound
from common.testing import make_user
from . import services
from .cache import settings_cache
from .models import Setting
from .values import SettingType, parse_value, validate_value


class SettingValueTests(SimpleTestCase):
    def test_number(self):
        self.assertEqual(validate_value(SettingType.NUMBER, 12.5), '12.5')
        self.assertEqual(parse_value(SettingType.NUMBER, '12.5'), Decimal('12.5'))
        for bad in ('dua belas', True, 'NaN', 'Infinity'):
            with self.assertRaises(InvalidInput):
                validate_value(SettingType.NUMBER, bad)

    def test_boolean(self):
        self.assertEqual(validate_value(SettingType.BOOLEAN, True), 'true')
        self.assertEqual(validate_value(SettingType.BOOLEAN, 'false'), 'false')
        self.assertIs(parse_value(SettingType.BOOLEAN, 'true'), True)
        with self.assertRaises(InvalidInput):
            validate_value(SettingType.BOOLEAN, 'yes')

    def test_json(self):
        self.assertEqual(parse_value(SettingType.JSON, validate_value(SettingType.JSON, {'a': [1, 2]})), {'a': [1, 2]})
        with self.assertRaises(InvalidInput):
            validate_value(SettingType.JSON, '{bukan json')

    def test_unknown_type(self):
        with self.assertRaises(InvalidInput):
            validate_value('date', '2024-01-01')


class SettingServiceTests(TestCase):
    def setUp(self):
        self.admin = make_user('admin', 'Admin')

    def test_create_and_get(self):
        services.create_setting(key='max_tables', value=40, data_type=SettingType.NUMBER, user=self.admin)
        setting = services.get_setting('max_tables')
        self.assertEqual(setting['value'], Decimal('40'))
        self.assertEqual(setting['type'], 'number')
        self.assertIn('max_tables', services.get_all_settings())

    def test_duplicate_key_rejected(self):
        services.create_setting(key='promo', value='Ramadhan')
        with self.assertRaises(InvalidInput):
            services.create_setting(key='promo', value='Lebaran')

    def test_invalid_value_for_type(self):
        with self.assertRaises(InvalidInput):
            services.create_setting(key='max_tables', value='banyak', data_type=SettingType.NUMBER)
        self.assertFalse(Setting.objects.exists())

    def test_missing_setting(self):
        with self.assertRaises(NotFound):
            services.get_setting('tidak_ada')
        with self.assertRaises(NotFound):
            services.update_setting('tidak_ada', value='x')
        with self.assertRaises(NotFound):
            services.delete_setting('tidak_ada')

    def test_write_is_visible_on_next_read(self):
        services.create_setting(key='business_name', value='Food Court Lama')
        self.assertEqual(settings_cache.get('business_name'), 'Food Court Lama')
        self.assertEqual(services.get_general_settings()['business_name'], 'Food Court Lama')

        services.update_setting('business_name', value='Food Court Baru', user=self.admin)
        self.assertEqual(settings_cache.get('business_name'), 'Food Court Baru')
        self.assertEqual(services.get_general_settings()['business_name'], 'Food Court Baru')

        services.delete_setting('business_name')
        self.assertIsNone(settings_cache.get('business_name'))

    def test_revenue_defaults(self):
        self.assertEqual(services.get_revenue_settings(), {
            'tenant_percentage': Decimal('97'),
            'pengelola_percentage': Decimal('2'),
            'system_percentage': Decimal('1'),
        })

    def test_revenue_update(self):
        result = services.update_revenue_settings(
            tenant_percentage='95.5', pengelola_percentage='3', system_percentage='1.5', user=self.admin,
        )
        self.assertEqual(result['total'], Decimal('100'))
        self.assertEqual(services.get_revenue_settings()['tenant_percentage'], Decimal('95.5'))
        self.assertEqual(Setting.objects.get(key='revenue_tenant_percentage').updated_by, self.admin)

    def test_revenue_must_sum_to_100(self):
        with self.assertRaises(InvalidInput):
            services.update_revenue_settings(tenant_percentage=97, pengelola_percentage=2, system_percentage=2)
        with self.assertRaises(InvalidInput):
            services.update_revenue_settings(tenant_percentage=101, pengelola_percentage=0, system_percentage=-1)
        self.assertFalse(Setting.objects.exists())

    def test_revenue_sum_tolerance(self):
        services.update_revenue_settings(tenant_percentage='96.995', pengelola_percentage=2, system_percentage=1)
        self.assertEqual(services.get_revenue_settings()['tenant_percentage'], Decimal('96.995'))

    def test_general_and_notification_groups(self):
        general = services.update_general_settings({'qr_expiry_hours': 6, 'business_name': 'Kantin Pusat'})
        self.assertEqual(general['qr_expiry_hours'], Decimal('6'))
        self.assertEqual(general['timezone'], 'Asia/Jakarta')
        self.assertEqual(services.get_qr_expiry_hours(), 6)

        notifications = services.update_notification_settings({'notify_on_refund': True})
        self.assertIs(notifications['notify_on_refund'], True)
        self.assertIs(notifications['sms_notifications'], False)

        with self.assertRaises(InvalidInput):
            services.update_general_settings({'warna_tema': 'biru'})

    def test_qr_expiry_must_be_positive_whole_hours(self):
        """Tes: qr_expiry_hours pecahan, nol, atau negatif ditolak di semua jalur update."""
        for bad in ('0.5', 0, -3, '1.5'):
            with self.assertRaises(InvalidInput):
                services.update_general_settings({'qr_expiry_hours': bad})
        self.assertFalse(Setting.objects.filter(key='qr_expiry_hours').exists())

        services.initialize_default_settings()
        with self.assertRaises(InvalidInput):
            services.update_setting('qr_expiry_hours', value='0.5')
        self.assertEqual(services.get_qr_expiry_hours(), 24)

        services.update_setting('qr_expiry_hours', value='48')
        self.assertEqual(services.get_qr_expiry_hours(), 48)

    def test_qr_expiry_rejected_on_create(self):
        with self.assertRaises(InvalidInput):
            services.create_setting(key='qr_expiry_hours', value='0.5', data_type=SettingType.NUMBER)
        with self.assertRaises(InvalidInput):
            services.create_setting(key='qr_expiry_hours', value='satu hari')
        self.assertFalse(Setting.objects.exists())

    def test_init_settings_command_is_idempotent(self):
        call_command('init_settings', verbosity=0)
        self.assertEqual(Setting.objects.count(), len(services.DEFAULT_SETTINGS))
        self.assertEqual(services.initialize_default_settings(), [])
        self.assertIs(services.get_notification_settings()['email_notifications'], True)


class SettingsAPITests(APITestCase):
    def setUp(self):
        self.admin = make_user('admin', 'Admin')
        self.pengelola = make_user('pengelola', 'Pengelola')

    def test_pengelola_reads_but_cannot_write(self):
        self.client.force_authenticate(user=self.pengelola)
        url = reverse('settings-revenue')
        self.assertEqual(self.client.get(url).status_code, status.HTTP_200_OK)
        data = {'tenant_percentage': 90, 'pengelola_percentage': 8, 'system_percentage': 2}
        self.assertEqual(self.client.put(url, data, format='json').status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_updates_revenue_split(self):
        self.client.force_authenticate(user=self.admin)
        data = {'tenant_percentage': 90, 'pengelola_percentage': 8, 'system_percentage': 2}
        response = self.client.put(reverse('settings-revenue'), data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['total'], Decimal('100'))

    def test_bad_split_returns_error_envelope(self):
        self.client.force_authenticate(user=self.admin)
        data = {'tenant_percentage': 90, 'pengelola_percentage': 8, 'system_percentage': 5}
        response = self.client.put(reverse('settings-revenue'), data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'invalid_input')
