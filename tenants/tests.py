from decimal import Decimal

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from common.testing import make_counter, make_tenant, make_user
from .models import CheckoutCounter, Tenant


class TenantAPITests(APITestCase):
    """
    Tes untuk endpoint tenant: daftar, detail, dan pengelolaan oleh Pengelola.
    """
    def setUp(self):
        self.tenant = make_tenant()
        self.other = make_tenant(code='BKS', name='Bakso Pak Kumis')
        self.pengelola = make_user('pengelola', 'Pengelola')
        self.kasir = make_user('kasir', 'Kasir')
        self.owner = make_user('pemilik', 'Tenant')
        self.tenant.staff.add(self.owner)
        self.list_url = reverse('tenant-list')

    def test_pengelola_creates_tenant(self):
        """Tes: Pengelola membuat tenant baru, kode disimpan huruf besar."""
        self.client.force_authenticate(user=self.pengelola)
        data = {'name': 'Es Teh Manis', 'code': 'est', 'location': 'Blok C'}
        response = self.client.post(self.list_url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['data']['code'], 'EST')
        self.assertEqual(Decimal(response.data['data']['revenue_share_percentage']), Decimal('97.00'))

    def test_kasir_cannot_create_tenant(self):
        self.client.force_authenticate(user=self.kasir)
        response = self.client.post(self.list_url, {'name': 'X', 'code': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(Tenant.objects.count(), 2)

    def test_owner_only_sees_own_tenant(self):
        """Tes: staf tenant hanya melihat tenant tempat dia terdaftar."""
        self.client.force_authenticate(user=self.owner)
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['code'] for row in response.data['data']], ['WRG'])

        detail = reverse('tenant-detail', kwargs={'pk': self.other.pk})
        self.assertEqual(self.client.get(detail).status_code, status.HTTP_404_NOT_FOUND)

    def test_filter_by_status(self):
        self.other.status = Tenant.STATUS_INACTIVE
        self.other.save()
        self.client.force_authenticate(user=self.pengelola)
        response = self.client.get(self.list_url, {'status': 'active'})
        self.assertEqual([row['code'] for row in response.data['data']], ['WRG'])

    def test_invalid_share_percentage(self):
        self.client.force_authenticate(user=self.pengelola)
        url = reverse('tenant-detail', kwargs={'pk': self.tenant.pk})
        response = self.client.patch(url, {'revenue_share_percentage': '120'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('revenue_share_percentage', response.data['error']['fields'])


class CheckoutCounterAPITests(APITestCase):
    def setUp(self):
        self.pengelola = make_user('pengelola', 'Pengelola')
        self.kasir = make_user('kasir', 'Kasir')
        make_counter()

    def test_kasir_lists_counters(self):
        self.client.force_authenticate(user=self.kasir)
        response = self.client.get(reverse('counter-list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data'][0]['counter_code'], 'K01')

    def test_only_pengelola_adds_counters(self):
        self.client.force_authenticate(user=self.kasir)
        data = {'counter_name': 'Kasir 2', 'counter_code': 'K02'}
        self.assertEqual(self.client.post(reverse('counter-list'), data, format='json').status_code,
                         status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.pengelola)
        self.assertEqual(self.client.post(reverse('counter-list'), data, format='json').status_code,
                         status.HTTP_201_CREATED)
        self.assertEqual(CheckoutCounter.objects.count(), 2)
