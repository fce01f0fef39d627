from django.contrib.auth.models import Group
from django.core.management import call_command
from django.test import RequestFactory, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.test import APITestCase

from common.testing import make_tenant, make_user
from .permissions import (
    ROLE_GROUPS, IsAdminUser, IsKasirUser, IsPengelolaUser, IsTenantStaff, staff_tenant_ids,
)


class SeedRolesCommandTests(TestCase):
    def test_creates_every_role_once(self):
        """Tes: seed_roles membuat semua grup dan aman dijalankan ulang."""
        call_command('seed_roles', verbosity=0)
        call_command('seed_roles', verbosity=0)
        self.assertEqual(sorted(Group.objects.values_list('name', flat=True)), sorted(ROLE_GROUPS))


class RolePermissionTests(TestCase):
    """
    Tes untuk permission berbasis grup: Admin, Pengelola, Kasir, Tenant.
    """
    def setUp(self):
        self.factory = RequestFactory()
        self.tenant = make_tenant()
        self.admin = make_user('admin', 'Admin')
        self.pengelola = make_user('pengelola', 'Pengelola')
        self.kasir = make_user('kasir', 'Kasir')
        self.owner = make_user('pemilik', 'Tenant')
        self.stranger = make_user('tamu')
        self.tenant.staff.add(self.owner)

    def _allowed(self, permission, user):
        request = self.factory.get('/')
        request.user = user
        return permission().has_permission(request, None)

    def test_admin_passes_every_role_check(self):
        """Tes: Admin lolos semua pengecekan role."""
        for permission in (IsAdminUser, IsPengelolaUser, IsKasirUser, IsTenantStaff):
            self.assertTrue(self._allowed(permission, self.admin))

    def test_django_staff_flag_counts_as_admin(self):
        superuser = make_user('root', is_staff=True)
        self.assertTrue(self._allowed(IsAdminUser, superuser))

    def test_roles_do_not_overlap(self):
        self.assertFalse(self._allowed(IsAdminUser, self.pengelola))
        self.assertFalse(self._allowed(IsKasirUser, self.pengelola))
        self.assertFalse(self._allowed(IsPengelolaUser, self.kasir))
        self.assertFalse(self._allowed(IsKasirUser, self.owner))

    def test_user_without_role_is_rejected(self):
        """Tes: pengguna tanpa grup tidak punya akses apa pun."""
        for permission in (IsAdminUser, IsPengelolaUser, IsKasirUser, IsTenantStaff):
            self.assertFalse(self._allowed(permission, self.stranger))

    def test_tenant_object_permission(self):
        other = make_tenant(code='BKS', name='Bakso Pak Kumis')
        request = self.factory.get('/')
        request.user = self.owner
        permission = IsTenantStaff()
        self.assertTrue(permission.has_object_permission(request, None, self.tenant))
        self.assertFalse(permission.has_object_permission(request, None, other))

        request.user = self.kasir
        self.assertTrue(permission.has_object_permission(request, None, other))

    def test_staff_tenant_ids(self):
        self.assertIsNone(staff_tenant_ids(self.pengelola))
        self.assertEqual(staff_tenant_ids(self.owner), [self.tenant.pk])
        self.assertEqual(staff_tenant_ids(self.stranger), [])


class TokenAuthenticationTests(APITestCase):
    def test_token_header_authenticates(self):
        """Tes: token DRF diterima lewat header Authorization."""
        kasir = make_user('kasir', 'Kasir')
        token = Token.objects.create(user=kasir)
        self.client.credentials(HTTP_AUTHORIZATION='Token ' + token.key)
        response = self.client.get(reverse('counter-list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_invalid_token_is_rejected(self):
        self.client.credentials(HTTP_AUTHORIZATION='Token salah')
        response = self.client.get(reverse('counter-list'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['error']['code'], 'authentication_failed')
