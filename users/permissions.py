from rest_framework import permissions

ADMIN_GROUP = 'Admin'
PENGELOLA_GROUP = 'Pengelola'
KASIR_GROUP = 'Kasir'
TENANT_GROUP = 'Tenant'

ROLE_GROUPS = [ADMIN_GROUP, PENGELOLA_GROUP, KASIR_GROUP, TENANT_GROUP]


def user_in_groups(user, *names):
    """True untuk superuser/staff, atau jika user ada di salah satu grup."""
    if not user or not user.is_authenticated:
        return False
    if getattr(user, 'is_staff', False):
        return True
    return user.groups.filter(name__in=names).exists()


class IsAdminUser(permissions.BasePermission):
    """Hanya memperbolehkan akses ke Admin (Grup 'Admin' ATAU Superuser/is_staff)."""
    def has_permission(self, request, view):
        return user_in_groups(request.user, ADMIN_GROUP)


class IsPengelolaUser(permissions.BasePermission):
    """Admin atau Pengelola (operator food court)."""
    def has_permission(self, request, view):
        return user_in_groups(request.user, ADMIN_GROUP, PENGELOLA_GROUP)


class IsKasirUser(permissions.BasePermission):
    """Hanya memperbolehkan akses ke Kasir atau Admin/Staff."""
    def has_permission(self, request, view):
        return user_in_groups(request.user, ADMIN_GROUP, KASIR_GROUP)


class IsTenantStaff(permissions.BasePermission):
    """
    Izin untuk Admin, Pengelola, atau staf yang terdaftar
    di tenant pemilik objek.
    """
    message = "Anda tidak memiliki izin untuk mengakses data dari tenant ini."

    def has_permission(self, request, view):
        return user_in_groups(request.user, ADMIN_GROUP, PENGELOLA_GROUP, KASIR_GROUP, TENANT_GROUP)

    def has_object_permission(self, request, view, obj):
        if user_in_groups(request.user, ADMIN_GROUP, PENGELOLA_GROUP, KASIR_GROUP):
            return True
        tenant_id = getattr(obj, 'tenant_id', None)
        if tenant_id is None:
            tenant_id = getattr(obj, 'pk', None)
        return request.user.tenants.filter(pk=tenant_id).exists()


def staff_tenant_ids(user):
    """Tenant yang boleh dilihat user; None berarti semua tenant."""
    if user_in_groups(user, ADMIN_GROUP, PENGELOLA_GROUP, KASIR_GROUP):
        return None
    return list(user.tenants.values_list('pk', flat=True))
