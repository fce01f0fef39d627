"""Fixtures shared by the app test suites."""
from django.contrib.auth.models import Group, User

from notifications.emitter import EventEmitter
from tenants.models import CheckoutCounter, Tenant


class RecordingEmitter(EventEmitter):
    """Emitter that only records (event, args) pairs."""

    def __init__(self):
        self.events = []

    def names(self):
        return [name for name, _ in self.events]

    def order_created(self, order):
        self.events.append(('order_created', (order,)))

    def order_status_changed(self, order, previous_status, new_status):
        self.events.append(('order_status_changed', (order, previous_status, new_status)))

    def order_cancelled(self, order, refund_amount, reason=None):
        self.events.append(('order_cancelled', (order, refund_amount, reason)))

    def payment_processed(self, payment, change):
        self.events.append(('payment_processed', (payment, change)))

    def payment_refunded(self, refund, original):
        self.events.append(('payment_refunded', (refund, original)))

    def qr_scanned(self, qr_code):
        self.events.append(('qr_scanned', (qr_code,)))


def make_tenant(code='WRG', name='Warung Seblak', **extra):
    return Tenant.objects.create(code=code, name=name, **extra)


def make_counter(code='K01', name='Kasir 1'):
    return CheckoutCounter.objects.create(counter_code=code, counter_name=name)


def make_user(username, group=None, **extra):
    user = User.objects.create_user(username=username, password='rahasia123', **extra)
    if group:
        role, _ = Group.objects.get_or_create(name=group)
        user.groups.add(role)
    return user
