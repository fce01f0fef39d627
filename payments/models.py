import random
import string

from django.conf import settings
from django.db import models
from django.utils import timezone

from orders.models import Order
from tenants.models import CheckoutCounter


def generate_transaction_reference():
  epoch_ms = int(timezone.now().timestamp() * 1000)
  rand = ''.join(random.choices(string.ascii_uppercase + string.digits, k=6))
  return f"PAY-{epoch_ms}-{rand}"


class Payment(models.Model):
  METHOD_CASH = 'cash'
  METHOD_CARD = 'card'
  METHOD_E_WALLET = 'e_wallet'
  METHOD_QRIS = 'qris'
  METHOD_CHOICES = [(METHOD_CASH, 'Cash'), (METHOD_CARD, 'Card'), (METHOD_E_WALLET, 'E-Wallet'), (METHOD_QRIS, 'QRIS')]

  STATUS_PENDING = 'pending'
  STATUS_SUCCESS = 'success'
  STATUS_FAILED = 'failed'
  STATUS_REFUNDED = 'refunded'
  STATUS_CHOICES = [
    (STATUS_PENDING, 'Pending'), (STATUS_SUCCESS, 'Success'),
    (STATUS_FAILED, 'Failed'), (STATUS_REFUNDED, 'Refunded'),
  ]

  order = models.ForeignKey(Order, on_delete=models.PROTECT, related_name='payments')
  checkout_counter = models.ForeignKey(
    CheckoutCounter, on_delete=models.PROTECT, null=True, blank=True, related_name='payments'
  )
  kasir = models.ForeignKey(
    settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='payments'
  )
  # Negatif untuk entri refund
  amount_paid = models.DecimalField(max_digits=14, decimal_places=2)
  payment_method = models.CharField(max_length=20, choices=METHOD_CHOICES)
  transaction_reference = models.CharField(max_length=100, unique=True)
  status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
  payment_details = models.JSONField(default=dict, blank=True)
  notes = models.TextField(blank=True, default='')
  created_at = models.DateTimeField(auto_now_add=True)
  updated_at = models.DateTimeField(auto_now=True)

  class Meta:
    ordering = ['-created_at', '-id']
    indexes = [
      models.Index(fields=['status', 'created_at'], name='payment_status_created_idx'),
    ]

  def __str__(self):
    return f"{self.transaction_reference} ({self.amount_paid})"

  @property
  def is_refund(self):
    return self.amount_paid < 0
