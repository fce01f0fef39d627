from django.conf import settings
from django.db import models

from orders.models import Order
from tenants.models import CheckoutCounter


class QRCode(models.Model):
  STATUS_ACTIVE = 'active'
  STATUS_SCANNED = 'scanned'
  STATUS_EXPIRED = 'expired'
  STATUS_INACTIVE = 'inactive'
  STATUS_CHOICES = [
    (STATUS_ACTIVE, 'Active'), (STATUS_SCANNED, 'Scanned'),
    (STATUS_EXPIRED, 'Expired'), (STATUS_INACTIVE, 'Inactive'),
  ]

  order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name='qr_code')
  qr_token = models.CharField(max_length=64, unique=True)
  qr_data = models.JSONField(default=dict, blank=True)
  status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
  scan_count = models.PositiveIntegerField(default=0)
  scanned_at = models.DateTimeField(null=True, blank=True)
  scanned_by = models.ForeignKey(
    settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='scanned_qr_codes'
  )
  checkout_counter = models.ForeignKey(
    CheckoutCounter, on_delete=models.SET_NULL, null=True, blank=True, related_name='scanned_qr_codes'
  )
  expires_at = models.DateTimeField()
  created_at = models.DateTimeField(auto_now_add=True)

  class Meta:
    ordering = ['-created_at']

  def __str__(self):
    return f"QR {self.qr_token[:8]}... ({self.order.order_number})"

  def is_expired(self, now):
    return now > self.expires_at

  @property
  def qr_url(self):
    return f"{settings.APP_URL.rstrip('/')}/qr/{self.qr_token}"


class QRCodeScan(models.Model):
  qr = models.ForeignKey(QRCode, on_delete=models.CASCADE, related_name='scans')
  order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='qr_scans')
  scanned_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
  checkout_counter = models.ForeignKey(CheckoutCounter, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
  scanned_at = models.DateTimeField()

  class Meta:
    ordering = ['-scanned_at']

  def __str__(self):
    return f"Scan {self.qr_id} @ {self.scanned_at:%Y-%m-%d %H:%M}"
