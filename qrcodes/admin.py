from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html

from .models import QRCode, QRCodeScan


@admin.register(QRCode)
class QRCodeAdminSite(admin.ModelAdmin):
  list_display = ('qr_token', 'order', 'status', 'scan_count', 'expires_at', 'qr_image_link')
  list_filter = ('status',)
  readonly_fields = ('qr_token', 'qr_data', 'scan_count', 'scanned_at', 'scanned_by', 'checkout_counter', 'created_at')
  search_fields = ('qr_token', 'order__order_number')

  @admin.display(description='QR Code')
  def qr_image_link(self, obj):
    url = reverse('qr-image', args=[obj.qr_token])
    return format_html('<a href="{}" target="_blank">Lihat QR</a>', url)


@admin.register(QRCodeScan)
class QRCodeScanAdminSite(admin.ModelAdmin):
  list_display = ('qr', 'order', 'scanned_by', 'checkout_counter', 'scanned_at')
  list_filter = ('checkout_counter',)
