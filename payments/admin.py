from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdminSite(admin.ModelAdmin):
  list_display = ('transaction_reference', 'order', 'amount_paid', 'payment_method', 'status', 'kasir', 'checkout_counter', 'created_at')
  list_filter = ('status', 'payment_method', 'checkout_counter')
  readonly_fields = ('transaction_reference', 'amount_paid', 'created_at', 'updated_at')
  search_fields = ('transaction_reference', 'order__order_number')
