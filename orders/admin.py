from django.contrib import admin

from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
  model = OrderItem
  extra = 0
  readonly_fields = ('item_name', 'quantity', 'unit_price', 'subtotal', 'notes')
  can_delete = False


@admin.register(Order)
class OrderAdminSite(admin.ModelAdmin):
  list_display = ('order_number', 'tenant', 'customer_name', 'status', 'payment_status', 'order_type', 'total_amount', 'created_at')
  list_filter = ('status', 'payment_status', 'order_type', 'tenant')
  readonly_fields = ('order_number', 'total_amount', 'created_at', 'paid_at', 'ready_at', 'completed_at')
  search_fields = ('order_number', 'customer_name', 'customer_phone')
  inlines = [OrderItemInline]
