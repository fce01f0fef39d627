from django.contrib import admin

from .models import CheckoutCounter, Tenant


@admin.register(Tenant)
class TenantAdminSite(admin.ModelAdmin):
  list_display = ('code', 'name', 'location', 'owner_name', 'revenue_share_percentage', 'status', 'created_at')
  list_filter = ('status',)
  search_fields = ('code', 'name', 'owner_name')
  filter_horizontal = ('staff',)


@admin.register(CheckoutCounter)
class CheckoutCounterAdminSite(admin.ModelAdmin):
  list_display = ('counter_code', 'counter_name', 'max_kasir', 'status')
  list_filter = ('status',)
  search_fields = ('counter_code', 'counter_name')
