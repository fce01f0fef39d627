from django.contrib import admin

from .models import Settlement


@admin.register(Settlement)
class SettlementAdminSite(admin.ModelAdmin):
  list_display = ('tenant', 'period_month', 'total_sales', 'tenant_share', 'operator_share', 'platform_share', 'status', 'transfer_id')
  list_filter = ('status', 'period_month')
  readonly_fields = ('total_sales', 'tenant_share', 'operator_share', 'platform_share', 'created_at', 'processed_at')
  search_fields = ('tenant__name', 'tenant__code', 'transfer_id')
