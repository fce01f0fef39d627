from django.contrib import admin

from .cache import settings_cache
from .models import Setting


@admin.register(Setting)
class SettingAdminSite(admin.ModelAdmin):
  list_display = ('key', 'value', 'data_type', 'updated_by', 'updated_at')
  list_filter = ('data_type',)
  search_fields = ('key', 'description')
  readonly_fields = ('created_at', 'updated_at')

  def save_model(self, request, obj, form, change):
    obj.updated_by = request.user
    super().save_model(request, obj, form, change)
    settings_cache.invalidate(obj.key)

  def delete_model(self, request, obj):
    super().delete_model(request, obj)
    settings_cache.invalidate(obj.key)
