from django.conf import settings
from django.db import models

from .values import SettingType, parse_value


class Setting(models.Model):
  key = models.CharField(max_length=100, unique=True)
  value = models.TextField(blank=True, default='')
  data_type = models.CharField(max_length=10, choices=SettingType.choices, default=SettingType.STRING)
  description = models.TextField(blank=True, default='')
  updated_by = models.ForeignKey(
    settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
  )
  created_at = models.DateTimeField(auto_now_add=True)
  updated_at = models.DateTimeField(auto_now=True)

  class Meta:
    ordering = ['key']

  def __str__(self):
    return self.key

  @property
  def parsed_value(self):
    return parse_value(self.data_type, self.value)
