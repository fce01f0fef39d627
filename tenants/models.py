from decimal import Decimal

from django.conf import settings
from django.db import models


class Tenant(models.Model):
  STATUS_ACTIVE = 'active'
  STATUS_INACTIVE = 'inactive'
  STATUS_CHOICES = [(STATUS_ACTIVE, 'Active'), (STATUS_INACTIVE, 'Inactive')]

  name = models.CharField(max_length=100)
  code = models.CharField(max_length=20, unique=True)
  location = models.CharField(max_length=100, blank=True)
  description = models.TextField(blank=True, null=True)
  phone = models.CharField(max_length=20, blank=True)
  owner_name = models.CharField(max_length=100, blank=True)
  revenue_share_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('97.00'))
  status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
  staff = models.ManyToManyField(settings.AUTH_USER_MODEL, related_name='tenants', blank=True)
  created_at = models.DateTimeField(auto_now_add=True)
  updated_at = models.DateTimeField(auto_now=True)

  class Meta:
    ordering = ['name']

  def __str__(self):
    return f"{self.name} ({self.code})"

  @property
  def is_active(self):
    return self.status == self.STATUS_ACTIVE


class CheckoutCounter(models.Model):
  STATUS_CHOICES = Tenant.STATUS_CHOICES

  counter_name = models.CharField(max_length=100)
  counter_code = models.CharField(max_length=20, unique=True)
  max_kasir = models.PositiveIntegerField(default=3)
  status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=Tenant.STATUS_ACTIVE)
  created_at = models.DateTimeField(auto_now_add=True)

  class Meta:
    ordering = ['counter_code']

  def __str__(self):
    return f"{self.counter_name} ({self.counter_code})"
