from django.db import models

from tenants.models import Tenant


class Settlement(models.Model):
  STATUS_PENDING = 'pending'
  STATUS_COMPLETED = 'completed'
  STATUS_CHOICES = [(STATUS_PENDING, 'Pending'), (STATUS_COMPLETED, 'Completed')]

  tenant = models.ForeignKey(Tenant, on_delete=models.PROTECT, related_name='settlements')
  # Format YYYY-MM
  period_month = models.CharField(max_length=7)
  total_sales = models.DecimalField(max_digits=14, decimal_places=2)
  tenant_share = models.DecimalField(max_digits=14, decimal_places=2)
  operator_share = models.DecimalField(max_digits=14, decimal_places=2)
  platform_share = models.DecimalField(max_digits=14, decimal_places=2)
  bank_account = models.CharField(max_length=100)
  status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
  transfer_id = models.CharField(max_length=100, blank=True, null=True)
  created_at = models.DateTimeField(auto_now_add=True)
  processed_at = models.DateTimeField(null=True, blank=True)

  class Meta:
    ordering = ['-period_month', '-created_at']
    constraints = [
      models.UniqueConstraint(fields=['tenant', 'period_month'], name='settlement_unique_tenant_period'),
    ]

  def __str__(self):
    return f"{self.tenant.code} {self.period_month} ({self.status})"
