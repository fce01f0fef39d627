import random
import string

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from tenants.models import Tenant


def generate_order_number(tenant_code):
  ts = timezone.localtime().strftime("%y%m%d%H%M%S")
  rand = ''.join(random.choices(string.ascii_uppercase + string.digits, k=4))
  return f"{tenant_code.upper()}-{ts}-{rand}"


class Order(models.Model):
  STATUS_PENDING = 'pending'
  STATUS_PAID = 'paid'
  STATUS_PREPARING = 'preparing'
  STATUS_READY = 'ready'
  STATUS_COMPLETED = 'completed'
  STATUS_CANCELLED = 'cancelled'
  STATUS_CHOICES = [
    (STATUS_PENDING, 'Pending'), (STATUS_PAID, 'Paid'), (STATUS_PREPARING, 'Preparing'),
    (STATUS_READY, 'Ready'), (STATUS_COMPLETED, 'Completed'), (STATUS_CANCELLED, 'Cancelled'),
  ]

  PAYMENT_UNPAID = 'unpaid'
  PAYMENT_PAID = 'paid'
  PAYMENT_REFUNDED = 'refunded'
  PAYMENT_STATUS_CHOICES = [(PAYMENT_UNPAID, 'Unpaid'), (PAYMENT_PAID, 'Paid'), (PAYMENT_REFUNDED, 'Refunded')]

  TYPE_TAKEAWAY = 'takeaway'
  TYPE_DINE_IN = 'dine_in'
  ORDER_TYPE_CHOICES = [(TYPE_TAKEAWAY, 'Takeaway'), (TYPE_DINE_IN, 'Dine-In')]

  order_number = models.CharField(max_length=50, unique=True)
  tenant = models.ForeignKey(Tenant, on_delete=models.PROTECT, related_name='orders')
  customer_name = models.CharField(max_length=100, blank=True)
  customer_phone = models.CharField(max_length=20, blank=True)
  total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
  status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
  payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_UNPAID)
  order_type = models.CharField(max_length=10, choices=ORDER_TYPE_CHOICES, default=TYPE_TAKEAWAY)
  table_number = models.CharField(max_length=10, null=True, blank=True)
  notes = models.TextField(blank=True, default='')
  paid_at = models.DateTimeField(null=True, blank=True)
  ready_at = models.DateTimeField(null=True, blank=True)
  completed_at = models.DateTimeField(null=True, blank=True)
  created_at = models.DateTimeField(auto_now_add=True)
  updated_at = models.DateTimeField(auto_now=True)

  class Meta:
    ordering = ['-created_at']
    indexes = [
      models.Index(fields=['tenant', 'status'], name='order_tenant_status_idx'),
      models.Index(fields=['created_at'], name='order_created_idx'),
    ]

  def __str__(self):
    return f"{self.order_number} ({self.tenant.name})"


class OrderItem(models.Model):
  order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
  item_name = models.CharField(max_length=100)
  quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
  unit_price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
  subtotal = models.DecimalField(max_digits=14, decimal_places=2)
  notes = models.CharField(max_length=255, blank=True, default='')
  created_at = models.DateTimeField(auto_now_add=True)

  class Meta:
    constraints = [
      models.CheckConstraint(condition=models.Q(quantity__gt=0), name='orderitem_quantity_positive'),
      models.CheckConstraint(condition=models.Q(unit_price__gte=0), name='orderitem_unit_price_non_negative'),
    ]

  def __str__(self):
    return f"{self.item_name} x{self.quantity} ({self.order.order_number})"

  def save(self, *args, **kwargs):
    self.subtotal = self.unit_price * self.quantity
    super().save(*args, **kwargs)
