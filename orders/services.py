"""
Order lifecycle.

Status moves forward only, through ORDER_TRANSITIONS; ``completed`` and
``cancelled`` are terminal. Every mutation re-reads the order with
``select_for_update`` inside its transaction before checking its status.
"""
import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone

from common.exceptions import InvalidInput, InvalidState, InvalidTransition, NotFound
from notifications.emitter import get_emitter
from payments.models import Payment
from tenants.models import Tenant
from .models import Order, OrderItem, generate_order_number

logger = logging.getLogger(__name__)

ORDER_TRANSITIONS = {
    Order.STATUS_PENDING: {Order.STATUS_PAID, Order.STATUS_CANCELLED},
    Order.STATUS_PAID: {Order.STATUS_PREPARING, Order.STATUS_CANCELLED},
    Order.STATUS_PREPARING: {Order.STATUS_READY, Order.STATUS_CANCELLED},
    Order.STATUS_READY: {Order.STATUS_COMPLETED, Order.STATUS_CANCELLED},
    Order.STATUS_COMPLETED: set(),
    Order.STATUS_CANCELLED: set(),
}

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


def can_transition(current_status, new_status):
    return new_status in ORDER_TRANSITIONS.get(current_status, set())


def _clean_items(items):
    if not items:
        raise InvalidInput("Order must contain at least one item")

    cleaned = []
    for index, item in enumerate(items, start=1):
        name = str(item.get('item_name') or '').strip()
        if not name:
            raise InvalidInput(f"Item {index}: item_name is required")

        quantity = item.get('quantity')
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidInput(f"Item {index}: quantity must be a positive integer")

        try:
            unit_price = Decimal(str(item.get('unit_price')))
        except (InvalidOperation, ValueError):
            raise InvalidInput(f"Item {index}: unit_price must be a number")
        if not unit_price.is_finite() or unit_price < 0:
            raise InvalidInput(f"Item {index}: unit_price must not be negative")

        cleaned.append({
            'item_name': name,
            'quantity': quantity,
            'unit_price': unit_price,
            'subtotal': unit_price * quantity,
            'notes': item.get('notes') or '',
        })
    return cleaned


def _unique_order_number(tenant_code):
    for _ in range(5):
        number = generate_order_number(tenant_code)
        if not Order.objects.filter(order_number=number).exists():
            return number
    raise InvalidState("Could not allocate a unique order number, please retry")


def create_order(*, tenant_id, items, customer_name='', customer_phone='',
                 order_type=Order.TYPE_TAKEAWAY, table_number=None, notes='', emitter=None):
    try:
        tenant = Tenant.objects.get(pk=tenant_id)
    except Tenant.DoesNotExist:
        raise NotFound("Tenant not found")
    if not tenant.is_active:
        raise InvalidState(f"Tenant {tenant.code} is not active")

    if order_type not in dict(Order.ORDER_TYPE_CHOICES):
        raise InvalidInput(f"Invalid order type: {order_type}")

    cleaned = _clean_items(items)
    total_amount = sum((item['subtotal'] for item in cleaned), Decimal('0'))

    with transaction.atomic():
        order = Order.objects.create(
            order_number=_unique_order_number(tenant.code),
            tenant=tenant,
            customer_name=customer_name or '',
            customer_phone=customer_phone or '',
            total_amount=total_amount,
            status=Order.STATUS_PENDING,
            payment_status=Order.PAYMENT_UNPAID,
            order_type=order_type,
            table_number=table_number if order_type == Order.TYPE_DINE_IN else None,
            notes=notes or '',
        )
        OrderItem.objects.bulk_create([OrderItem(order=order, **item) for item in cleaned])
        get_emitter(emitter).order_created(order)

    logger.info("Order created: %s for tenant %s (total %s)", order.order_number, tenant.code, total_amount)
    return order


def update_order_status(order_id, new_status, *, emitter=None):
    with transaction.atomic():
        try:
            order = Order.objects.select_for_update().get(pk=order_id)
        except Order.DoesNotExist:
            raise NotFound("Order not found")

        previous_status = order.status
        if not can_transition(previous_status, new_status):
            raise InvalidTransition(f"Cannot transition from '{previous_status}' to '{new_status}'")

        order.status = new_status
        fields = ['status', 'updated_at']
        if new_status == Order.STATUS_READY:
            order.ready_at = timezone.now()
            fields.append('ready_at')
        elif new_status == Order.STATUS_COMPLETED:
            order.completed_at = timezone.now()
            fields.append('completed_at')
        order.save(update_fields=fields)
        get_emitter(emitter).order_status_changed(order, previous_status, new_status)

    logger.info("Order %s status updated '%s' -> '%s'", order.order_number, previous_status, new_status)
    return order


def cancel_order(order_id, reason=None, *, emitter=None):
    """
    Cancel an order. A paid order gets a refund counter-entry for its latest
    successful payment in the same transaction.
    """
    emitter = get_emitter(emitter)
    refund = original = None

    with transaction.atomic():
        try:
            order = Order.objects.select_for_update().get(pk=order_id)
        except Order.DoesNotExist:
            raise NotFound("Order not found")

        if order.status == Order.STATUS_COMPLETED:
            raise InvalidState("Cannot cancel completed order")
        if order.status == Order.STATUS_CANCELLED:
            raise InvalidState("Order is already cancelled")

        was_paid = order.payment_status == Order.PAYMENT_PAID
        order.status = Order.STATUS_CANCELLED
        order.payment_status = Order.PAYMENT_REFUNDED
        order.save(update_fields=['status', 'payment_status', 'updated_at'])

        if was_paid:
            original = (
                Payment.objects.select_for_update()
                .filter(order=order, status=Payment.STATUS_SUCCESS)
                .order_by('-created_at', '-id')
                .first()
            )
            if original is not None:
                refund = Payment.objects.create(
                    order=order,
                    checkout_counter=original.checkout_counter,
                    kasir=original.kasir,
                    amount_paid=-original.amount_paid,
                    payment_method=original.payment_method,
                    transaction_reference=f"REFUND-{original.transaction_reference}",
                    status=Payment.STATUS_REFUNDED,
                    payment_details={
                        'refund_reason': reason,
                        'original_transaction': original.transaction_reference,
                        'original_payment_id': original.pk,
                    },
                )
                original.status = Payment.STATUS_REFUNDED
                original.save(update_fields=['status', 'updated_at'])

        refund_amount = order.total_amount if was_paid else Decimal('0')
        emitter.order_cancelled(order, refund_amount, reason)
        if refund is not None:
            emitter.payment_refunded(refund, original)

    logger.info("Order %s cancelled. Reason: %s", order.order_number, reason)
    return {'order_id': order.pk, 'refund_amount': refund_amount}


def list_orders(*, status=None, tenant_id=None, payment_status=None, order_type=None,
                date_from=None, date_to=None, limit=DEFAULT_PAGE_SIZE, offset=0, tenant_ids=None):
    """
    Filtered, paginated orders, newest first. ``total`` counts every match
    before pagination. ``tenant_ids`` restricts the result to those tenants.
    """
    if limit is None:
        limit = DEFAULT_PAGE_SIZE
    if offset is None:
        offset = 0
    if limit < 1:
        raise InvalidInput("limit must be at least 1")
    if offset < 0:
        raise InvalidInput("offset must not be negative")
    limit = min(limit, MAX_PAGE_SIZE)

    queryset = Order.objects.select_related('tenant')
    if tenant_ids is not None:
        queryset = queryset.filter(tenant_id__in=tenant_ids)
    if status:
        queryset = queryset.filter(status=status)
    if tenant_id:
        queryset = queryset.filter(tenant_id=tenant_id)
    if payment_status:
        queryset = queryset.filter(payment_status=payment_status)
    if order_type:
        queryset = queryset.filter(order_type=order_type)
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    total = queryset.count()
    orders = list(queryset.order_by('-created_at', '-id')[offset:offset + limit])
    return {'orders': orders, 'total': total, 'limit': limit, 'offset': offset}


def get_order(order_id):
    """Order with its items, QR code (if any) and latest payment attached as ``latest_payment``."""
    try:
        order = (
            Order.objects.select_related('tenant')
            .prefetch_related('items')
            .get(pk=order_id)
        )
    except Order.DoesNotExist:
        raise NotFound("Order not found")
    order.latest_payment = order.payments.order_by('-created_at', '-id').first()
    return order


def get_orders_by_tenant(tenant_id, status=None):
    if not Tenant.objects.filter(pk=tenant_id).exists():
        raise NotFound("Tenant not found")
    queryset = Order.objects.filter(tenant_id=tenant_id).prefetch_related('items')
    if status:
        queryset = queryset.filter(status=status)
    return list(queryset.order_by('-created_at', '-id'))
