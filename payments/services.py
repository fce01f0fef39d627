"""
Payment processing and refunds.

A charge is a Payment row with a positive amount. A refund never edits or
deletes the charge: it marks it ``refunded`` and inserts a negated
counter-entry. Status guards are conditional updates keyed on the expected
prior status, so two concurrent requests cannot both succeed.
"""
import logging
from decimal import Decimal, InvalidOperation

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone

from common.exceptions import InsufficientAmount, InvalidInput, InvalidState, NotFound
from notifications.emitter import get_emitter
from orders.models import Order
from tenants.models import CheckoutCounter
from .models import Payment, generate_transaction_reference

logger = logging.getLogger(__name__)
security_logger = logging.getLogger('security')

PAYMENT_METHODS = {method for method, _ in Payment.METHOD_CHOICES}
PAYMENT_STATUSES = {status for status, _ in Payment.STATUS_CHOICES}


def _to_amount(value):
    if isinstance(value, bool):
        raise InvalidInput("Amount must be a number")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInput("Amount must be a number")
    if not amount.is_finite():
        raise InvalidInput("Amount must be a number")
    return amount


def _get_order(order_id):
    try:
        return Order.objects.select_related('tenant').get(pk=order_id)
    except Order.DoesNotExist:
        raise NotFound("Order not found")


def process_payment(*, order_id, amount, payment_method, counter_id, kasir_id, details=None, notes='',
                    emitter=None):
    """
    Record a successful charge for an unpaid order and mark the order paid.

    Returns ``{'payment': Payment, 'change': Decimal}``.
    """
    order = _get_order(order_id)

    if payment_method not in PAYMENT_METHODS:
        raise InvalidInput(f"Invalid payment method. Allowed: {', '.join(sorted(PAYMENT_METHODS))}")
    amount = _to_amount(amount)
    if amount <= 0:
        raise InvalidInput("Amount must be greater than zero")
    if amount < order.total_amount:
        raise InsufficientAmount(f"Insufficient payment. Required: {order.total_amount}, Paid: {amount}")

    try:
        counter = CheckoutCounter.objects.get(pk=counter_id)
    except CheckoutCounter.DoesNotExist:
        raise NotFound("Checkout counter not found")
    try:
        kasir = get_user_model().objects.get(pk=kasir_id)
    except get_user_model().DoesNotExist:
        raise NotFound("Kasir not found")

    change = amount - order.total_amount
    now = timezone.now()

    with transaction.atomic():
        updated = (
            Order.objects.filter(pk=order.pk, payment_status=Order.PAYMENT_UNPAID)
            .exclude(status=Order.STATUS_CANCELLED)
            .update(payment_status=Order.PAYMENT_PAID, paid_at=now, updated_at=now)
        )
        if not updated:
            raise InvalidState("Order is already paid or cancelled")

        payment = Payment.objects.create(
            order=order,
            checkout_counter=counter,
            kasir=kasir,
            amount_paid=amount,
            payment_method=payment_method,
            transaction_reference=generate_transaction_reference(),
            status=Payment.STATUS_SUCCESS,
            payment_details=details or {},
            notes=notes or '',
        )
        get_emitter(emitter).payment_processed(payment, change)

    security_logger.info(
        "Payment %s of %s (%s) for order %s by kasir %s at counter %s",
        payment.transaction_reference, amount, payment_method, order.order_number,
        kasir.username, counter.counter_code,
    )
    return {'payment': payment, 'change': change}


def refund_payment(payment_id, reason=None, *, emitter=None):
    with transaction.atomic():
        updated = (
            Payment.objects.filter(pk=payment_id, status=Payment.STATUS_SUCCESS)
            .update(status=Payment.STATUS_REFUNDED, updated_at=timezone.now())
        )
        if not updated:
            if not Payment.objects.filter(pk=payment_id).exists():
                raise NotFound("Payment not found")
            raise InvalidState("Only successful payments can be refunded")

        original = Payment.objects.select_related('order').get(pk=payment_id)
        refund = Payment.objects.create(
            order=original.order,
            checkout_counter_id=original.checkout_counter_id,
            kasir_id=original.kasir_id,
            amount_paid=-original.amount_paid,
            payment_method=original.payment_method,
            transaction_reference=f"REFUND-{generate_transaction_reference()}",
            status=Payment.STATUS_REFUNDED,
            payment_details={
                'refund_reason': reason,
                'original_payment_id': original.pk,
                'original_transaction': original.transaction_reference,
            },
        )
        Order.objects.filter(pk=original.order_id).update(
            payment_status=Order.PAYMENT_REFUNDED, updated_at=timezone.now()
        )
        get_emitter(emitter).payment_refunded(refund, original)

    security_logger.info("Payment %s refunded as %s. Reason: %s",
                         original.transaction_reference, refund.transaction_reference, reason)
    return {
        'refund_id': refund.pk,
        'original_payment_id': original.pk,
        'refund_amount': abs(original.amount_paid),
        'reference': refund.transaction_reference,
        'reason': reason,
    }


def validate_payment_amount(order_id, amount):
    """Read-only sufficiency check; never writes."""
    order = Order.objects.filter(pk=order_id).first()
    if order is None:
        return {'valid': False, 'error': "Order not found"}

    amount = _to_amount(amount)
    if amount < order.total_amount:
        return {
            'valid': False,
            'error': "Insufficient amount",
            'required': order.total_amount,
            'paid': amount,
            'shortfall': order.total_amount - amount,
        }
    return {
        'valid': True,
        'order_total': order.total_amount,
        'paid': amount,
        'change': amount - order.total_amount,
    }


def update_payment_status(payment_id, status):
    if status not in PAYMENT_STATUSES:
        raise InvalidInput(f"Invalid status. Allowed: {', '.join(sorted(PAYMENT_STATUSES))}")
    updated = Payment.objects.filter(pk=payment_id).update(status=status, updated_at=timezone.now())
    if not updated:
        raise NotFound("Payment not found")
    logger.info("Payment %s status set to %s", payment_id, status)
    return Payment.objects.get(pk=payment_id)


def get_payment_statistics(*, date_from=None, date_to=None, payment_method=None, checkout_counter_id=None):
    """Count and sum of successful payments matching the filters, with a per-method breakdown."""
    queryset = Payment.objects.filter(status=Payment.STATUS_SUCCESS)
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)
    if payment_method:
        queryset = queryset.filter(payment_method=payment_method)
    if checkout_counter_id:
        queryset = queryset.filter(checkout_counter_id=checkout_counter_id)

    totals = queryset.aggregate(count=Count('id'), total=Sum('amount_paid'))
    by_method = (
        queryset.order_by()
        .values('payment_method')
        .annotate(count=Count('id'), total=Sum('amount_paid'))
        .order_by('payment_method')
    )
    return {
        'total_transactions': totals['count'],
        'total_amount': totals['total'] or Decimal('0'),
        'by_method': [
            {'payment_method': row['payment_method'], 'count': row['count'], 'total': row['total'] or Decimal('0')}
            for row in by_method
        ],
    }


def get_payment(payment_id):
    try:
        return Payment.objects.select_related('order', 'checkout_counter', 'kasir').get(pk=payment_id)
    except Payment.DoesNotExist:
        raise NotFound("Payment not found")


def get_payments_by_order(order_id):
    if not Order.objects.filter(pk=order_id).exists():
        raise NotFound("Order not found")
    return list(
        Payment.objects.filter(order_id=order_id)
        .select_related('checkout_counter', 'kasir')
        .order_by('-created_at', '-id')
    )
