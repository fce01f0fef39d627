"""
Revenue split and tenant settlements.

Each share is rounded half-up to a whole currency unit on its own. The three
rounded shares are not forced to add back up to the total: a difference of
one unit is possible and is left as is.
"""
import logging
import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import IntegrityError, transaction
from django.db.models import Count, Sum
from django.utils import timezone

from common.exceptions import InvalidInput, InvalidState, NotFound
from configuration.services import get_revenue_settings
from payments.models import Payment
from tenants.models import Tenant
from .models import Settlement

logger = logging.getLogger(__name__)

MONTH_RE = re.compile(r'^(\d{4})-(0[1-9]|1[0-2])$')
WHOLE_UNIT = Decimal('1')
ZERO = Decimal('0')

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50


def _decimal(value, name):
    if isinstance(value, bool):
        raise InvalidInput(f"{name} must be a number")
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"{name} must be a number")
    if not number.is_finite():
        raise InvalidInput(f"{name} must be a number")
    return number


def _share(total, percentage):
    return (total * percentage / 100).quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


def split(total_amount, tenant_pct, operator_pct, platform_pct):
    """
    Pure split of ``total_amount`` into tenant, operator (pengelola) and
    platform shares.

    >>> split(100000, 97, 2, 1)['tenant']
    Decimal('97000')
    """
    total = _decimal(total_amount, 'total_amount')
    if total <= 0:
        raise InvalidInput("Total amount must be greater than 0")
    tenant_pct = _decimal(tenant_pct, 'tenant_pct')
    operator_pct = _decimal(operator_pct, 'operator_pct')
    platform_pct = _decimal(platform_pct, 'platform_pct')
    return {
        'total_amount': total,
        'tenant': _share(total, tenant_pct),
        'operator': _share(total, operator_pct),
        'platform': _share(total, platform_pct),
        'percentages': {
            'tenant': tenant_pct,
            'operator': operator_pct,
            'platform': platform_pct,
        },
    }


def calculate_revenue_split(total_amount, tenant_pct=None, operator_pct=None, platform_pct=None):
    """``split`` with any missing percentage taken from the revenue settings."""
    if None in (tenant_pct, operator_pct, platform_pct):
        configured = get_revenue_settings()
        if tenant_pct is None:
            tenant_pct = configured['tenant_percentage']
        if operator_pct is None:
            operator_pct = configured['pengelola_percentage']
        if platform_pct is None:
            platform_pct = configured['system_percentage']
    return split(total_amount, tenant_pct, operator_pct, platform_pct)


def _period_shares(total_sales):
    # Periode tanpa penjualan: semua bagian nol, split tidak dipanggil.
    if total_sales <= 0:
        return {'tenant_share': ZERO, 'operator_share': ZERO, 'platform_share': ZERO}
    result = calculate_revenue_split(total_sales)
    return {
        'tenant_share': result['tenant'],
        'operator_share': result['operator'],
        'platform_share': result['platform'],
    }


def parse_month(month):
    """'YYYY-MM' -> (start, end) aware datetimes covering that month."""
    match = MONTH_RE.match(str(month or ''))
    if not match:
        raise InvalidInput("Month must use the YYYY-MM format")
    year, month_number = int(match.group(1)), int(match.group(2))
    start = timezone.make_aware(datetime(year, month_number, 1))
    if month_number == 12:
        end = timezone.make_aware(datetime(year + 1, 1, 1))
    else:
        end = timezone.make_aware(datetime(year, month_number + 1, 1))
    return start, end


def _year_range(year):
    try:
        year = int(year)
    except (TypeError, ValueError):
        raise InvalidInput("Year must be a number")
    if year < 1 or year > 9998:
        raise InvalidInput("Year is out of range")
    return timezone.make_aware(datetime(year, 1, 1)), timezone.make_aware(datetime(year + 1, 1, 1))


def _successful_payments(month=None, year=None):
    queryset = Payment.objects.filter(status=Payment.STATUS_SUCCESS)
    if month:
        start, end = parse_month(month)
    elif year:
        start, end = _year_range(year)
    else:
        return queryset
    return queryset.filter(created_at__gte=start, created_at__lt=end)


def _totals(queryset):
    result = queryset.aggregate(
        total=Sum('amount_paid'),
        transactions=Count('id', distinct=True),
        orders=Count('order', distinct=True),
    )
    return result['total'] or ZERO, result['transactions'], result['orders']


def _get_tenant(tenant_id):
    try:
        return Tenant.objects.get(pk=tenant_id)
    except Tenant.DoesNotExist:
        raise NotFound("Tenant not found")


def get_tenant_revenue(tenant_id, month=None, year=None):
    tenant = _get_tenant(tenant_id)
    total_sales, transactions, orders = _totals(_successful_payments(month, year).filter(order__tenant=tenant))
    return {
        'tenant_id': tenant.pk,
        'tenant_name': tenant.name,
        'period': month or (str(year) if year else 'all-time'),
        'total_sales': total_sales,
        'transaction_count': transactions,
        'order_count': orders,
        **_period_shares(total_sales),
    }


def get_system_revenue(month=None, year=None):
    total_sales, transactions, orders = _totals(_successful_payments(month, year))
    shares = _period_shares(total_sales)
    return {
        'period': month or (str(year) if year else 'all-time'),
        'total_sales': total_sales,
        'transaction_count': transactions,
        'order_count': orders,
        'system_revenue': shares['platform_share'],
        'all_tenants_share': shares['tenant_share'] + shares['operator_share'],
        **shares,
    }


def get_revenue_by_method(month=None):
    rows = (
        _successful_payments(month).order_by()
        .values('payment_method')
        .annotate(total_amount=Sum('amount_paid'), transaction_count=Count('id'))
        .order_by('payment_method')
    )
    return [
        {
            'payment_method': row['payment_method'],
            'total_amount': row['total_amount'] or ZERO,
            'transaction_count': row['transaction_count'],
            **_period_shares(row['total_amount'] or ZERO),
        }
        for row in rows
    ]


def get_top_tenants_by_revenue(month=None, limit=10):
    if limit < 1:
        raise InvalidInput("limit must be at least 1")
    rows = (
        _successful_payments(month).order_by()
        .values('order__tenant_id', 'order__tenant__name', 'order__tenant__code')
        .annotate(total_sales=Sum('amount_paid'), transaction_count=Count('id'))
        .order_by('-total_sales', 'order__tenant_id')[:min(limit, MAX_PAGE_SIZE)]
    )
    return [
        {
            'tenant_id': row['order__tenant_id'],
            'tenant_name': row['order__tenant__name'],
            'tenant_code': row['order__tenant__code'],
            'total_sales': row['total_sales'] or ZERO,
            'transaction_count': row['transaction_count'],
            'tenant_share': _period_shares(row['total_sales'] or ZERO)['tenant_share'],
        }
        for row in rows
    ]


def _shift_month(year, month, delta):
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def get_monthly_comparison(months=6):
    """System revenue for the last ``months`` months, oldest first, current month included."""
    if months < 1 or months > 24:
        raise InvalidInput("months must be between 1 and 24")
    today = timezone.localdate()
    result = []
    for back in range(months - 1, -1, -1):
        year, month = _shift_month(today.year, today.month, -back)
        result.append(get_system_revenue(f"{year:04d}-{month:02d}"))
    return result


def get_revenue_statistics(month=None):
    pending = Settlement.objects.filter(status=Settlement.STATUS_PENDING).select_related('tenant')
    if month:
        parse_month(month)
        pending = pending.filter(period_month=month)
    tenants = Tenant.objects.filter(status=Tenant.STATUS_ACTIVE)
    return {
        'period': month or 'all-time',
        'system': get_system_revenue(month),
        'by_payment_method': get_revenue_by_method(month),
        'by_tenant': [get_tenant_revenue(tenant.pk, month) for tenant in tenants],
        'pending_settlements': pending.count(),
        'settlement_details': list(pending),
    }


def initiate_settlement(*, tenant_id, month, bank_account):
    """Create a pending settlement for a tenant's successful payments in ``month``."""
    parse_month(month)
    if not bank_account or not str(bank_account).strip():
        raise InvalidInput("Bank account is required")

    with transaction.atomic():
        try:
            tenant = Tenant.objects.select_for_update().get(pk=tenant_id)
        except Tenant.DoesNotExist:
            raise NotFound("Tenant not found")

        revenue = get_tenant_revenue(tenant.pk, month)
        if revenue['total_sales'] <= 0 or revenue['tenant_share'] <= 0:
            raise InvalidState("No revenue to settle for this period")

        try:
            with transaction.atomic():
                settlement = Settlement.objects.create(
                    tenant=tenant,
                    period_month=month,
                    total_sales=revenue['total_sales'],
                    tenant_share=revenue['tenant_share'],
                    operator_share=revenue['operator_share'],
                    platform_share=revenue['platform_share'],
                    bank_account=str(bank_account).strip(),
                    status=Settlement.STATUS_PENDING,
                )
        except IntegrityError:
            raise InvalidState(f"Settlement for {tenant.code} {month} already exists")

    logger.info("Settlement initiated: tenant %s, month %s, share %s", tenant.code, month, settlement.tenant_share)
    return settlement


def process_settlement(settlement_id, transfer_id):
    """Mark a pending settlement as paid out. A settlement can be processed only once."""
    if not transfer_id or not str(transfer_id).strip():
        raise InvalidInput("Transfer id is required")

    with transaction.atomic():
        updated = Settlement.objects.filter(pk=settlement_id, status=Settlement.STATUS_PENDING).update(
            status=Settlement.STATUS_COMPLETED,
            transfer_id=str(transfer_id).strip(),
            processed_at=timezone.now(),
        )
        if not updated:
            settlement = Settlement.objects.filter(pk=settlement_id).first()
            if settlement is None:
                raise NotFound("Settlement not found")
            raise InvalidState(f"Cannot process settlement with status: {settlement.status}")
        settlement = Settlement.objects.select_related('tenant').get(pk=settlement_id)

    logger.info("Settlement processed: %s, transfer %s", settlement_id, transfer_id)
    return settlement


def get_settlement_history(tenant_id, *, year=None, status=None, limit=DEFAULT_PAGE_SIZE, offset=0):
    _get_tenant(tenant_id)
    if limit is None:
        limit = DEFAULT_PAGE_SIZE
    if offset is None:
        offset = 0
    if limit < 1:
        raise InvalidInput("limit must be at least 1")
    if offset < 0:
        raise InvalidInput("offset must not be negative")
    limit = min(limit, MAX_PAGE_SIZE)

    queryset = Settlement.objects.filter(tenant_id=tenant_id)
    if year:
        _year_range(year)
        queryset = queryset.filter(period_month__startswith=f"{int(year):04d}-")
    if status:
        queryset = queryset.filter(status=status)

    total = queryset.count()
    settlements = list(queryset.order_by('-period_month', '-created_at')[offset:offset + limit])
    return {'settlements': settlements, 'total': total, 'limit': limit, 'offset': offset}
