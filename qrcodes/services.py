"""
QR pickup tokens.

    active -> scanned | expired | inactive

``scanned``, ``expired`` and ``inactive`` are terminal. Expiry is evaluated
lazily whenever a code is read; there is no background sweep.
"""
import io
import logging
import secrets
from datetime import timedelta

import qrcode
from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone

from common.exceptions import Gone, InvalidState, NotFound
from configuration.services import get_qr_expiry_hours
from notifications.emitter import get_emitter
from orders.models import Order
from tenants.models import CheckoutCounter
from .models import QRCode, QRCodeScan

logger = logging.getLogger(__name__)
security_logger = logging.getLogger('security')


def generate_token():
    """128-bit random token, hex encoded (32 chars)."""
    return secrets.token_hex(16)


def _qr_data(order):
    return {
        'order_id': order.pk,
        'order_number': order.order_number,
        'customer_name': order.customer_name,
        'total_amount': str(order.total_amount),
        'tenant_id': order.tenant_id,
    }


def _expire(qr_code):
    """Flip an active code to expired. Conditional, so terminal codes stay put."""
    flipped = QRCode.objects.filter(pk=qr_code.pk, status=QRCode.STATUS_ACTIVE).update(status=QRCode.STATUS_EXPIRED)
    if flipped:
        qr_code.status = QRCode.STATUS_EXPIRED
        logger.info("QR code %s expired", qr_code.qr_token)


def generate_qr_code(order_id):
    """
    Issue the pickup token for an order. Calling again while the code is
    still active returns the same record unchanged.
    """
    now = timezone.now()
    with transaction.atomic():
        try:
            order = Order.objects.select_for_update().get(pk=order_id)
        except Order.DoesNotExist:
            raise NotFound("Order not found")

        existing = QRCode.objects.filter(order=order).first()
        if existing is None:
            qr_code = QRCode.objects.create(
                order=order,
                qr_token=generate_token(),
                qr_data=_qr_data(order),
                status=QRCode.STATUS_ACTIVE,
                scan_count=0,
                expires_at=now + timedelta(hours=get_qr_expiry_hours()),
            )
            logger.info("QR code generated for order %s", order.order_number)
            return qr_code

        if existing.status == QRCode.STATUS_ACTIVE and not existing.is_expired(now):
            return existing

    # Satu order hanya punya satu QR; kode yang sudah selesai tidak diganti.
    if existing.status == QRCode.STATUS_ACTIVE:
        _expire(existing)
    raise InvalidState(f"QR code for order {order.order_number} is already {existing.status}")


def _lookup(identifier):
    identifier = str(identifier).strip()
    queryset = QRCode.objects.select_related('order')
    if identifier.isdigit():
        qr_code = queryset.filter(order_id=int(identifier)).first()
    else:
        qr_code = queryset.filter(qr_token=identifier).first()
    if qr_code is None:
        raise NotFound("QR code not found")
    return qr_code


def _check_expiry(qr_code):
    if qr_code.is_expired(timezone.now()):
        _expire(qr_code)
        raise Gone("QR code has expired")
    return qr_code


def get_qr_code(identifier):
    """Look up by numeric order id or by token. Raises Gone once the code is past expiry."""
    return _check_expiry(_lookup(identifier))


def get_qr_code_by_token(token):
    """Token-only lookup for endpoints open to anonymous callers."""
    qr_code = QRCode.objects.select_related('order').filter(qr_token=str(token).strip()).first()
    if qr_code is None:
        raise NotFound("QR code not found")
    return _check_expiry(qr_code)


def validate_qr_token(token):
    qr_code = QRCode.objects.select_related('order').filter(qr_token=token).first()
    if qr_code is None:
        return {'valid': False, 'error': "QR code not found"}

    if qr_code.is_expired(timezone.now()):
        _expire(qr_code)
        return {'valid': False, 'error': "QR code has expired"}

    if qr_code.status == QRCode.STATUS_SCANNED:
        return {'valid': False, 'error': "QR code has already been scanned", 'scanned_at': qr_code.scanned_at}
    if qr_code.status != QRCode.STATUS_ACTIVE:
        return {'valid': False, 'error': f"QR code is {qr_code.status}"}

    order = qr_code.order
    return {
        'valid': True,
        'qr_id': qr_code.pk,
        'qr_token': qr_code.qr_token,
        'order_id': order.pk,
        'order_number': order.order_number,
        'customer_name': order.customer_name,
        'total_amount': order.total_amount,
        'status': order.status,
        'payment_status': order.payment_status,
        'qr_data': qr_code.qr_data,
    }


def _record_scan(qr_code):
    # Audit bersifat best-effort: savepoint sendiri, gagal tidak membatalkan scan.
    try:
        with transaction.atomic():
            QRCodeScan.objects.create(
                qr=qr_code,
                order_id=qr_code.order_id,
                scanned_by_id=qr_code.scanned_by_id,
                checkout_counter_id=qr_code.checkout_counter_id,
                scanned_at=qr_code.scanned_at,
            )
    except DatabaseError:
        logger.exception("Failed to record scan audit for QR %s", qr_code.qr_token)


def mark_qr_as_scanned(token, scanned_by_user_id, checkout_counter_id, *, emitter=None):
    if not get_user_model().objects.filter(pk=scanned_by_user_id).exists():
        raise NotFound("User not found")
    if not CheckoutCounter.objects.filter(pk=checkout_counter_id).exists():
        raise NotFound("Checkout counter not found")

    now = timezone.now()
    expired = False
    with transaction.atomic():
        qr_code = QRCode.objects.select_for_update().filter(qr_token=token).first()
        if qr_code is None:
            raise NotFound("QR code not found")
        if qr_code.status == QRCode.STATUS_SCANNED:
            raise InvalidState("QR code has already been scanned")
        if qr_code.status == QRCode.STATUS_INACTIVE:
            raise InvalidState("QR code has been deactivated")

        if qr_code.status == QRCode.STATUS_EXPIRED or qr_code.is_expired(now):
            expired = True
        else:
            updated = QRCode.objects.filter(pk=qr_code.pk, status=QRCode.STATUS_ACTIVE).update(
                status=QRCode.STATUS_SCANNED,
                scan_count=F('scan_count') + 1,
                scanned_at=now,
                scanned_by_id=scanned_by_user_id,
                checkout_counter_id=checkout_counter_id,
            )
            if not updated:
                raise InvalidState("QR code has already been scanned")
            qr_code.refresh_from_db()
            _record_scan(qr_code)
            get_emitter(emitter).qr_scanned(qr_code)

    if expired:
        # Di luar transaksi supaya status expired tetap tersimpan.
        _expire(qr_code)
        raise Gone("QR code has expired")

    security_logger.info("QR code %s scanned by user %s at counter %s",
                         token, scanned_by_user_id, checkout_counter_id)
    return qr_code


def deactivate_qr(token):
    qr_code = QRCode.objects.filter(qr_token=token).first()
    if qr_code is None:
        raise NotFound("QR code not found")
    QRCode.objects.filter(pk=qr_code.pk).update(status=QRCode.STATUS_INACTIVE)
    qr_code.status = QRCode.STATUS_INACTIVE
    logger.info("QR code deactivated: %s", token)
    return qr_code


def get_qr_statistics(tenant_id=None):
    queryset = QRCode.objects.all()
    if tenant_id:
        queryset = queryset.filter(order__tenant_id=tenant_id)
    stats = queryset.aggregate(
        total=Count('id'),
        active=Count('id', filter=Q(status=QRCode.STATUS_ACTIVE)),
        scanned=Count('id', filter=Q(status=QRCode.STATUS_SCANNED)),
        expired=Count('id', filter=Q(status=QRCode.STATUS_EXPIRED)),
        inactive=Count('id', filter=Q(status=QRCode.STATUS_INACTIVE)),
        total_scans=Sum('scan_count'),
    )
    stats['total_scans'] = stats['total_scans'] or 0
    return stats


def render_qr_png(qr_code):
    """PNG bytes of the code's access URL."""
    qr = qrcode.QRCode(version=1, error_correction=qrcode.constants.ERROR_CORRECT_M, box_size=10, border=4)
    qr.add_data(qr_code.qr_url)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, "PNG")
    return buffer.getvalue()
