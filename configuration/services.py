import logging
from decimal import Decimal, InvalidOperation

from django.conf import settings as django_settings
from django.db import IntegrityError, transaction

from common.exceptions import InvalidInput, NotFound
from .cache import settings_cache
from .models import Setting
from .values import SettingType, validate_value

logger = logging.getLogger(__name__)

REVENUE_TENANT_KEY = 'revenue_tenant_percentage'
REVENUE_PENGELOLA_KEY = 'revenue_pengelola_percentage'
REVENUE_SYSTEM_KEY = 'revenue_system_percentage'
QR_EXPIRY_KEY = 'qr_expiry_hours'

DEFAULT_SETTINGS = [
    (REVENUE_TENANT_KEY, '97', SettingType.NUMBER, 'Tenant revenue share percentage'),
    (REVENUE_PENGELOLA_KEY, '2', SettingType.NUMBER, 'Food court manager revenue share percentage'),
    (REVENUE_SYSTEM_KEY, '1', SettingType.NUMBER, 'System/platform revenue share percentage'),
    (QR_EXPIRY_KEY, '24', SettingType.NUMBER, 'QR code expiry time in hours'),
    ('tax_percentage', '10', SettingType.NUMBER, 'Sales tax percentage'),
    ('business_name', 'Food Court POS System', SettingType.STRING, 'Business name'),
    ('business_address', '', SettingType.STRING, 'Business address'),
    ('phone_number', '', SettingType.STRING, 'Business phone number'),
    ('email', '', SettingType.STRING, 'Business email'),
    ('timezone', 'Asia/Jakarta', SettingType.STRING, 'System timezone'),
    ('email_notifications', 'true', SettingType.BOOLEAN, 'Enable email notifications'),
    ('sms_notifications', 'false', SettingType.BOOLEAN, 'Enable SMS notifications'),
    ('push_notifications', 'true', SettingType.BOOLEAN, 'Enable push notifications'),
    ('notification_email', '', SettingType.STRING, 'Email for notifications'),
    ('notify_on_payment_failure', 'true', SettingType.BOOLEAN, 'Notify on payment failure'),
    ('notify_on_refund', 'true', SettingType.BOOLEAN, 'Notify on refund'),
]

GENERAL_DEFAULTS = {
    QR_EXPIRY_KEY: Decimal('24'),
    'tax_percentage': Decimal('10'),
    'business_name': 'Food Court POS System',
    'business_address': '',
    'phone_number': '',
    'email': '',
    'timezone': 'Asia/Jakarta',
}

NOTIFICATION_DEFAULTS = {
    'email_notifications': False,
    'sms_notifications': False,
    'push_notifications': False,
    'notification_email': '',
    'notify_on_payment_failure': False,
    'notify_on_refund': False,
}

PERCENTAGE_TOLERANCE = Decimal('0.01')


def _invalidate(key=None):
    # Sekali sekarang, sekali lagi setelah commit agar pembaca bersamaan tidak menyimpan nilai lama.
    settings_cache.invalidate(key)
    transaction.on_commit(lambda: settings_cache.invalidate(key))


def _serialize(setting):
    return {
        'key': setting.key,
        'value': setting.parsed_value,
        'type': setting.data_type,
        'description': setting.description,
        'updated_at': setting.updated_at,
    }


def _validated(key, data_type, value):
    text = validate_value(data_type, value)
    if key == QR_EXPIRY_KEY:
        # Jam kedaluwarsa QR harus bilangan bulat positif
        hours = Decimal(text) if data_type == SettingType.NUMBER else None
        if hours is None or hours <= 0 or hours != hours.to_integral_value():
            raise InvalidInput(f"{QR_EXPIRY_KEY} must be a positive whole number of hours")
    return text


def get_all_settings():
    return {setting.key: _serialize(setting) for setting in Setting.objects.all()}


def get_setting(key):
    try:
        setting = Setting.objects.get(key=key)
    except Setting.DoesNotExist:
        raise NotFound(f"Setting not found: {key}")
    return _serialize(setting)


def create_setting(*, key, value, data_type=SettingType.STRING, description='', user=None):
    if not key:
        raise InvalidInput("Setting key is required")
    if data_type not in SettingType.values:
        raise InvalidInput(f"Unknown data type: {data_type}")
    text = _validated(key, data_type, value)
    try:
        with transaction.atomic():
            setting = Setting.objects.create(
                key=key, value=text, data_type=data_type, description=description or '', updated_by=user,
            )
    except IntegrityError:
        raise InvalidInput(f"Setting already exists: {key}")
    _invalidate()
    logger.info("Setting %s created", key)
    return _serialize(setting)


def update_setting(key, *, value, description=None, user=None):
    with transaction.atomic():
        try:
            setting = Setting.objects.select_for_update().get(key=key)
        except Setting.DoesNotExist:
            raise NotFound(f"Setting not found: {key}")
        setting.value = _validated(key, setting.data_type, value)
        fields = ['value', 'updated_by', 'updated_at']
        if description is not None:
            setting.description = description
            fields.append('description')
        setting.updated_by = user
        setting.save(update_fields=fields)
        _invalidate(key)
    logger.info("Setting %s updated", key)
    return _serialize(setting)


def delete_setting(key):
    deleted, _ = Setting.objects.filter(key=key).delete()
    if not deleted:
        raise NotFound(f"Setting not found: {key}")
    _invalidate(key)
    logger.info("Setting %s deleted", key)


def _as_percentage(name, value):
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"{name} must be a number")
    if not number.is_finite():
        raise InvalidInput(f"{name} must be a number")
    return number


def get_revenue_settings():
    """Current split percentages (tenant, pengelola, system), defaulting to 97/2/1."""
    def read(key, default):
        value = settings_cache.get(key)
        return Decimal(default) if value is None else Decimal(value)

    return {
        'tenant_percentage': read(REVENUE_TENANT_KEY, '97'),
        'pengelola_percentage': read(REVENUE_PENGELOLA_KEY, '2'),
        'system_percentage': read(REVENUE_SYSTEM_KEY, '1'),
    }


def update_revenue_settings(*, tenant_percentage, pengelola_percentage, system_percentage, user=None):
    tenant = _as_percentage('tenant_percentage', tenant_percentage)
    pengelola = _as_percentage('pengelola_percentage', pengelola_percentage)
    system = _as_percentage('system_percentage', system_percentage)

    if tenant < 0 or pengelola < 0 or system < 0:
        raise InvalidInput("Revenue percentages must not be negative")
    total = tenant + pengelola + system
    if abs(total - 100) > PERCENTAGE_TOLERANCE:
        raise InvalidInput(f"Revenue percentages must sum to 100 (got {total})")

    values = {
        REVENUE_TENANT_KEY: tenant,
        REVENUE_PENGELOLA_KEY: pengelola,
        REVENUE_SYSTEM_KEY: system,
    }
    with transaction.atomic():
        for key, value in values.items():
            _upsert(key, value, SettingType.NUMBER, user)
    logger.info("Revenue split updated to %s/%s/%s", tenant, pengelola, system)
    return {
        'tenant_percentage': tenant,
        'pengelola_percentage': pengelola,
        'system_percentage': system,
        'total': total,
    }


def _upsert(key, value, data_type, user):
    setting = Setting.objects.select_for_update().filter(key=key).first()
    if setting is None:
        description = next((d for k, _, _, d in DEFAULT_SETTINGS if k == key), '')
        Setting.objects.create(
            key=key, value=_validated(key, data_type, value), data_type=data_type,
            description=description, updated_by=user,
        )
    else:
        setting.value = _validated(key, setting.data_type, value)
        setting.updated_by = user
        setting.save(update_fields=['value', 'updated_by', 'updated_at'])
    _invalidate(key)


def _read_group(defaults):
    values = settings_cache.all()
    group = {}
    for key, default in defaults.items():
        value = values.get(key)
        group[key] = default if value is None else value
    return group


def _update_group(defaults, updates, user):
    unknown = sorted(set(updates) - set(defaults))
    if unknown:
        raise InvalidInput(f"Unknown setting(s): {', '.join(unknown)}")
    with transaction.atomic():
        for key, value in updates.items():
            data_type = next(t for k, _, t, _ in DEFAULT_SETTINGS if k == key)
            _upsert(key, value, data_type, user)


def get_general_settings():
    return _read_group(GENERAL_DEFAULTS)


def update_general_settings(updates, *, user=None):
    _update_group(GENERAL_DEFAULTS, updates, user)
    logger.info("General settings updated: %s", ', '.join(sorted(updates)))
    return get_general_settings()


def get_notification_settings():
    return _read_group(NOTIFICATION_DEFAULTS)


def update_notification_settings(updates, *, user=None):
    _update_group(NOTIFICATION_DEFAULTS, updates, user)
    logger.info("Notification settings updated: %s", ', '.join(sorted(updates)))
    return get_notification_settings()


def get_qr_expiry_hours():
    """Configured QR lifetime in hours, falling back to settings.QR_EXPIRY_HOURS."""
    value = settings_cache.get(QR_EXPIRY_KEY)
    if not isinstance(value, Decimal) or value <= 0 or value != value.to_integral_value():
        return django_settings.QR_EXPIRY_HOURS
    return int(value)


def initialize_default_settings():
    """Create any default setting row that does not exist yet. Returns the created keys."""
    created = []
    with transaction.atomic():
        for key, value, data_type, description in DEFAULT_SETTINGS:
            _, was_created = Setting.objects.get_or_create(
                key=key,
                defaults={'value': value, 'data_type': data_type, 'description': description},
            )
            if was_created:
                created.append(key)
    if created:
        _invalidate()
    logger.info("Default settings initialized, %d created", len(created))
    return created
