"""
Typed setting values.

Every setting row stores its value as text together with a data_type tag.
Each tag has a pair of functions: ``parse`` turns stored text into a python
value, ``validate`` checks caller input and returns the text to store.
"""
import json
from decimal import Decimal, InvalidOperation

from django.db import models

from common.exceptions import InvalidInput


class SettingType(models.TextChoices):
    STRING = 'string', 'String'
    NUMBER = 'number', 'Number'
    BOOLEAN = 'boolean', 'Boolean'
    JSON = 'json', 'JSON'


def parse_string(text):
    return text


def validate_string(value):
    if value is None:
        return ''
    if isinstance(value, (dict, list)):
        raise InvalidInput("Value must be a string")
    return str(value)


def parse_number(text):
    if text in (None, ''):
        return None
    return Decimal(text)


def validate_number(value):
    if isinstance(value, bool):
        raise InvalidInput("Value must be a valid number")
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInput("Value must be a valid number")
    if not number.is_finite():
        raise InvalidInput("Value must be a valid number")
    return str(number)


def parse_boolean(text):
    return text == 'true'


def validate_boolean(value):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value in ('true', 'false'):
        return value
    raise InvalidInput("Value must be true or false")


def parse_json(text):
    if text in (None, ''):
        return None
    return json.loads(text)


def validate_json(value):
    if isinstance(value, str):
        try:
            json.loads(value)
        except ValueError:
            raise InvalidInput("Value must be valid JSON")
        return value
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        raise InvalidInput("Value must be valid JSON")


VALUE_TYPES = {
    SettingType.STRING: (parse_string, validate_string),
    SettingType.NUMBER: (parse_number, validate_number),
    SettingType.BOOLEAN: (parse_boolean, validate_boolean),
    SettingType.JSON: (parse_json, validate_json),
}


def _handlers(data_type):
    try:
        return VALUE_TYPES[SettingType(data_type)]
    except ValueError:
        raise InvalidInput(f"Unknown data type: {data_type}")


def parse_value(data_type, text):
    parse, _ = _handlers(data_type)
    return parse(text)


def validate_value(data_type, value):
    _, validate = _handlers(data_type)
    return validate(value)
