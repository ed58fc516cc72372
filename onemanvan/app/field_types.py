# app/field_types.py
"""Supported custom field kinds and the rules for converting between the
raw text kept in storage and the typed values editors work with.

Decoding never raises. A value that cannot be read back degrades to the
kind's "unset" value so a bad row can't break a form.
"""
import logging
import os
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum

logger = logging.getLogger(__name__)
logger.setLevel(os.environ.get("ONEMANVAN_LOG_LEVEL", "INFO"))

DATE_FORMAT = '%Y-%m-%d'
YES = 'Yes'
NO = 'No'
TRUTHY = ('yes', 'true')


class FieldType(Enum):
    TEXT = "Text"
    NUMBER = "Number"
    DATE = "Date"
    YES_NO = "YesNo"
    CHOICE = "Choice"

    @classmethod
    def parse(cls, value):
        """Match a FieldType or its name case-insensitively, including the
        names older schema exports used."""
        if isinstance(value, cls):
            return value
        if value is None:
            raise ValueError("Field type is required")
        name = str(value).strip().lower()
        try:
            return next(t for t in cls if t.value.lower() == name or t.name.lower() == name)
        except StopIteration:
            pass
        if name in _LEGACY_NAMES:
            return _LEGACY_NAMES[name]
        raise ValueError(f"Invalid field type: {value}")

    @property
    def display_name(self):
        return _DISPLAY_NAMES[self]


_LEGACY_NAMES = {
    'decimal': FieldType.NUMBER,
    'boolean': FieldType.YES_NO,
    'yes/no': FieldType.YES_NO,
    'checkbox': FieldType.YES_NO,
    'enum': FieldType.CHOICE,
    'dropdown': FieldType.CHOICE,
}

_DISPLAY_NAMES = {
    FieldType.TEXT: 'Text',
    FieldType.NUMBER: 'Number',
    FieldType.DATE: 'Date',
    FieldType.YES_NO: 'Yes/No',
    FieldType.CHOICE: 'Dropdown',
}


def decode_number(raw):
    if raw is None or not str(raw).strip():
        return None
    try:
        number = Decimal(str(raw).strip())
    except InvalidOperation:
        logger.debug("Could not read %r as a number", raw)
        return None
    if not number.is_finite():
        return None
    return number


def decode_date(raw):
    if raw is None or not str(raw).strip():
        return None
    text = str(raw).strip()
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        logger.debug("Could not read %r as a date", raw)
        return None


def decode_bool(raw):
    if raw is None:
        return False
    return str(raw).strip().lower() in TRUTHY


def decode(field_type, raw):
    """Turn stored raw text into the typed value for ``field_type``.

    Text and Choice come back verbatim (empty string when unset), Number as
    a Decimal or None, Date as a date or None and YesNo as a bool.
    """
    field_type = FieldType.parse(field_type)
    if field_type is FieldType.TEXT:
        return raw or ''
    if field_type is FieldType.NUMBER:
        return decode_number(raw)
    if field_type is FieldType.DATE:
        return decode_date(raw)
    if field_type is FieldType.YES_NO:
        return decode_bool(raw)
    if field_type is FieldType.CHOICE:
        # Options removed since the value was saved are still shown as-is
        return raw or ''
    raise ValueError(f"Unhandled field type: {field_type}")


def encode_number(value):
    if isinstance(value, bool):
        raise ValueError("A yes/no value is not a number")
    if isinstance(value, float):
        value = Decimal(repr(value))
    elif not isinstance(value, Decimal):
        value = Decimal(value)
    if not value.is_finite():
        raise ValueError(f"Invalid number: {value}")
    return format(value, 'f')


def encode(field_type, value):
    """Turn a typed edit back into raw text for storage.

    Strings are passed through untouched; this is best effort and never a
    validation step.
    """
    field_type = FieldType.parse(field_type)
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if field_type is FieldType.YES_NO:
        return YES if value else NO
    if field_type is FieldType.DATE:
        if isinstance(value, datetime):
            value = value.date()
        return value.strftime(DATE_FORMAT)
    if field_type is FieldType.NUMBER:
        return encode_number(value)
    if field_type in (FieldType.TEXT, FieldType.CHOICE):
        return str(value)
    raise ValueError(f"Unhandled field type: {field_type}")


def is_stale_choice(options, raw):
    """True for a saved choice that is no longer one of the options."""
    if raw is None or raw == '':
        return False
    return raw not in (options or [])
