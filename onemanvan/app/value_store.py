# app/value_store.py
"""Field value store: raw custom field values per entity instance.

Values are written as given. Formatting problems are only noticed when a
value is decoded for display; the store itself never rejects a save.
"""
import logging
import os
from collections import namedtuple
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from onemanvan.app import db
from onemanvan.app.field_types import FieldType, encode
from onemanvan.app.models.custom_field import FieldValue

logger = logging.getLogger(__name__)
logger.setLevel(os.environ.get("ONEMANVAN_LOG_LEVEL", "INFO"))

FieldValueKey = namedtuple('FieldValueKey', ['entity_type', 'entity_id', 'key'])


def to_raw(value, field_type):
    """Best-effort conversion of an edited value to stored text.

    An empty string becomes None, the cleared state. Whitespace is kept
    as written.
    """
    if value is None:
        return None
    try:
        raw = encode(field_type, value)
    except (TypeError, ValueError, AttributeError):
        raw = str(value)
    if raw is None or raw == '':
        return None
    return raw


class FieldValueStore:
    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def _find(self, key):
        return self.session.query(FieldValue).filter_by(
            entity_type=key.entity_type,
            entity_id=key.entity_id,
            key=key.key,
        ).first()

    def get_values(self, entity_type, entity_id):
        """Every stored value for the instance, keyed by field name.

        Values whose definition has since been deactivated are included.
        A cleared field maps to an empty string; fields never saved are
        absent.
        """
        rows = self.session.query(FieldValue).filter_by(
            entity_type=entity_type, entity_id=entity_id
        ).all()
        return {row.key: row.value if row.value is not None else '' for row in rows}

    def get_value(self, entity_type, entity_id, field_name):
        row = self._find(FieldValueKey(entity_type, entity_id, field_name))
        if row is None:
            return None
        return row.value

    def set_value(self, entity_type, entity_id, field_name, raw_value, field_type=FieldType.TEXT):
        """Insert or replace the single value row for the field.

        Storage errors are rolled back and re-raised.
        """
        key = FieldValueKey(entity_type, entity_id, field_name)
        field_type = FieldType.parse(field_type)
        raw = to_raw(raw_value, field_type)

        try:
            row = self._find(key)
            if row is None:
                row = FieldValue(
                    entity_type=key.entity_type,
                    entity_id=key.entity_id,
                    key=key.key,
                    created_at=datetime.utcnow(),
                )
                self.session.add(row)
            row.value = raw
            row.field_type = field_type.value
            self.session.commit()
        except SQLAlchemyError:
            logger.error("Saving custom field %s failed", key, exc_info=True)
            self.session.rollback()
            raise
        logger.debug("Saved custom field %s = %r", key, raw)
