# app/models/custom_field.py
from datetime import datetime
from decimal import Decimal, InvalidOperation
from onemanvan.app import db
from onemanvan.app.field_types import FieldType


class EntityType:
    """Entity types whose editors host custom fields. Purely tags."""
    CUSTOMER = "Customer"
    SITE = "Site"
    ASSET = "Asset"
    JOB = "Job"
    ESTIMATE = "Estimate"
    INVOICE = "Invoice"
    PRODUCT = "Product"

    ALL = [CUSTOMER, SITE, ASSET, JOB, ESTIMATE, INVOICE, PRODUCT]


def _decimal_or_none(value, label):
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid {label}: {value}")
    try:
        number = Decimal(repr(value)) if isinstance(value, float) else Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid {label}: {value}")
    if not number.is_finite():
        raise ValueError(f"Invalid {label}: {value}")
    return number


def _int_or_none(value, label):
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid {label}: {value}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {label}: {value}")


def _number_text(value):
    # Exported as text so the value survives JSON unchanged
    return None if value is None else format(value, 'f')


class FieldDefinition(db.Model):
    """Administrator-configured custom field for one entity type"""
    __tablename__ = 'field_definitions'
    __table_args__ = (
        db.Index('uq_field_definitions_active', 'entity_type', 'field_name', unique=True,
                 sqlite_where=db.text('is_active = 1'),
                 postgresql_where=db.text('is_active')),
    )

    id = db.Column(db.Integer, primary_key=True)
    entity_type = db.Column(db.String(50), nullable=False, index=True)
    field_name = db.Column(db.String(100), nullable=False)
    display_label = db.Column(db.String(100), nullable=False)
    field_type = db.Column(db.String(20), nullable=False, default=FieldType.TEXT.value)
    is_required = db.Column(db.Boolean, nullable=False, default=False)
    default_value = db.Column(db.String(500))
    placeholder = db.Column(db.String(200))
    description = db.Column(db.String(500))
    choice_options = db.Column(db.JSON, nullable=False, default=list)
    # Number range and text length limits. Metadata only, values are never checked against them
    min_value = db.Column(db.Numeric(18, 2))
    max_value = db.Column(db.Numeric(18, 2))
    max_length = db.Column(db.Integer)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    modified_at = db.Column(db.DateTime)

    def __init__(self, entity_type, field_name, field_type=FieldType.TEXT, display_label=None,
                 is_required=False, default_value=None, placeholder=None, description=None,
                 choice_options=None, display_order=None, is_active=True, min_value=None,
                 max_value=None, max_length=None):
        self.entity_type = (entity_type or '').strip()
        self.field_name = (field_name or '').strip()
        self.display_label = (display_label or '').strip() or self.field_name
        # Validate and standardize field type
        self.type = FieldType.parse(field_type)
        self.is_required = bool(is_required)
        self.default_value = default_value
        self.placeholder = placeholder
        self.description = description
        self.choice_options = [str(o).strip() for o in (choice_options or []) if str(o).strip()]
        self.min_value = _decimal_or_none(min_value, 'minimum value')
        self.max_value = _decimal_or_none(max_value, 'maximum value')
        self.max_length = _int_or_none(max_length, 'maximum length')
        self.display_order = display_order
        self.is_active = bool(is_active)

    @property
    def type(self):
        return FieldType.parse(self.field_type)

    @type.setter
    def type(self, value):
        self.field_type = FieldType.parse(value).value

    @property
    def options(self):
        if self.type is not FieldType.CHOICE:
            return []
        return list(self.choice_options or [])

    def to_dict(self):
        return {
            'entity_type': self.entity_type,
            'field_name': self.field_name,
            'display_label': self.display_label,
            'field_type': self.field_type,
            'field_type_display': self.type.display_name,
            'is_required': self.is_required,
            'default_value': self.default_value,
            'placeholder': self.placeholder,
            'description': self.description,
            'choice_options': self.options,
            'min_value': _number_text(self.min_value),
            'max_value': _number_text(self.max_value),
            'max_length': self.max_length,
            'display_order': self.display_order,
            'is_active': self.is_active,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            entity_type=data.get('entity_type'),
            field_name=data.get('field_name'),
            field_type=data.get('field_type', FieldType.TEXT.value),
            display_label=data.get('display_label'),
            is_required=data.get('is_required', False),
            default_value=data.get('default_value'),
            placeholder=data.get('placeholder'),
            description=data.get('description'),
            choice_options=data.get('choice_options'),
            min_value=data.get('min_value'),
            max_value=data.get('max_value'),
            max_length=data.get('max_length'),
            display_order=data.get('display_order'),
            is_active=data.get('is_active', True),
        )

    def __repr__(self):
        return f"FieldDefinition('{self.entity_type}', '{self.field_name}', '{self.field_type}')"


class FieldValue(db.Model):
    """Stored value of one custom field on one entity instance.

    Not linked to FieldDefinition or to the owning entity's table; rows are
    found by (entity_type, entity_id, key) alone.
    """
    __tablename__ = 'field_values'
    __table_args__ = (
        db.UniqueConstraint('entity_type', 'entity_id', 'key', name='uq_field_values_entity_key'),
    )

    id = db.Column(db.Integer, primary_key=True)
    entity_type = db.Column(db.String(50), nullable=False)
    entity_id = db.Column(db.Integer, nullable=False)
    key = db.Column(db.String(100), nullable=False)
    value = db.Column(db.String(1000))  # NULL means cleared
    field_type = db.Column(db.String(20), nullable=False, default=FieldType.TEXT.value)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"FieldValue('{self.entity_type}', {self.entity_id}, '{self.key}', {self.value!r})"
