# app/editing.py
"""Binding between custom field definitions and the values an entity
editor shows and collects.

Every entity editor uses the fields the same way:

1. load the definitions for its entity type,
2. load stored values when editing an existing record,
3. build one :class:`FieldEditingSurface` per definition,
4. let the user edit the surfaces,
5. on save, check required fields and write nothing if any are blank,
6. write every surface's value against the saved record's id.

:class:`CustomFieldEditor` runs that sequence; the owning entity's own save
happens between steps 5 and 6 and is not part of it.
"""
from onemanvan.app.errors import RequiredFieldsMissing
from onemanvan.app.field_types import (FieldType, NO, YES, decode_bool, decode_date,
                                       decode_number, encode, is_stale_choice)
from onemanvan.app.schema_registry import SchemaRegistry
from onemanvan.app.value_store import FieldValueStore

CHECKBOX_ON = ('on', 'true', 'yes', '1')
CHECKBOX_OFF = ('off', 'false', 'no', '0')


class FieldEditingSurface:
    def __init__(self, field_name, display_label, field_type, is_required=False,
                 choice_options=None, placeholder=None, raw_value=''):
        self.field_name = field_name
        self.display_label = display_label or field_name
        self.field_type = FieldType.parse(field_type)
        self.is_required = is_required
        self.choice_options = list(choice_options or [])
        self.placeholder = placeholder
        self.raw_value = raw_value if raw_value is not None else ''

    @classmethod
    def from_definition(cls, definition, values=None):
        """Start from the stored value, else the definition's default."""
        values = values or {}
        if definition.field_name in values and values[definition.field_name] is not None:
            raw_value = values[definition.field_name]
        elif definition.default_value is not None:
            raw_value = definition.default_value
        else:
            raw_value = ''
        return cls(
            field_name=definition.field_name,
            display_label=definition.display_label,
            field_type=definition.type,
            is_required=definition.is_required,
            choice_options=definition.options,
            placeholder=definition.placeholder,
            raw_value=raw_value,
        )

    @property
    def as_bool(self):
        return decode_bool(self.raw_value)

    @as_bool.setter
    def as_bool(self, value):
        self.raw_value = YES if value else NO

    @property
    def as_date(self):
        return decode_date(self.raw_value)

    @as_date.setter
    def as_date(self, value):
        self.raw_value = encode(FieldType.DATE, value) or ''

    @property
    def as_number(self):
        return decode_number(self.raw_value)

    @as_number.setter
    def as_number(self, value):
        self.raw_value = encode(FieldType.NUMBER, value) or ''

    @property
    def is_empty(self):
        return not (self.raw_value or '').strip()

    @property
    def is_stale_choice(self):
        return self.field_type is FieldType.CHOICE and is_stale_choice(self.choice_options, self.raw_value)

    def to_dict(self):
        return {
            'field_name': self.field_name,
            'display_label': self.display_label,
            'field_type': self.field_type.value,
            'is_required': self.is_required,
            'choice_options': self.choice_options,
            'placeholder': self.placeholder,
            'value': self.raw_value,
            'is_stale_choice': self.is_stale_choice,
        }

    def __repr__(self):
        return f"FieldEditingSurface('{self.field_name}', {self.raw_value!r})"


def validate_required(surfaces):
    """Display labels of required surfaces left blank, in display order."""
    return [s.display_label for s in surfaces if s.is_required and s.is_empty]


class CustomFieldEditor:
    def __init__(self, entity_type, registry=None, store=None):
        self.entity_type = entity_type
        self.registry = registry or SchemaRegistry()
        self.store = store or FieldValueStore()
        self.surfaces = []

    def load(self, entity_id=None):
        definitions = self.registry.get_definitions(self.entity_type)
        values = {}
        if entity_id is not None:
            values = self.store.get_values(self.entity_type, entity_id)
        self.surfaces = [FieldEditingSurface.from_definition(d, values) for d in definitions]
        return self.surfaces

    def surface(self, field_name):
        return next((s for s in self.surfaces if s.field_name == field_name), None)

    def apply(self, mapping, prefix=''):
        """Copy submitted text onto the surfaces. Fields not submitted keep
        their current value."""
        for surface in self.surfaces:
            name = prefix + surface.field_name
            if name not in mapping:
                continue
            value = mapping.get(name)
            if surface.field_type is FieldType.YES_NO and value is not None:
                text = str(value).strip()
                if text.lower() in CHECKBOX_ON:
                    surface.as_bool = True
                elif text.lower() in CHECKBOX_OFF:
                    surface.as_bool = False
                else:
                    surface.raw_value = text
                continue
            surface.raw_value = '' if value is None else str(value)
        return self.surfaces

    def validate(self):
        return validate_required(self.surfaces)

    def save(self, entity_id):
        """Write every surface for the saved record.

        Raises RequiredFieldsMissing before any write when a required field
        is blank.
        """
        missing = self.validate()
        if missing:
            raise RequiredFieldsMissing(missing)

        for surface in self.surfaces:
            self.store.set_value(
                self.entity_type,
                entity_id,
                surface.field_name,
                None if surface.is_empty else surface.raw_value,
                surface.field_type,
            )
