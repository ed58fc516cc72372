# app/schema_registry.py
"""Schema registry: which custom fields exist for each entity type.

The registry only ever reads and writes ``field_definitions``. Values live
in :mod:`onemanvan.app.value_store` and are joined with definitions in the
editor layer, never here.
"""
import json
import logging
import os
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from onemanvan.app import db
from onemanvan.app.errors import DefinitionValidationError
from onemanvan.app.field_types import FieldType
from onemanvan.app.models.custom_field import FieldDefinition

logger = logging.getLogger(__name__)
logger.setLevel(os.environ.get("ONEMANVAN_LOG_LEVEL", "INFO"))

# Attributes copied onto an existing row when a definition is updated
EDITABLE_ATTRIBUTES = ('display_label', 'field_type', 'is_required', 'default_value',
                       'placeholder', 'description', 'choice_options', 'min_value', 'max_value',
                       'max_length', 'display_order', 'is_active')


class SchemaRegistry:
    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def _active(self, entity_type):
        return self.session.query(FieldDefinition).filter(
            FieldDefinition.entity_type == entity_type,
            FieldDefinition.is_active.is_(True),
        )

    def get_definitions(self, entity_type):
        """Active definitions for ``entity_type`` in display order.

        Unknown entity types simply have no definitions.
        """
        return self._active(entity_type).order_by(
            FieldDefinition.display_order, FieldDefinition.field_name
        ).all()

    def get_definition(self, entity_type, field_name):
        return self._active(entity_type).filter(
            FieldDefinition.field_name == field_name
        ).first()

    def get_all_definitions(self):
        definitions = self.session.query(FieldDefinition).filter(
            FieldDefinition.is_active.is_(True)
        ).order_by(
            FieldDefinition.entity_type, FieldDefinition.display_order, FieldDefinition.field_name
        ).all()

        grouped = {}
        for definition in definitions:
            grouped.setdefault(definition.entity_type, []).append(definition)
        return grouped

    def field_counts(self):
        rows = self.session.query(
            FieldDefinition.entity_type, func.count(FieldDefinition.id)
        ).filter(
            FieldDefinition.is_active.is_(True)
        ).group_by(FieldDefinition.entity_type).all()
        return {entity_type: count for entity_type, count in rows}

    def _normalize(self, definition):
        definition.entity_type = (definition.entity_type or '').strip()
        definition.field_name = (definition.field_name or '').strip()
        definition.display_label = (definition.display_label or '').strip() or definition.field_name
        definition.type = definition.field_type
        if definition.type is FieldType.CHOICE:
            definition.choice_options = [
                str(o).strip() for o in (definition.choice_options or []) if str(o).strip()
            ]
        else:
            definition.choice_options = []
        return definition

    def validate(self, definition, pending=()):
        """Return the list of problems that would stop ``definition`` from
        being saved. ``pending`` holds definitions about to be saved in the
        same batch."""
        errors = []
        if not definition.entity_type:
            errors.append("Entity type is required.")
        if not definition.field_name:
            errors.append("Field name is required.")
        if definition.type is FieldType.CHOICE and not definition.choice_options:
            errors.append(f"Dropdown field '{definition.field_name}' needs at least one option.")
        if definition.min_value is not None and definition.max_value is not None \
                and definition.min_value > definition.max_value:
            errors.append(f"Field '{definition.field_name}' has a minimum above its maximum.")
        if definition.max_length is not None and definition.max_length < 1:
            errors.append(f"Field '{definition.field_name}' needs a maximum length of at least 1.")

        if definition.is_active and definition.entity_type and definition.field_name:
            name = definition.field_name.lower()
            # Checking must not flush edits the caller has pending
            with self.session.no_autoflush:
                stored = self._active(definition.entity_type).filter(
                    func.lower(FieldDefinition.field_name) == name
                ).all()
            # An exact match in storage is the row this save updates
            clashes = [d for d in stored
                       if d is not definition and d.field_name != definition.field_name]
            clashes.extend(
                p for p in pending
                if p.is_active and p.entity_type == definition.entity_type
                and p.field_name.lower() == name
            )
            if clashes:
                errors.append(
                    f"A field named '{clashes[0].field_name}' already exists for {definition.entity_type}."
                )
        return errors

    def _next_display_order(self, entity_type):
        max_order = self.session.query(func.max(FieldDefinition.display_order)).filter(
            FieldDefinition.entity_type == entity_type
        ).scalar()
        return (max_order or 0) + 1

    def _apply(self, definition):
        existing = self.get_definition(definition.entity_type, definition.field_name)
        if existing is None:
            if definition.display_order is None:
                definition.display_order = self._next_display_order(definition.entity_type)
            definition.created_at = datetime.utcnow()
            self.session.add(definition)
            logger.info("Created field %s.%s", definition.entity_type, definition.field_name)
            return definition

        for attribute in EDITABLE_ATTRIBUTES:
            value = getattr(definition, attribute)
            if attribute == 'display_order' and value is None:
                continue
            setattr(existing, attribute, value)
        existing.modified_at = datetime.utcnow()
        logger.info("Updated field %s.%s", existing.entity_type, existing.field_name)
        return existing

    def _commit(self):
        try:
            self.session.commit()
        except SQLAlchemyError:
            logger.error("Saving field definitions failed", exc_info=True)
            self.session.rollback()
            raise

    def upsert_definition(self, definition):
        """Insert or update the definition keyed by (entity_type, field_name).

        Raises DefinitionValidationError without writing anything when the
        name is blank, collides with another active field of the same entity
        type (ignoring case) or a dropdown has no options.
        """
        self._normalize(definition)
        errors = self.validate(definition)
        if errors:
            raise DefinitionValidationError(errors)

        saved = self._apply(definition)
        self._commit()
        return saved

    def deactivate(self, entity_type, field_name):
        """Hide a field from editors. Stored values are left untouched."""
        definition = self.get_definition(entity_type, field_name)
        if definition is None:
            return False
        definition.is_active = False
        definition.modified_at = datetime.utcnow()
        self._commit()
        logger.info("Deactivated field %s.%s", entity_type, field_name)
        return True

    def reorder(self, entity_type, field_names):
        definitions = {d.field_name: d for d in self.get_definitions(entity_type)}
        order = 0
        for field_name in field_names:
            definition = definitions.get(field_name)
            if definition is None:
                continue
            order += 1
            definition.display_order = order
            definition.modified_at = datetime.utcnow()
        self._commit()
        return self.get_definitions(entity_type)

    def export_definitions(self):
        definitions = [
            definition.to_dict()
            for definitions in self.get_all_definitions().values()
            for definition in definitions
        ]
        return json.dumps(definitions, indent=2)

    def import_definitions(self, text, overwrite_existing=False):
        """Load definitions exported by :meth:`export_definitions`.

        Existing fields are only replaced when ``overwrite_existing`` is set.
        Returns how many definitions were created or updated. An invalid
        document raises DefinitionValidationError and nothing is written.
        """
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise DefinitionValidationError(f"Invalid schema file: {e}")
        if not isinstance(data, list):
            raise DefinitionValidationError("Invalid schema file: expected a list of fields.")
        if not data:
            return 0

        incoming = []
        errors = []
        for item in data:
            if not isinstance(item, dict):
                errors.append("Invalid schema file: every field must be an object.")
                continue
            try:
                definition = FieldDefinition.from_dict(item)
            except ValueError as e:
                errors.append(str(e))
                continue
            definition.is_active = True
            self._normalize(definition)
            if self.get_definition(definition.entity_type, definition.field_name) is not None \
                    and not overwrite_existing:
                continue
            errors.extend(self.validate(definition, pending=incoming))
            incoming.append(definition)

        if errors:
            raise DefinitionValidationError(errors)

        for definition in incoming:
            self._apply(definition)
        self._commit()
        logger.info("Imported %d field definitions", len(incoming))
        return len(incoming)
