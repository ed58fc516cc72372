# app/errors.py

class CustomFieldError(Exception):
    """Base class for custom field engine errors"""


class DefinitionValidationError(CustomFieldError, ValueError):
    """Raised when a field definition cannot be saved. Nothing is written."""

    def __init__(self, errors):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__('; '.join(self.errors))


class RequiredFieldsMissing(CustomFieldError):
    """Raised by an entity editor when required custom fields are blank."""

    def __init__(self, missing_labels):
        self.missing_labels = list(missing_labels)
        labels = ', '.join(f"'{label}'" for label in self.missing_labels)
        super().__init__(f"Required fields are missing: {labels}")
