"""Domain layer: errors and schemas."""

from .errors import CapacityExceededError, FormBuilderError, StorageError
from .schemas import (
    Field,
    FieldType,
    FormSubmission,
    Section,
    Template,
    ValidationError,
    field_from_dict,
)

__all__ = [
    "FormBuilderError",
    "CapacityExceededError",
    "StorageError",
    "Field",
    "FieldType",
    "FormSubmission",
    "Section",
    "Template",
    "ValidationError",
    "field_from_dict",
]
