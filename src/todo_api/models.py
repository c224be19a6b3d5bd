from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, TypedDict

from .errors import TodoValidationError


class Category(str, Enum):
    HOMEWORK = "Homework"
    OFFICE_WORK = "Office Work"


class Status(str, Enum):
    NOT_STARTED = "Not Started"
    PENDING = "Pending"
    COMPLETED = "Completed"


CATEGORY_VALUES = tuple(c.value for c in Category)
STATUS_VALUES = tuple(s.value for s in Status)

# Fields a client may set; everything else on a todo is owned by the store.
UPDATABLE_FIELDS = ("title", "description", "category", "status")
REQUIRED_FIELDS = ("title", "description", "category")


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    Storage-agnostic representation of a Todo item as handed around by repositories.

    Fields:
    - id: ObjectId hex string assigned by the store
    - title: Short title (trimmed, non-empty)
    - description: Free text description (non-empty)
    - category: One of Category values
    - status: One of Status values
    - created_at: UTC creation timestamp, never modified
    - modified_at: UTC timestamp of the last write
    """

    id: str
    title: str
    description: str
    category: str
    status: str
    created_at: datetime
    modified_at: datetime


def _enum_message(value: Any, allowed: tuple) -> str:
    options = ", ".join(f"'{v}'" for v in allowed)
    return f"'{value}' is not one of {options}"


# PUBLIC_INTERFACE
def validate_todo_fields(fields: Mapping[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Validate todo fields right before they are written to a store.

    Args:
        fields: Candidate field values keyed by entity field name.
        partial: When True only the provided fields are checked (updates);
            otherwise the required fields must all be present (inserts).

    Returns:
        A normalized copy of the whitelisted fields (title trimmed).

    Raises:
        TodoValidationError listing every violated field.
    """
    errors: Dict[str, str] = {}
    cleaned: Dict[str, Any] = {}

    if not partial:
        for name in REQUIRED_FIELDS:
            if fields.get(name) is None:
                errors[name] = "field is required"

    for name in UPDATABLE_FIELDS:
        if name not in fields or name in errors:
            continue
        value = fields[name]
        if isinstance(value, Enum):
            value = value.value

        if value is None:
            errors[name] = "field cannot be null"
        elif name in ("title", "description"):
            if not isinstance(value, str):
                errors[name] = "must be a string"
                continue
            if name == "title":
                value = value.strip()
            if value == "":
                errors[name] = "must not be empty"
        elif name == "category" and value not in CATEGORY_VALUES:
            errors[name] = _enum_message(value, CATEGORY_VALUES)
        elif name == "status" and value not in STATUS_VALUES:
            errors[name] = _enum_message(value, STATUS_VALUES)

        if name not in errors:
            cleaned[name] = value

    if errors:
        raise TodoValidationError(errors)
    return cleaned
