from __future__ import annotations

from typing import Dict, Mapping


# PUBLIC_INTERFACE
class TodoValidationError(ValueError):
    """
    Raised when a todo (or a request parameter describing todos) violates a constraint.

    `fields` maps each offending field name to a human readable message. The
    exception message names every violated field so it can be returned as-is in
    the error envelope.
    """

    def __init__(self, fields: Mapping[str, str]) -> None:
        self.fields: Dict[str, str] = dict(fields)
        details = ", ".join(f"{name}: {msg}" for name, msg in self.fields.items())
        super().__init__(f"Todo validation failed: {details}")


# PUBLIC_INTERFACE
class TodoNotFoundError(LookupError):
    """Raised when an update or delete references an id that is not stored."""

    def __init__(self, todo_id: str) -> None:
        self.todo_id = todo_id
        super().__init__(f"Todo {todo_id} not found")
