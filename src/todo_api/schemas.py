from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .models import Category, Status


def _clean_title(v: Optional[str]) -> str:
    if v is None:
        raise ValueError("title cannot be null")
    s = v.strip()
    if not s:
        raise ValueError("title must not be empty")
    return s


def _reject_null(v: Any, name: str) -> Any:
    if v is None:
        raise ValueError(f"{name} cannot be null")
    return v


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item.
    """

    model_config = ConfigDict(
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "category": "Homework",
                "status": "Not Started",
            }
        },
    )

    title: str = Field(..., description="Short title for the todo item", min_length=1)
    description: str = Field(..., description="Detailed description", min_length=1)
    category: Category = Field(..., description="Todo category")
    status: Status = Field(default=Status.NOT_STARTED, description="Progress status")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Strip whitespace and reject blank titles."""
        return _clean_title(v)


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Schema for updating an existing Todo item.
    All fields are optional; only provided fields will be updated. Keys other
    than the declared fields are ignored.
    """

    model_config = ConfigDict(
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "status": "Pending",
            }
        },
    )

    title: Optional[str] = Field(default=None, description="Short title for the todo item", min_length=1)
    description: Optional[str] = Field(default=None, description="Detailed description", min_length=1)
    category: Optional[Category] = Field(default=None, description="Todo category")
    status: Optional[Status] = Field(default=None, description="Progress status")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> str:
        """A provided title is trimmed and must stay non-empty."""
        return _clean_title(v)

    @field_validator("description", "category", "status")
    @classmethod
    def validate_not_null(cls, v: Any, info: ValidationInfo) -> Any:
        """Explicit nulls would erase required fields."""
        return _reject_null(v, info.field_name)

    def changes(self) -> Dict[str, Any]:
        """Return only the fields the client actually sent."""
        return {name: getattr(self, name) for name in self.model_fields_set}


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "65a1f0c2e4b0a1b2c3d4e5f6",
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "category": "Homework",
                "status": "Not Started",
                "createdAt": "2025-01-25T10:15:30.123000Z",
                "modifiedAt": "2025-01-26T09:00:00.000000Z",
            }
        },
    )

    id: str = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: str = Field(..., description="Detailed description")
    category: str = Field(..., description="Todo category")
    status: str = Field(..., description="Progress status")
    created_at: datetime = Field(..., alias="createdAt", description="Creation timestamp")
    modified_at: datetime = Field(..., alias="modifiedAt", description="Last update timestamp")


class PageRef(BaseModel):
    page: int
    limit: int


class Pagination(BaseModel):
    next: Optional[PageRef] = None
    prev: Optional[PageRef] = None


# PUBLIC_INTERFACE
class TodoEnvelope(BaseModel):
    """Envelope wrapping a single todo."""

    success: bool = True
    data: TodoOut


# PUBLIC_INTERFACE
class TodoListEnvelope(BaseModel):
    """
    Envelope for paginated list responses.
    """

    success: bool = True
    count: int = Field(..., description="Number of todos returned in this page")
    pagination: Pagination = Field(..., description="Hints for neighbouring pages")
    data: List[TodoOut] = Field(..., description="Todos in this page")


class DeletedEnvelope(BaseModel):
    success: bool = True
    data: Dict[str, Any] = Field(default_factory=dict)
