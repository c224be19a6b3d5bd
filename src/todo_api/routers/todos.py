from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status

from ..errors import TodoNotFoundError
from ..repositories import ListQuery, Repository
from ..schemas import (
    DeletedEnvelope,
    TodoCreate,
    TodoEnvelope,
    TodoListEnvelope,
    TodoOut,
    TodoUpdate,
)
from ..utils import (
    pagination_hints,
    parse_category,
    parse_date_param,
    parse_page_param,
    parse_status_list,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/todos",
    tags=["todos"],
)


# PUBLIC_INTERFACE
def get_repository(request: Request) -> Repository:
    """
    Dependency returning the repository attached to the running application.
    """
    return request.app.state.repository


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=TodoListEnvelope,
    response_model_exclude_none=True,
    summary="List Todos",
    description=(
        "List todos with optional filters and pagination.\n\n"
        "Query parameters:\n"
        "- search: case-insensitive text matched against title or description\n"
        "- category: exact category\n"
        "- status: comma-separated statuses; completed todos are hidden unless requested\n"
        "- start_date / end_date: inclusive modifiedAt range, applied when both are given\n"
        "- page: 1-based page number (default 1; unparsable or zero values use the default)\n"
        "- limit: page size (default 5; unparsable or zero values use the default)\n"
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        400: {"description": "Invalid query parameters"},
    },
)
def list_todos(
    search: Optional[str] = Query(None, description="Search text for title/description"),
    category: Optional[str] = Query(None, description="Filter by category (exact match)"),
    status_filter: Optional[str] = Query(None, alias="status", description="Comma-separated statuses"),
    start_date: Optional[str] = Query(None, description="Lower bound for modifiedAt (ISO8601)"),
    end_date: Optional[str] = Query(None, description="Upper bound for modifiedAt (ISO8601)"),
    page: Optional[str] = Query(None, description="Page number (default 1)"),
    limit: Optional[str] = Query(None, description="Maximum number of items to return (default 5)"),
    repo: Repository = Depends(get_repository),
) -> TodoListEnvelope:
    """
    List todos with pagination and filters.
    """
    page_number = parse_page_param(page, 1, "page")
    page_size = parse_page_param(limit, 5, "limit")
    query = ListQuery(
        search=search if search else None,
        category=parse_category(category),
        statuses=parse_status_list(status_filter),
        start_date=parse_date_param(start_date, "start_date"),
        end_date=parse_date_param(end_date, "end_date"),
        page=page_number,
        limit=page_size,
    )
    items, total = repo.list(query)
    return TodoListEnvelope(
        count=len(items),
        pagination=pagination_hints(page=page_number, limit=page_size, total=total),
        data=[TodoOut(**it) for it in items],
    )


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TodoEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item and return the created resource.",
    responses={
        201: {"description": "Todo created successfully"},
        400: {"description": "Validation error"},
    },
)
def create_todo(payload: TodoCreate, repo: Repository = Depends(get_repository)) -> TodoEnvelope:
    """
    Create a new Todo.
    """
    logger.debug("Create todo payload: %s", payload.model_dump())
    created = repo.create(payload)
    return TodoEnvelope(data=TodoOut(**created))


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoEnvelope,
    summary="Update Todo",
    description=(
        "Update the provided fields of a Todo item. modifiedAt is refreshed on every call; "
        "id, createdAt and unknown fields cannot be changed."
    ),
    responses={
        200: {"description": "Todo updated"},
        400: {"description": "Validation error or malformed id"},
        404: {"description": "Todo not found"},
    },
)
def update_todo(
    todo_id: str,
    payload: Optional[TodoUpdate] = Body(None),
    repo: Repository = Depends(get_repository),
) -> TodoEnvelope:
    """
    Partial or full update of a Todo item. A missing body only refreshes modifiedAt.
    """
    updated = repo.update(todo_id, payload if payload is not None else TodoUpdate())
    if not updated:
        raise TodoNotFoundError(todo_id)
    return TodoEnvelope(data=TodoOut(**updated))


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=DeletedEnvelope,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={
        200: {"description": "Todo deleted"},
        400: {"description": "Malformed id"},
        404: {"description": "Todo not found"},
    },
)
def delete_todo(todo_id: str, repo: Repository = Depends(get_repository)) -> DeletedEnvelope:
    """
    Delete a Todo. Returns an empty data object on success, 404 if not found.
    """
    if not repo.delete(todo_id):
        raise TodoNotFoundError(todo_id)
    return DeletedEnvelope()
