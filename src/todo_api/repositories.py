from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from threading import RLock
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from bson import ObjectId

from .models import Status, TodoEntity, validate_todo_fields
from .schemas import TodoCreate, TodoUpdate
from .settings import Settings
from .utils import parse_object_id, utcnow


@dataclass(frozen=True)
class ListQuery:
    """
    Filters and pagination for listing todos.

    `statuses` replaces the default exclusion of completed todos when given.
    The date range only applies when both ends are set.
    """
    search: Optional[str] = None
    category: Optional[str] = None
    statuses: Optional[Tuple[str, ...]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    page: int = 1
    limit: int = 5

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None and self.end_date is not None


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for todo storage backends."""

    @abstractmethod
    def create(self, data: TodoCreate) -> TodoEntity:
        """Validate, stamp and persist a new todo; return it with its assigned id."""

    @abstractmethod
    def update(self, todo_id: str, data: TodoUpdate) -> Optional[TodoEntity]:
        """
        Apply the provided fields and refresh modified_at in one write.
        Return the updated entity or None if not found.
        """

    @abstractmethod
    def delete(self, todo_id: str) -> bool:
        """Delete a TodoEntity by id. Return True if deleted, False if not found."""

    @abstractmethod
    def list(self, query: Optional[ListQuery] = None) -> Tuple[List[TodoEntity], int]:
        """
        Return one page of matching todos and the total count of matches.
        - Completed todos are hidden unless statuses are given explicitly
        - Case-insensitive substring search across title and description
        - Exact category match, inclusive modified_at range
        - Ordered by created_at, then id
        """

    def close(self) -> None:
        """Release any resources held by the backend."""


def matches_query(todo: TodoEntity, q: ListQuery) -> bool:
    """Evaluate the list filter for a single todo."""
    if q.statuses:
        if todo["status"] not in q.statuses:
            return False
    elif todo["status"] == Status.COMPLETED.value:
        return False

    if q.search:
        s = q.search.lower()
        if s not in todo["title"].lower() and s not in todo["description"].lower():
            return False

    if q.category and todo["category"] != q.category:
        return False

    if q.has_date_range and not (q.start_date <= todo["modified_at"] <= q.end_date):
        return False

    return True


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and local development.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._lock = RLock()
        self._items: Dict[ObjectId, TodoEntity] = {}
        self._clock = clock

    def create(self, data: TodoCreate) -> TodoEntity:
        fields = validate_todo_fields(dict(data))
        fields.setdefault("status", Status.NOT_STARTED.value)
        now = self._clock()
        oid = ObjectId()
        entity: TodoEntity = {
            "id": str(oid),
            "title": fields["title"],
            "description": fields["description"],
            "category": fields["category"],
            "status": fields["status"],
            "created_at": now,
            "modified_at": now,
        }
        with self._lock:
            self._items[oid] = entity
        return entity.copy()

    def update(self, todo_id: str, data: TodoUpdate) -> Optional[TodoEntity]:
        oid = parse_object_id(todo_id)
        changes = validate_todo_fields(data.changes(), partial=True)
        with self._lock:
            existing = self._items.get(oid)
            if existing is None:
                return None

            updated = existing.copy()
            updated.update(changes)  # type: ignore[typeddict-item]
            updated["modified_at"] = self._clock()

            self._items[oid] = updated
            return updated.copy()

    def delete(self, todo_id: str) -> bool:
        oid = parse_object_id(todo_id)
        with self._lock:
            return self._items.pop(oid, None) is not None

    def list(self, query: Optional[ListQuery] = None) -> Tuple[List[TodoEntity], int]:
        q = query or ListQuery()
        with self._lock:
            items: Iterable[TodoEntity] = [t for t in self._items.values() if matches_query(t, q)]
            ordered = sorted(items, key=lambda t: (t["created_at"], ObjectId(t["id"])))

            start = max(q.offset, 0)
            page = ordered[start:start + max(q.limit, 0)]

            # Return copies to avoid external mutation
            return [t.copy() for t in page], len(ordered)


# PUBLIC_INTERFACE
def build_repository(settings: Settings) -> Repository:
    """
    Construct the repository selected by settings.
    - mongo: MongoRepository connected to MONGO_URI / MONGO_DB_NAME
    - memory: InMemoryRepository
    """
    if settings.persistence_backend == "memory":
        return InMemoryRepository()

    from .db import MongoRepository

    return MongoRepository.from_settings(settings)
