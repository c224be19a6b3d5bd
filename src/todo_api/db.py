from __future__ import annotations

import datetime as dt
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import pymongo
from pymongo import MongoClient, ReturnDocument
from pymongo.collection import Collection

from .models import Status, TodoEntity, validate_todo_fields
from .repositories import ListQuery, Repository
from .schemas import TodoCreate, TodoUpdate
from .settings import Settings
from .utils import as_utc, parse_object_id, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Fields:
    collection: str = "todos"
    id: str = "_id"
    title: str = "title"
    description: str = "description"
    category: str = "category"
    status: str = "status"
    created_at: str = "createdAt"
    modified_at: str = "modifiedAt"


_F = _Fields()


# PUBLIC_INTERFACE
def build_todo_filter(query: ListQuery) -> Dict[str, Any]:
    """
    Translate a ListQuery into a MongoDB filter document.

    Completed todos are excluded unless explicit statuses are requested. The
    search text is escaped so it always matches literally.
    """
    mongo_filter: Dict[str, Any] = {_F.status: {"$ne": Status.COMPLETED.value}}

    if query.search:
        pattern = re.escape(query.search)
        mongo_filter["$or"] = [
            {_F.title: {"$regex": pattern, "$options": "i"}},
            {_F.description: {"$regex": pattern, "$options": "i"}},
        ]

    if query.category:
        mongo_filter[_F.category] = query.category

    if query.statuses:
        mongo_filter[_F.status] = {"$in": list(query.statuses)}

    if query.has_date_range:
        mongo_filter[_F.modified_at] = {"$gte": query.start_date, "$lte": query.end_date}

    return mongo_filter


class MongoRepository(Repository):
    """
    Repository storing todos as documents in a MongoDB collection.
    """

    def __init__(
        self,
        collection: Collection,
        client: Optional[MongoClient] = None,
        clock: Callable[[], dt.datetime] = utcnow,
    ) -> None:
        self._collection = collection
        self._client = client
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "MongoRepository":
        client: MongoClient = MongoClient(settings.mongo_uri, tz_aware=True, tzinfo=dt.timezone.utc)
        collection = client[settings.mongo_db_name][_F.collection]
        logger.info("Using MongoDB collection %s.%s", settings.mongo_db_name, _F.collection)
        repo = cls(collection=collection, client=client)
        repo.ensure_indexes()
        return repo

    def ensure_indexes(self) -> None:
        self._collection.create_index([(_F.status, pymongo.ASCENDING)])
        self._collection.create_index([(_F.created_at, pymongo.ASCENDING), (_F.id, pymongo.ASCENDING)])
        self._collection.create_index([(_F.modified_at, pymongo.ASCENDING)])

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def _document_to_entity(self, doc: Dict[str, Any]) -> TodoEntity:
        return {
            "id": str(doc[_F.id]),
            "title": doc[_F.title],
            "description": doc[_F.description],
            "category": doc[_F.category],
            "status": doc[_F.status],
            "created_at": as_utc(doc[_F.created_at]),
            "modified_at": as_utc(doc[_F.modified_at]),
        }

    def create(self, data: TodoCreate) -> TodoEntity:
        fields = validate_todo_fields(dict(data))
        fields.setdefault("status", Status.NOT_STARTED.value)
        now = self._clock()
        document = {
            _F.title: fields["title"],
            _F.description: fields["description"],
            _F.category: fields["category"],
            _F.status: fields["status"],
            _F.created_at: now,
            _F.modified_at: now,
        }
        result = self._collection.insert_one(document)
        document[_F.id] = result.inserted_id
        return self._document_to_entity(document)

    def update(self, todo_id: str, data: TodoUpdate) -> Optional[TodoEntity]:
        oid = parse_object_id(todo_id)
        changes = validate_todo_fields(data.changes(), partial=True)
        changes[_F.modified_at] = self._clock()
        doc = self._collection.find_one_and_update(
            {_F.id: oid},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        return self._document_to_entity(doc) if doc else None

    def delete(self, todo_id: str) -> bool:
        result = self._collection.delete_one({_F.id: parse_object_id(todo_id)})
        return result.deleted_count > 0

    def list(self, query: Optional[ListQuery] = None) -> Tuple[List[TodoEntity], int]:
        q = query or ListQuery()
        mongo_filter = build_todo_filter(q)

        total = self._collection.count_documents(mongo_filter)
        cursor = (
            self._collection.find(mongo_filter)
            .sort([(_F.created_at, pymongo.ASCENDING), (_F.id, pymongo.ASCENDING)])
            .skip(max(q.offset, 0))
            .limit(max(q.limit, 0))
        )
        return [self._document_to_entity(doc) for doc in cursor], total
