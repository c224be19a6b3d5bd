from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId

from .errors import TodoValidationError


def utcnow() -> datetime:
    """Current time as an aware UTC datetime, truncated to what MongoDB can store."""
    now = datetime.now(timezone.utc)
    # BSON dates carry millisecond precision; keep in-memory and stored values identical.
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


# PUBLIC_INTERFACE
def parse_object_id(todo_id: str) -> ObjectId:
    """Convert a path identifier into an ObjectId, rejecting malformed values."""
    try:
        return ObjectId(todo_id)
    except (InvalidId, TypeError) as e:
        raise TodoValidationError({"id": f"'{todo_id}' is not a valid todo id"}) from e


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# PUBLIC_INTERFACE
def parse_date_param(value: Optional[str], name: str) -> Optional[datetime]:
    """
    Normalize a date query parameter into an aware UTC datetime.
    - Empty or missing values yield None.
    - ISO8601 datetimes are accepted (a trailing 'Z' is allowed); naive values are taken as UTC.
    - Plain dates ('2025-01-31') become midnight UTC of that day.
    """
    if value is None or value.strip() == "":
        return None

    s = value.strip()
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    try:
        return as_utc(datetime.fromisoformat(s))
    except ValueError:
        try:
            d = date.fromisoformat(s)
        except ValueError as e:
            raise TodoValidationError(
                {name: f"invalid date '{value}'; use an ISO8601 date or datetime (e.g. '2025-01-31')"}
            ) from e
        return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


# PUBLIC_INTERFACE
def parse_status_list(value: Optional[str]) -> Optional[Tuple[str, ...]]:
    """Split a comma separated status filter; None when nothing usable was supplied."""
    if value is None:
        return None
    statuses = tuple(part.strip() for part in value.split(",") if part.strip())
    if not statuses:
        return None
    return statuses


# PUBLIC_INTERFACE
def pagination_hints(page: int, limit: int, total: int) -> Dict[str, Any]:
    """
    Build the `next`/`prev` hints for an offset-paginated list.

    Args:
        page: 1-based page number that was served.
        limit: Page size that was applied.
        total: Number of records matching the query, ignoring pagination.

    Returns:
        Dict that contains `next` when records exist past this page and `prev`
        when this page does not start at the first record. Each hint is a
        dict of `page` and `limit`.
    """
    start_index = (page - 1) * limit
    end_index = page * limit
    hints: Dict[str, Any] = {}
    if end_index < total:
        hints["next"] = {"page": page + 1, "limit": limit}
    if start_index > 0:
        hints["prev"] = {"page": page - 1, "limit": limit}
    return hints


# PUBLIC_INTERFACE
def parse_category(value: Optional[str]) -> Optional[str]:
    """Exact-match category filter; blank values mean no filter. Unknown values simply match nothing."""
    if value is None or value.strip() == "":
        return None
    return value


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


# PUBLIC_INTERFACE
def parse_page_param(value: Optional[str], default: int, name: str) -> int:
    """
    Read a page/limit query parameter leniently.
    - Missing, unparsable or zero values fall back to `default`.
    - Leading digits are honoured ('3abc' -> 3).
    - Negative values are rejected.
    """
    if value is None:
        return default
    match = _LEADING_INT.match(value)
    if not match:
        return default
    number = int(match.group(1))
    if number == 0:
        return default
    if number < 0:
        raise TodoValidationError({name: f"must be a positive integer, got '{value}'"})
    return number
