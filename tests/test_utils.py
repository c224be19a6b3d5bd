from datetime import datetime, timedelta, timezone

import pytest

from todo_api.errors import TodoValidationError
from todo_api.models import Status, validate_todo_fields
from todo_api.settings import get_settings
from todo_api.utils import (
    as_utc,
    pagination_hints,
    parse_category,
    parse_date_param,
    parse_object_id,
    parse_page_param,
    parse_status_list,
    utcnow,
)


class TestPaginationHints:
    def test_first_page(self):
        assert pagination_hints(page=1, limit=5, total=12) == {"next": {"page": 2, "limit": 5}}

    def test_middle_page(self):
        assert pagination_hints(page=2, limit=5, total=12) == {
            "next": {"page": 3, "limit": 5},
            "prev": {"page": 1, "limit": 5},
        }

    def test_last_page(self):
        assert pagination_hints(page=3, limit=5, total=12) == {"prev": {"page": 2, "limit": 5}}

    def test_exact_fit_has_no_next(self):
        assert pagination_hints(page=2, limit=5, total=10) == {"prev": {"page": 1, "limit": 5}}

    def test_single_page(self):
        assert pagination_hints(page=1, limit=5, total=3) == {}


class TestParseDateParam:
    def test_plain_date_is_midnight_utc(self):
        assert parse_date_param("2024-01-31", "end_date") == datetime(2024, 1, 31, tzinfo=timezone.utc)

    def test_zulu_and_offsets(self):
        assert parse_date_param("2024-01-31T10:00:00Z", "x") == datetime(2024, 1, 31, 10, tzinfo=timezone.utc)
        assert parse_date_param("2024-01-31T12:00:00+02:00", "x") == datetime(2024, 1, 31, 10, tzinfo=timezone.utc)

    def test_naive_datetime_is_utc(self):
        assert parse_date_param("2024-01-31T10:00:00", "x").tzinfo == timezone.utc

    def test_blank_is_none(self):
        assert parse_date_param(None, "x") is None
        assert parse_date_param("  ", "x") is None

    def test_malformed(self):
        with pytest.raises(TodoValidationError) as excinfo:
            parse_date_param("31/01/2024", "start_date")
        assert "start_date" in excinfo.value.fields


class TestParseStatusList:
    def test_split_and_trim(self):
        assert parse_status_list("Completed, Pending,") == ("Completed", "Pending")

    def test_blank_means_absent(self):
        assert parse_status_list(None) is None
        assert parse_status_list(" , ") is None

    def test_unknown_values_pass_through(self):
        assert parse_status_list("Pending,Blocked") == ("Pending", "Blocked")


def test_parse_category():
    assert parse_category("Office Work") == "Office Work"
    assert parse_category("") is None
    assert parse_category("office work") == "office work"


class TestParsePageParam:
    @pytest.mark.parametrize("value", [None, "", "abc", "0", "-0"])
    def test_falls_back_to_default(self, value):
        assert parse_page_param(value, 5, "limit") == 5

    @pytest.mark.parametrize("value,expected", [("3", 3), (" 7", 7), ("3abc", 3), ("+4", 4), ("2000", 2000)])
    def test_leading_integer_is_used(self, value, expected):
        assert parse_page_param(value, 1, "page") == expected

    def test_negative_rejected(self):
        with pytest.raises(TodoValidationError) as excinfo:
            parse_page_param("-1", 1, "page")
        assert "page" in excinfo.value.fields


def test_as_utc():
    assert as_utc(datetime(2024, 1, 1, 10)) == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
    shifted = as_utc(datetime(2024, 1, 1, 12, tzinfo=timezone(timedelta(hours=2))))
    assert shifted.tzinfo == timezone.utc
    assert shifted.hour == 10


def test_parse_object_id():
    assert str(parse_object_id("65a1f0c2e4b0a1b2c3d4e5f6")) == "65a1f0c2e4b0a1b2c3d4e5f6"
    with pytest.raises(TodoValidationError):
        parse_object_id("65a1f0c2e4b0a1b2c3d4e5fz")


def test_utcnow_has_millisecond_precision():
    now = utcnow()
    assert now.tzinfo is not None
    assert now.microsecond % 1000 == 0
    assert abs(datetime.now(timezone.utc) - now) < timedelta(seconds=5)


class TestValidateTodoFields:
    def test_reports_every_violation(self):
        with pytest.raises(TodoValidationError) as excinfo:
            validate_todo_fields({"title": "", "category": "Chores", "status": "Done"})
        assert set(excinfo.value.fields) == {"title", "description", "category", "status"}
        assert str(excinfo.value).startswith("Todo validation failed: ")

    def test_partial_checks_only_given_fields(self):
        assert validate_todo_fields({"status": Status.PENDING}, partial=True) == {"status": "Pending"}

    def test_drops_non_whitelisted_fields(self):
        cleaned = validate_todo_fields(
            {"title": " t ", "description": "d", "category": "Homework", "createdAt": "x", "_id": 1}
        )
        assert cleaned == {"title": "t", "description": "d", "category": "Homework"}

    def test_null_rejected_on_partial(self):
        with pytest.raises(TodoValidationError):
            validate_todo_fields({"description": None}, partial=True)


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ["PERSISTENCE_BACKEND", "MONGO_URI", "MONGO_DB_NAME", "PORT", "CORS_ALLOW_ORIGINS", "LOG_LEVEL"]:
            monkeypatch.setenv(name, "")
        settings = get_settings()
        assert settings.persistence_backend == "mongo"
        assert settings.mongo_uri == "mongodb://localhost:27017"
        assert settings.mongo_db_name == "todos"
        assert settings.port == 5000
        assert settings.cors_allow_origins == ["*"]
        assert settings.log_level == "INFO"

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("PERSISTENCE_BACKEND", "Memory")
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test")
        settings = get_settings()
        assert settings.persistence_backend == "memory"
        assert settings.port == 8080
        assert settings.cors_allow_origins == ["http://a.test", "http://b.test"]

    def test_invalid_values_fall_back(self, monkeypatch):
        monkeypatch.setenv("PERSISTENCE_BACKEND", "sqlite")
        monkeypatch.setenv("PORT", "eighty")
        settings = get_settings()
        assert settings.persistence_backend == "mongo"
        assert settings.port == 5000
