"""Shared pytest fixtures: in-memory stand-ins for the REST API and the catalog."""

from contextlib import contextmanager
from typing import Any

import pytest
from sqlalchemy.exc import SQLAlchemyError

from supabase_extractor.errors import RestApiError
from supabase_extractor.models import TableDescriptor


class FakeRestClient:
    """Serves rows from memory and records every range request."""

    def __init__(self, tables: dict[str, list[dict]] | None = None, rpc_rows: Any = None):
        self.tables = tables or {}
        self.rpc_rows = rpc_rows
        self.failing: set[str] = set()
        self.requests: list[tuple[str, int, int]] = []
        self.rpc_calls: list[str] = []

    def rpc(self, function, params=None):
        self.rpc_calls.append(function)
        if isinstance(self.rpc_rows, Exception):
            raise self.rpc_rows
        if self.rpc_rows is None:
            raise RestApiError(f"rpc {function} failed: function not found", status_code=404)
        return self.rpc_rows

    def select_range(self, table, start, end):
        self.requests.append((table, start, end))
        if table in self.failing:
            raise RestApiError(f"select from {table} failed: permission denied", status_code=401)
        return self.tables.get(table, [])[start:end + 1]


class FakeResult:
    def __init__(self, rows):
        self._rows = rows

    def mappings(self):
        return self

    def all(self):
        return list(self._rows)


class FakeConnection:
    def __init__(self, engine):
        self.engine = engine

    def execute(self, statement, params=None):
        sql = str(statement)
        self.engine.executed.append((sql, params or {}))
        for marker, handler in self.engine.handlers.items():
            if marker in sql:
                if isinstance(handler, Exception):
                    raise handler
                return FakeResult(handler(params or {}) if callable(handler) else handler)
        return FakeResult([])


class FakeEngine:
    """Answers catalog queries by matching a marker substring in the SQL text."""

    def __init__(self, handlers: dict[str, Any] | None = None):
        self.handlers = handlers or {}
        self.executed: list[tuple[str, dict]] = []
        self.opened = 0
        self.closed = 0

    @contextmanager
    def connect(self):
        self.opened += 1
        try:
            yield FakeConnection(self)
        finally:
            self.closed += 1


def catalog_handlers(columns: dict[str, list[dict]], enums=None, indexes=None, tables=None) -> dict[str, Any]:
    """Build FakeEngine handlers for the queries the extractor issues."""
    def column_rows(params):
        return columns.get(params.get("table"), [])

    return {
        "information_schema.tables": tables if tables is not None else [
            {"table_name": name, "table_schema": "public"} for name in sorted(columns)
        ],
        "pg_enum": enums or [],
        "information_schema.columns": column_rows,
        "pg_indexes": indexes or [],
    }


def column(name, data_type, nullable=True, default=None, udt_name=None, udt_schema="pg_catalog", max_length=None):
    return {
        "column_name": name,
        "data_type": data_type,
        "udt_schema": udt_schema,
        "udt_name": udt_name or data_type,
        "character_maximum_length": max_length,
        "is_nullable": "YES" if nullable else "NO",
        "column_default": default,
    }


@pytest.fixture
def users_rows():
    return [{"id": 1, "name": "Ann"}, {"id": 2, "name": "O'Brien"}]


@pytest.fixture
def users_and_tags():
    return [TableDescriptor("users"), TableDescriptor("tags")]


@pytest.fixture
def fake_client(users_rows):
    return FakeRestClient(tables={"users": users_rows, "tags": []})


@pytest.fixture
def catalog_columns():
    return {
        "users": [
            column("id", "integer", nullable=False, default="nextval('users_id_seq'::regclass)", udt_name="int4"),
            column("name", "text", udt_name="text"),
        ],
        "tags": [
            column("id", "uuid", nullable=False, default="uuid_generate_v4()", udt_name="uuid"),
            column("labels", "ARRAY", udt_name="_text"),
        ],
    }


@pytest.fixture
def fake_engine(catalog_columns):
    return FakeEngine(catalog_handlers(catalog_columns))


@pytest.fixture
def failing_engine():
    return FakeEngine({"": SQLAlchemyError("connection refused")})
