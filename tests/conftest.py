from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import pytest
from fastapi.testclient import TestClient

from main import create_app
from verification import repository as verification_repository


class FakeConnection:
    """
    Stands in for an asyncpg connection: records every statement and answers
    from per-method queues of scripted results.
    """

    def __init__(self, *, fail_on: str | None = None, error: Exception | None = None):
        self.statements: list[tuple[str, tuple[Any, ...]]] = []
        self.fetchval_results: list[Any] = []
        self.fetchrow_results: list[Any] = []
        self.fetch_results: list[list[dict]] = []
        self.fail_on = fail_on
        self.error = error or RuntimeError("statement failed")

    def _record(self, sql: str, args: tuple[Any, ...]) -> None:
        normalized = " ".join(sql.split())
        self.statements.append((normalized, args))
        if self.fail_on and self.fail_on in normalized:
            raise self.error

    def sql(self) -> list[str]:
        return [statement for statement, _ in self.statements]

    async def fetchval(self, sql: str, *args: Any) -> Any:
        self._record(sql, args)
        return self.fetchval_results.pop(0) if self.fetchval_results else None

    async def fetchrow(self, sql: str, *args: Any) -> Any:
        self._record(sql, args)
        return self.fetchrow_results.pop(0) if self.fetchrow_results else None

    async def fetch(self, sql: str, *args: Any) -> list[dict]:
        self._record(sql, args)
        return self.fetch_results.pop(0) if self.fetch_results else []

    async def execute(self, sql: str, *args: Any) -> str:
        self._record(sql, args)
        return "OK"


class FakeDatabase:
    """
    Same surface as core.db.Database, without a pool. Counts commits and
    rollbacks so tests can assert on transaction boundaries.
    """

    def __init__(self, conn: FakeConnection | None = None):
        self.conn = conn or FakeConnection()
        self.connected = False
        self.commits = 0
        self.rollbacks = 0

    async def connect(self, *, max_attempts: int | None = None) -> None:
        self.connected = True

    async def close(self) -> None:
        self.connected = False

    @asynccontextmanager
    async def connection(self):
        yield self.conn

    @asynccontextmanager
    async def transaction(self):
        try:
            yield self.conn
        except BaseException:
            self.rollbacks += 1
            raise
        self.commits += 1


@pytest.fixture
def fake_conn() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def fake_db(fake_conn: FakeConnection) -> FakeDatabase:
    return FakeDatabase(fake_conn)


@pytest.fixture
def store(monkeypatch):
    """
    In-memory answers for the verification predicates.

    `store["restaurants"]` is a set of ids, `store["dishes"]` maps dish id to
    its restaurant id.
    """
    state: dict[str, Any] = {"restaurants": set(), "dishes": {}}

    async def restaurant_exists(conn, restaurant_id):
        return restaurant_id in state["restaurants"]

    async def dish_exists(conn, dish_id):
        return dish_id in state["dishes"]

    async def dish_belongs_to_restaurant(conn, dish_id, restaurant_id):
        return state["dishes"].get(dish_id) == restaurant_id

    monkeypatch.setattr(verification_repository, "restaurant_exists", restaurant_exists)
    monkeypatch.setattr(verification_repository, "dish_exists", dish_exists)
    monkeypatch.setattr(verification_repository, "dish_belongs_to_restaurant", dish_belongs_to_restaurant)
    return state


@pytest.fixture
def client(fake_db: FakeDatabase):
    app = create_app(database=fake_db)
    with TestClient(app) as test_client:
        yield test_client
