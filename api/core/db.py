"""
Async database access (raw SQL) using asyncpg.

`Database` owns the connection pool. FastAPI creates one per app, connects it
in the lifespan (see `api/main.py`) and hands it to routes through the
`get_database` dependency.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...

Every statement inherits the pool's `command_timeout`, so a stuck query ends
as `StoreTimeoutError` instead of hanging the request.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg
from fastapi import Request

from .config import Settings
from .errors import StoreError, StoreTimeoutError, StoreUnavailableError

logger = logging.getLogger(__name__)

_CONNECT_ERRORS = (OSError, asyncio.TimeoutError, asyncpg.PostgresError, asyncpg.InterfaceError)


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _translate(exc: BaseException) -> StoreError | None:
    """
    Map a driver/transport exception to the store error taxonomy.
    Returns None for anything that is not a database failure.
    """
    # TimeoutError is an OSError subclass on 3.11+, so check it first.
    if isinstance(exc, (asyncio.TimeoutError, asyncpg.exceptions.QueryCanceledError)):
        return StoreTimeoutError()
    if isinstance(exc, asyncpg.exceptions.PostgresConnectionError):
        return StoreUnavailableError()
    if isinstance(exc, asyncpg.PostgresError):
        return StoreError(f"Database statement failed: {exc}")
    if isinstance(exc, (asyncpg.InterfaceError, OSError)):
        return StoreUnavailableError()
    return None


class Database:
    def __init__(self, settings: Settings):
        self.settings = settings
        self._pool: asyncpg.Pool | None = None

    def _pool_kwargs(self) -> dict[str, Any]:
        s = self.settings
        kwargs: dict[str, Any] = {
            "min_size": min(s.pool_min_size, s.pool_max_size),
            "max_size": s.pool_max_size,
            "command_timeout": s.command_timeout_s,
        }
        if s.database_url:
            kwargs["dsn"] = _sanitize_database_url(s.database_url)
        else:
            kwargs.update(
                host=s.db_host,
                port=s.db_port,
                user=s.db_user,
                password=s.db_password,
                database=s.db_name,
            )
        return kwargs

    async def connect(self, *, max_attempts: int | None = None) -> None:
        """
        Create the pool, retrying with a fixed delay until the database answers.

        Retries forever unless `max_attempts` is given.
        """
        if self._pool is not None:
            return None

        delay = self.settings.connect_retry_delay_s
        attempt = 0
        while True:
            attempt += 1
            try:
                self._pool = await asyncpg.create_pool(**self._pool_kwargs())
            except _CONNECT_ERRORS as exc:
                if max_attempts is not None and attempt >= max_attempts:
                    logger.error("db_connect_gave_up attempts=%s error=%s", attempt, exc)
                    raise StoreUnavailableError() from exc
                logger.warning("db_connect_failed attempt=%s retry_in_s=%s error=%s", attempt, delay, exc)
                await asyncio.sleep(delay)
                continue

            logger.info("db_connected attempts=%s max_pool_size=%s", attempt, self.settings.pool_max_size)
            return None

    async def close(self) -> None:
        if self._pool is None:
            return None
        await self._pool.close()
        self._pool = None
        logger.info("db_closed")

    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("DB pool is not initialized. Call connect() on startup.")
        return self._pool

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[asyncpg.Connection]:
        """
        Borrow a pooled connection for read-only work.
        """
        try:
            async with self.pool().acquire() as conn:
                yield conn
        except Exception as exc:
            store_error = _translate(exc)
            if store_error is None:
                raise
            raise store_error from exc

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """
        Borrow a pooled connection inside a transaction.

        Commits when the block exits normally. Any exception (domain or driver)
        rolls the whole block back before it propagates.
        """
        try:
            async with self.pool().acquire() as conn:
                async with conn.transaction():
                    yield conn
        except Exception as exc:
            store_error = _translate(exc)
            if store_error is None:
                raise
            logger.warning("transaction_rolled_back error=%s", exc)
            raise store_error from exc


def get_database(request: Request) -> Database:
    return request.app.state.db


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


async def fetch_one(conn: asyncpg.Connection, sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    row = await conn.fetchrow(sql, *args)
    return _record_to_dict(row) if row is not None else None


async def fetch_all(conn: asyncpg.Connection, sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    rows = await conn.fetch(sql, *args)
    return [_record_to_dict(r) for r in rows]


async def fetch_val(conn: asyncpg.Connection, sql: str, *args: Any) -> Any:
    return await conn.fetchval(sql, *args)


async def execute(conn: asyncpg.Connection, sql: str, *args: Any) -> None:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL). No result returned.
    """
    await conn.execute(sql, *args)


def set_clause(changes: dict[str, Any], allowed: frozenset[str], *, first_placeholder: int = 1) -> tuple[str, list[Any]]:
    """
    Build a parameterized `col = $n, ...` clause for a partial UPDATE.

    Column names come from `allowed` only; values are always bound, never
    interpolated into the SQL text.
    """
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Columns not updatable: {sorted(unknown)}")
    if not changes:
        raise ValueError("set_clause called with no changes.")

    parts: list[str] = []
    values: list[Any] = []
    for i, (column, value) in enumerate(changes.items(), start=first_placeholder):
        parts.append(f"{column} = ${i}")
        values.append(value)
    return ", ".join(parts), values
