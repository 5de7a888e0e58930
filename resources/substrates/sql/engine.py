"""SQLAlchemy engine construction for the shared SQL substrate."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Connection, Engine, create_engine, event
from sqlalchemy.engine import make_url

from resources.substrates.sql.config import SqlSettings


def create_sql_engine(settings: SqlSettings) -> Engine:
    """Construct a configured SQLAlchemy engine for the settings URL.

    SQLite URLs get the dialect's default pool; every other backend gets the
    configured queue pool and connect timeout.
    """
    url = make_url(settings.url)
    if url.get_backend_name() == "sqlite":
        engine = create_engine(url, echo=settings.echo)
        _enable_sqlite_transactions(engine)
        return engine

    connect_args: dict[str, Any] = {}
    if url.get_backend_name() == "postgresql":
        connect_args["connect_timeout"] = int(settings.connect_timeout_seconds)
    return create_engine(
        url,
        echo=settings.echo,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_timeout=settings.pool_timeout_seconds,
        pool_pre_ping=settings.pool_pre_ping,
        connect_args=connect_args,
    )


def _enable_sqlite_transactions(engine: Engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT scopes behave on pysqlite."""
    if engine.dialect.driver != "pysqlite":
        return

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(
        dbapi_connection: Any, connection_record: Any
    ) -> None:
        del connection_record
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection: Connection) -> None:
        connection.exec_driver_sql("BEGIN")
