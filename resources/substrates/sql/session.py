"""Connection scope helpers for the shared SQL substrate.

Stores accept either an ``Engine`` (each call owns a pooled connection) or a
caller-owned ``Connection`` (calls join the caller's unit of work and never
close the connection).
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Union

from sqlalchemy import Connection, Engine

Bind = Union[Engine, Connection]


@contextmanager
def transactional_connection(bind: Bind) -> Iterator[Connection]:
    """Yield a connection inside a transaction that commits or rolls back as a unit.

    On a caller-owned connection with an open transaction the scope is a
    SAVEPOINT, so a failed statement rolls back only this scope.
    """
    if isinstance(bind, Engine):
        with bind.begin() as connection:
            yield connection
        return

    if bind.in_transaction():
        with bind.begin_nested():
            yield bind
        return

    with bind.begin():
        yield bind


@contextmanager
def read_connection(bind: Bind) -> Iterator[Connection]:
    """Yield a connection for reads.

    An engine-owned connection goes back to the pool on exit. A caller-owned
    connection is reused as-is inside an open transaction, otherwise wrapped in
    a short transaction so no implicit one is left behind.
    """
    if isinstance(bind, Engine):
        with bind.connect() as connection:
            yield connection
        return

    if bind.in_transaction():
        yield bind
        return

    with bind.begin():
        yield bind
