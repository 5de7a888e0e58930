"""Shared SQL substrate primitives for tablefs components."""

from resources.substrates.sql.component import RESOURCE_COMPONENT_ID
from resources.substrates.sql.config import SqlSettings, resolve_sql_settings
from resources.substrates.sql.engine import create_sql_engine
from resources.substrates.sql.errors import is_unique_violation, normalize_sql_error
from resources.substrates.sql.health import ping
from resources.substrates.sql.session import (
    Bind,
    read_connection,
    transactional_connection,
)

__all__ = [
    "RESOURCE_COMPONENT_ID",
    "Bind",
    "SqlSettings",
    "create_sql_engine",
    "is_unique_violation",
    "normalize_sql_error",
    "ping",
    "read_connection",
    "resolve_sql_settings",
    "transactional_connection",
]
