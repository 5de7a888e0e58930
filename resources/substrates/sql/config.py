"""Pydantic settings for the shared SQL substrate."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.tablefs_shared.config import TableFsSettings, resolve_component_settings
from resources.substrates.sql.component import RESOURCE_COMPONENT_ID


class SqlSettings(BaseModel):
    """Runtime settings for constructing SQLAlchemy engines and pools."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = "sqlite:///./var/tablefs.db"
    pool_size: int = Field(default=5, gt=0)
    max_overflow: int = Field(default=10, ge=0)
    pool_timeout_seconds: float = Field(default=30.0, gt=0)
    pool_pre_ping: bool = True
    connect_timeout_seconds: float = Field(default=10.0, gt=0)
    echo: bool = False

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        """Require a non-empty SQLAlchemy database URL."""
        normalized = value.strip()
        if normalized == "":
            raise ValueError("url is required")
        return normalized


def resolve_sql_settings(settings: TableFsSettings) -> SqlSettings:
    """Resolve SQL substrate settings from ``components.substrate.sql``."""
    return resolve_component_settings(
        settings=settings,
        component_id=RESOURCE_COMPONENT_ID,
        model=SqlSettings,
    )
