"""Settings loading with deterministic precedence.

The cascade is always:
1) explicit overrides
2) environment variables (``TABLEFS_`` prefix, ``__`` nesting)
3) YAML config file (``~/.config/tablefs/tablefs.yaml`` unless overridden)
4) built-in defaults

Example: ``TABLEFS_LOGGING__LEVEL=DEBUG`` -> ``logging.level = "DEBUG"``
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic_settings import SettingsConfigDict

from .models import TableFsSettings


def load_settings(
    *, config_path: str | Path | None = None, **overrides: Any
) -> TableFsSettings:
    """Load root settings, optionally from a non-default YAML file."""
    if config_path is None:
        return TableFsSettings(**overrides)

    class _FileSettings(TableFsSettings):
        model_config = SettingsConfigDict(yaml_file=Path(config_path))

    return _FileSettings(**overrides)
