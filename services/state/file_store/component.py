"""Component identity for the File Store service."""

from __future__ import annotations

SERVICE_COMPONENT_ID = "service_file_store"
