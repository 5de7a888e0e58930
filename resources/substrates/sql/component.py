"""Component identity for the shared SQL substrate."""

from __future__ import annotations

RESOURCE_COMPONENT_ID = "substrate_sql"
