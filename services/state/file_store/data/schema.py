"""SQLAlchemy table definition for stored files."""

from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    LargeBinary,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
)


def build_file_table(
    table_name: str,
    metadata: MetaData | None = None,
    *,
    schema: str | None = None,
) -> Table:
    """Return the stored-file table under a configurable name.

    The composite primary key is the uniqueness constraint that arbitrates
    concurrent writers of one path.
    """
    return Table(
        table_name,
        metadata if metadata is not None else MetaData(),
        Column("directory", String(1024), nullable=False),
        Column("filename", String(255), nullable=False),
        Column("content_length", BigInteger, nullable=False),
        Column("last_modified", DateTime(timezone=True), nullable=False),
        Column("compressed", Boolean, nullable=False),
        Column("file_contents", LargeBinary, nullable=False),
        PrimaryKeyConstraint("directory", "filename", name=f"pk_{table_name}"),
        schema=schema,
    )
