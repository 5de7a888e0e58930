"""Virtual path model for stored files.

Every path is absolute and slash-delimited. Parsing never fails: any input,
including ``None`` and blank strings, maps to some canonical path.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

SEPARATOR = "/"


@dataclass(frozen=True)
class VirtualPath:
    """Canonical ``(directory, filename)`` pair addressing one stored file.

    ``directory`` always starts and ends with ``/`` (root is ``/``) and
    ``filename`` never contains ``/``. A directory path has an empty filename.
    """

    directory: str
    filename: str

    @classmethod
    def for_file(cls, raw: str | None) -> "VirtualPath":
        """Parse arbitrary user input into a canonical file path."""
        if raw is None or raw.strip() == "":
            text = SEPARATOR
        else:
            text = raw.strip().replace(os.sep, SEPARATOR).replace("\\", SEPARATOR)

        segments = [segment.strip() for segment in text.split(SEPARATOR)]
        segments = [segment for segment in segments if segment]
        if text.endswith(SEPARATOR) or not segments:
            return cls(directory=_join_directory(segments), filename="")
        return cls(directory=_join_directory(segments[:-1]), filename=segments[-1])

    @classmethod
    def for_directory(cls, raw: str | None) -> "VirtualPath":
        """Parse input as a directory, forcing a trailing separator."""
        if raw is not None and not raw.endswith(SEPARATOR):
            raw = raw.strip() + SEPARATOR
        return cls.for_file(raw)

    @property
    def is_directory(self) -> bool:
        """Return True when the path names a directory rather than a file."""
        return self.filename == ""

    def __str__(self) -> str:
        return self.directory + self.filename


def _join_directory(segments: list[str]) -> str:
    """Render directory segments with leading and trailing separators."""
    if not segments:
        return SEPARATOR
    return SEPARATOR + SEPARATOR.join(segments) + SEPARATOR
