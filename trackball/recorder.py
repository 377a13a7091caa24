"""Writing records to a text file."""

from __future__ import annotations

from pathlib import Path
from typing import TextIO


class FileRecorder:
    """Appends text records to a file, flushing after each one."""

    def __init__(self) -> None:
        self._file: TextIO | None = None
        self.path: Path | None = None

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def open(self, path: str | Path) -> None:
        """Open (truncating) the output file; raises OSError on failure."""
        self.close()
        path = Path(path)
        self._file = path.open("w", encoding="utf-8")
        self.path = path

    def write(self, text: str) -> None:
        """Write a record and flush it to disk."""
        if self._file is None:
            raise ValueError("recorder is not open")
        self._file.write(text)
        self._file.flush()

    def close(self) -> None:
        """Close the output file if open."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "FileRecorder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()