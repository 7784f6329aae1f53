"""
File-based replication pointer.

Stores a single ISO-8601 timestamp marking how far forward sync has progressed.
"""

import logging
from datetime import UTC, datetime
from pathlib import Path

logger = logging.getLogger(__name__)


class CheckpointStore:
    """Durable single-value pointer kept in a plain text file."""

    def __init__(self, path: str | Path):
        self.file_path = Path(path)

    def load(self) -> datetime | None:
        """Return the stored pointer, or None if no pointer has been written yet."""
        if not self.file_path.exists():
            return None
        try:
            raw_pointer = self.file_path.read_text(encoding="utf-8").strip()
        except OSError as e:
            logger.error(f"Failed to read pointer file {self.file_path}: {e}")
            raise

        pointer = datetime.fromisoformat(raw_pointer)
        if pointer.tzinfo is None:
            pointer = pointer.replace(tzinfo=UTC)
        logger.debug(f"Loaded pointer {pointer.isoformat()}")
        return pointer

    def store(self, pointer: datetime) -> None:
        """Overwrite the stored pointer atomically."""
        try:
            # Write to temp file first, then atomic rename
            temp_file = self.file_path.with_name(self.file_path.name + ".tmp")
            temp_file.write_text(pointer.isoformat(), encoding="utf-8")
            temp_file.replace(self.file_path)
        except OSError as e:
            logger.error(f"Failed to write pointer file {self.file_path}: {e}")
            raise

        logger.debug(f"Stored pointer {pointer.isoformat()}")
