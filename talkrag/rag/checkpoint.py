"""Ingestion checkpoint: the last fully processed row index, in a text file."""
from pathlib import Path
from typing import Optional

import structlog

logger = structlog.get_logger()


class Checkpoint:
    """Single-integer progress marker persisted to disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[int]:
        """Read the saved row index.

        Returns:
            The saved index, or None if the file is missing or unreadable
        """
        if not self.path.exists():
            return None

        raw = self.path.read_text(encoding="utf-8").strip()
        try:
            value = int(raw)
        except ValueError:
            logger.warning("checkpoint_unreadable", path=str(self.path), content=raw[:50])
            return None

        logger.info("checkpoint_loaded", path=str(self.path), row=value)
        return value

    def save(self, row_index: int) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(str(row_index), encoding="utf-8")
        logger.debug("checkpoint_saved", path=str(self.path), row=row_index)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info("checkpoint_cleared", path=str(self.path))
