"""Talk dataset loading.

The dataset is a CSV export with one talk per row. Column names follow the
public TED talks dump (``talk_id``, ``speaker_1``, ...).
"""
import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping

import structlog

logger = structlog.get_logger()

# Raise the csv module's default field limit; transcripts are long.
csv.field_size_limit(10 * 1024 * 1024)


@dataclass(frozen=True)
class Record:
    """One talk as read from the dataset."""

    talk_id: str
    title: str = ""
    speaker: str = ""
    topics: str = ""
    event: str = ""
    description: str = ""
    transcript: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, str]) -> "Record":
        def get(column: str) -> str:
            return (row.get(column) or "").strip()

        return cls(
            talk_id=get("talk_id"),
            title=get("title"),
            speaker=get("speaker_1"),
            topics=get("topics"),
            event=get("event"),
            description=get("description"),
            transcript=row.get("transcript") or "",
        )

    def metadata(self) -> Dict[str, str]:
        """Metadata shared by every chunk of this talk."""
        return {
            "talk_id": self.talk_id,
            "title": self.title,
            "speaker": self.speaker,
            "topics": self.topics,
            "event": self.event,
            "description": self.description,
        }


def load_records(csv_path: Path) -> List[Record]:
    """Read every row of the dataset.

    Args:
        csv_path: Path to the CSV file (with header row)

    Returns:
        Records in file order; list index is the row index used by checkpoints

    Raises:
        FileNotFoundError: If the dataset doesn't exist
    """
    csv_path = Path(csv_path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Dataset not found: {csv_path}")

    with open(csv_path, newline="", encoding="utf-8") as f:
        records = [Record.from_row(row) for row in csv.DictReader(f)]

    logger.info("dataset_loaded", path=str(csv_path), records=len(records))
    return records
