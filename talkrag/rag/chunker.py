"""Text chunking with overlap for RAG pipeline.

Fixed character windows: each window starts ``chunk_size - chunk_overlap``
characters after the previous one, so consecutive chunks share exactly
``chunk_overlap`` characters.
"""
from dataclasses import dataclass
from typing import List

import structlog

from talkrag import config

logger = structlog.get_logger()


@dataclass(frozen=True)
class TextChunk:
    """Represents a chunk of text with position information."""

    content: str
    char_start: int
    char_end: int
    chunk_index: int


class TextChunker:
    """Character-based sliding-window chunker."""

    def __init__(
        self,
        chunk_size: int = None,
        chunk_overlap: int = None,
    ):
        """Initialize the text chunker.

        Args:
            chunk_size: Size of each chunk in characters (default from config)
            chunk_overlap: Overlap between chunks in characters (default from config)

        Raises:
            ValueError: If the window does not advance (overlap >= size)
        """
        self.chunk_size = config.CHUNK_SIZE if chunk_size is None else chunk_size
        self.chunk_overlap = config.CHUNK_OVERLAP if chunk_overlap is None else chunk_overlap

        if self.chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {self.chunk_size}")

        if self.chunk_overlap < 0:
            raise ValueError(f"Overlap must not be negative, got {self.chunk_overlap}")

        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"Overlap ({self.chunk_overlap}) must be less than "
                f"chunk size ({self.chunk_size})"
            )

    @property
    def step(self) -> int:
        return self.chunk_size - self.chunk_overlap

    def chunk_text(self, text: str) -> List[TextChunk]:
        """Split text into overlapping chunks.

        Args:
            text: Text to chunk

        Returns:
            List of TextChunk objects (empty for empty text)

        Raises:
            TypeError: If text is not a string
        """
        if not isinstance(text, str):
            raise TypeError(f"Expected str, got {type(text).__name__}")

        if not text:
            return []

        text_length = len(text)

        if text_length <= self.chunk_size:
            return [TextChunk(content=text, char_start=0, char_end=text_length, chunk_index=0)]

        chunks = []
        start = 0

        while True:
            end = min(start + self.chunk_size, text_length)
            chunks.append(
                TextChunk(
                    content=text[start:end],
                    char_start=start,
                    char_end=end,
                    chunk_index=len(chunks),
                )
            )
            if end == text_length:
                break
            start += self.step

        logger.debug(
            "text_chunked",
            text_length=text_length,
            chunk_count=len(chunks),
        )

        return chunks


def chunk(
    text: str,
    window: int = config.CHUNK_SIZE,
    overlap: int = config.CHUNK_OVERLAP,
) -> List[str]:
    """Chunk text and return the bare chunk strings.

    Args:
        text: Text to chunk
        window: Window length in characters
        overlap: Characters shared with the previous window

    Returns:
        Ordered list of substrings
    """
    chunker = TextChunker(chunk_size=window, chunk_overlap=overlap)
    return [c.content for c in chunker.chunk_text(text)]
