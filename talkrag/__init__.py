"""Question answering over talk transcripts with retrieval-augmented generation."""

__version__ = "0.1.0"
