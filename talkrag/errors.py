"""Error taxonomy for the talkrag pipelines."""
from typing import Optional


class TalkRagError(Exception):
    """Base class for all talkrag errors."""


class ConfigurationError(TalkRagError):
    """A required setting (API key, index name) is missing or invalid."""


class InvalidRequest(TalkRagError):
    """Malformed user input. Maps to HTTP 400."""


class RetryExhausted(TalkRagError):
    """A retried remote call failed on every attempt."""

    def __init__(self, message: str, attempts: int, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.attempts = attempts
        self.cause = cause


class EmbeddingFailure(RetryExhausted):
    """The embedding API failed on every attempt."""


class UpsertFailure(RetryExhausted):
    """The vector store rejected an upsert on every attempt."""


class RetrievalFailure(TalkRagError):
    """The vector store query failed. Not retried."""


class GenerationFailure(TalkRagError):
    """The chat-completion call failed. Not retried."""
