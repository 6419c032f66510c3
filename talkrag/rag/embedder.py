"""Embedding generation with bounded retry."""
from typing import Any, Dict, List, Optional

import httpx
import structlog

from talkrag import config
from talkrag.errors import EmbeddingFailure
from talkrag.llm_client import LLModClient
from talkrag.retry import RetryPolicy, linear_backoff, retry_async

logger = structlog.get_logger()


def default_embed_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=config.EMBED_MAX_ATTEMPTS,
        backoff=linear_backoff(config.EMBED_BACKOFF_SECONDS),
    )


class Embedder:
    """Turns text into fixed-dimension vectors via the LLMod embeddings API."""

    def __init__(
        self,
        client: LLModClient,
        model: str = None,
        dimension: int = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        """Initialize the embedder.

        Args:
            client: LLMod API client
            model: Embedding model name (default from config)
            dimension: Expected vector length (default from config)
            retry_policy: Attempt budget and backoff (5 attempts, 1s linear)
        """
        self.client = client
        self.model = model or config.EMBEDDING_MODEL
        self.dimension = dimension or config.EMBEDDING_DIM
        self.retry_policy = retry_policy or default_embed_policy()

    def _extract_vector(self, data: Dict[str, Any]) -> List[float]:
        """Pull the first embedding out of a response body.

        Raises:
            ValueError: If the body is malformed or the dimension is wrong
        """
        try:
            embedding = data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise ValueError(f"Malformed embedding response: {e!r}") from e

        if not isinstance(embedding, list) or len(embedding) != self.dimension:
            got = len(embedding) if isinstance(embedding, list) else type(embedding).__name__
            raise ValueError(
                f"Unexpected embedding dimension: expected {self.dimension}, got {got}"
            )

        return embedding

    async def embed(self, text: str) -> List[float]:
        """Embed a single text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector of length ``self.dimension``

        Raises:
            EmbeddingFailure: If every attempt failed
        """

        async def attempt() -> List[float]:
            data = await self.client.embeddings(text, model=self.model)
            return self._extract_vector(data)

        vector = await retry_async(
            attempt,
            self.retry_policy,
            retry_on=(httpx.HTTPError, ValueError),
            failure=EmbeddingFailure,
            event="embedding",
            model=self.model,
            text_preview=text[:80],
        )

        logger.debug("text_embedded", model=self.model, dimension=len(vector))
        return vector
