"""Retriever for semantic search over indexed talk chunks.

Handles:
- Query embedding generation
- Pinecone similarity search
- Mapping raw matches to ChunkMatch context entries
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict, List

import structlog

from talkrag import config
from talkrag.rag.embedder import Embedder
from talkrag.rag.store_pinecone import PineconeVectorStore, VectorMatch

logger = structlog.get_logger()


@dataclass(frozen=True)
class ChunkMatch:
    """A single retrieved chunk with the talk's metadata."""

    talk_id: str
    title: str
    speaker: str
    topics: str
    event: str
    description: str
    chunk: str
    score: float

    @classmethod
    def from_match(cls, match: VectorMatch) -> "ChunkMatch":
        meta = match.metadata

        def text(key: str) -> str:
            value = meta.get(key)
            return "" if value is None else str(value)

        return cls(
            talk_id=text("talk_id"),
            title=text("title"),
            speaker=text("speaker"),
            topics=text("topics"),
            event=text("event"),
            description=text("description"),
            chunk=text("text"),
            score=match.score,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class Retriever:
    """Embeds a question and fetches its nearest chunks."""

    def __init__(
        self,
        embedder: Embedder,
        vector_store: PineconeVectorStore,
        top_k: int = None,
    ):
        """Initialize the retriever.

        Args:
            embedder: Embedding client
            vector_store: Pinecone store to search
            top_k: Number of results to retrieve (default from config)
        """
        self.embedder = embedder
        self.vector_store = vector_store
        self.top_k = top_k or config.RETRIEVAL_TOP_K

    async def retrieve(self, query: str) -> List[ChunkMatch]:
        """Retrieve the chunks closest to a query.

        Args:
            query: User question (already validated)

        Returns:
            ChunkMatch list, best first

        Raises:
            EmbeddingFailure: If the question could not be embedded
            RetrievalFailure: If the vector query failed
        """
        logger.info("retrieval_started", query_length=len(query), top_k=self.top_k)

        query_embedding = await self.embedder.embed(query)
        matches = await self.vector_store.query(query_embedding, top_k=self.top_k)
        results = [ChunkMatch.from_match(m) for m in matches]

        logger.info(
            "retrieval_completed",
            results_returned=len(results),
            top_score=results[0].score if results else None,
        )

        return results
