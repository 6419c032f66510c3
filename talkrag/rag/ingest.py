"""Ingest pipeline for indexing talk transcripts.

Orchestrates, strictly one step at a time:
- Dataset loading and checkpoint resumption
- Transcript chunking
- Embedding generation
- Vector upsert into Pinecone

Any unrecovered embedding or upsert failure aborts the run. Upserts are keyed
by ``{talk_id}-{chunk_index}``, so re-running over a partially indexed talk
overwrites its chunks instead of duplicating them.
"""
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx
import structlog

from talkrag import config
from talkrag.llm_client import LLModClient
from talkrag.rag.checkpoint import Checkpoint
from talkrag.rag.chunker import TextChunker
from talkrag.rag.dataset import Record, load_records
from talkrag.rag.embedder import Embedder
from talkrag.rag.store_pinecone import IndexedVector, PineconeVectorStore

logger = structlog.get_logger()

ProgressCallback = Callable[[int, int, Record], None]


class IngestPipeline:
    """Pipeline for ingesting dataset rows into the vector index."""

    def __init__(
        self,
        embedder: Embedder,
        vector_store: PineconeVectorStore,
        checkpoint: Checkpoint,
        chunker: Optional[TextChunker] = None,
        dataset_path: Path = None,
        checkpoint_every: int = None,
        default_start: int = None,
    ):
        """Initialize the ingest pipeline.

        Args:
            embedder: Embedding client
            vector_store: Pinecone store to upsert into
            checkpoint: Progress marker
            chunker: Text chunker (default window/overlap from config)
            dataset_path: CSV dataset (default from config)
            checkpoint_every: Persist the checkpoint every N processed records
            default_start: First row index when no checkpoint exists
        """
        self.embedder = embedder
        self.vector_store = vector_store
        self.checkpoint = checkpoint
        self.chunker = chunker or TextChunker()
        self.dataset_path = dataset_path or config.DATASET_PATH
        self.checkpoint_every = checkpoint_every or config.CHECKPOINT_EVERY
        self.default_start = (
            config.DEFAULT_START_ROW if default_start is None else default_start
        )

        self.stats = self._empty_stats()

        logger.info(
            "ingest_pipeline_initialized",
            dataset=str(self.dataset_path),
            chunk_size=self.chunker.chunk_size,
            chunk_overlap=self.chunker.chunk_overlap,
            checkpoint=str(self.checkpoint.path),
        )

    @classmethod
    def from_settings(
        cls, settings, http_client: Optional[httpx.AsyncClient] = None, **kwargs
    ) -> "IngestPipeline":
        client = LLModClient(
            api_key=settings.llm_api_key,
            base_url=settings.llmod_base_url,
            timeout=settings.request_timeout,
            http_client=http_client,
        )
        return cls(
            embedder=Embedder(
                client, model=settings.embedding_model, dimension=settings.embedding_dim
            ),
            vector_store=PineconeVectorStore.from_settings(settings, http_client=http_client),
            checkpoint=Checkpoint(settings.checkpoint_path),
            chunker=TextChunker(settings.chunk_size, settings.chunk_overlap),
            dataset_path=settings.dataset_path,
            **kwargs,
        )

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            "start_index": None,
            "total_records": 0,
            "records_processed": 0,
            "records_skipped": 0,
            "chunks_created": 0,
            "vectors_upserted": 0,
            "checkpoint": None,
        }

    def resume_index(self) -> int:
        """First row index to process, based on the saved checkpoint."""
        saved = self.checkpoint.load()
        if saved is None:
            return self.default_start
        return saved + 1

    async def ingest_record(self, record: Record, row_index: int) -> int:
        """Chunk, embed and upsert one record.

        Args:
            record: Dataset row
            row_index: Position of the row in the dataset

        Returns:
            Number of vectors upserted (0 for a record without transcript)

        Raises:
            EmbeddingFailure: If a chunk could not be embedded
            UpsertFailure: If a chunk could not be written
        """
        if not record.transcript:
            logger.info("record_skipped_no_transcript", row=row_index, talk_id=record.talk_id)
            self.stats["records_skipped"] += 1
            return 0

        record_id = record.talk_id or str(row_index)
        chunks = self.chunker.chunk_text(record.transcript)
        self.stats["chunks_created"] += len(chunks)

        base_metadata = record.metadata()

        for chunk in chunks:
            embedding = await self.embedder.embed(chunk.content)

            vector = IndexedVector(
                id=f"{record_id}-{chunk.chunk_index}",
                values=embedding,
                metadata={**base_metadata, "text": chunk.content},
            )
            await self.vector_store.upsert([vector])
            self.stats["vectors_upserted"] += 1

        logger.debug(
            "record_ingested",
            row=row_index,
            talk_id=record_id,
            chunks=len(chunks),
        )
        return len(chunks)

    async def run(
        self,
        records: Optional[List[Record]] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Dict[str, Any]:
        """Ingest every record after the checkpoint.

        Args:
            records: Pre-loaded records (read from ``dataset_path`` when omitted)
            progress_callback: Optional callback(current, total, record)

        Returns:
            Dictionary with ingestion statistics

        Raises:
            FileNotFoundError: If the dataset doesn't exist
            EmbeddingFailure: Aborts the run; checkpoint stays at the last periodic save
            UpsertFailure: Aborts the run; checkpoint stays at the last periodic save
        """
        self.stats = self._empty_stats()

        if records is None:
            records = load_records(self.dataset_path)

        start = self.resume_index()
        remaining = max(len(records) - start, 0)

        self.stats["start_index"] = start
        self.stats["total_records"] = len(records)

        logger.info(
            "ingest_started",
            start_row=start,
            total_records=len(records),
            remaining=remaining,
        )

        last_index = None

        for current, row_index in enumerate(range(start, len(records)), 1):
            record = records[row_index]

            if progress_callback:
                progress_callback(current, remaining, record)

            await self.ingest_record(record, row_index)

            last_index = row_index
            self.stats["records_processed"] += 1

            if self.stats["records_processed"] % self.checkpoint_every == 0:
                self.checkpoint.save(row_index)
                self.stats["checkpoint"] = row_index
                logger.info(
                    "ingest_progress",
                    row=row_index,
                    records_processed=self.stats["records_processed"],
                    vectors_upserted=self.stats["vectors_upserted"],
                )

        if last_index is not None:
            final = last_index + 1
            self.checkpoint.save(final)
            self.stats["checkpoint"] = final

        logger.info("ingest_completed", stats=self.stats)

        return self.stats
