"""Unit tests for the ingestion pipeline and its checkpointing."""
import json

import httpx
import pytest

from conftest import FakeEmbedder, FakeVectorStore, embedding_body
from talkrag.config import Settings
from talkrag.errors import EmbeddingFailure, UpsertFailure
from talkrag.rag.checkpoint import Checkpoint
from talkrag.rag.chunker import TextChunker
from talkrag.rag.dataset import Record, load_records
from talkrag.rag.ingest import IngestPipeline


class RecordingCheckpoint(Checkpoint):
    def __init__(self, path):
        super().__init__(path)
        self.saves = []

    def save(self, row_index: int) -> None:
        self.saves.append(row_index)
        super().save(row_index)


def _records(count: int, transcript: str = "some words") -> list:
    return [Record(talk_id=f"t{i}", title=f"Talk {i}", transcript=transcript) for i in range(count)]


def _pipeline(tmp_path, embedder=None, store=None, default_start=None, checkpoint=None):
    return IngestPipeline(
        embedder=embedder or FakeEmbedder(),
        vector_store=store or FakeVectorStore(),
        checkpoint=checkpoint or RecordingCheckpoint(tmp_path / "progress.log"),
        chunker=TextChunker(chunk_size=1000, chunk_overlap=200),
        dataset_path=tmp_path / "talks.csv",
        default_start=default_start,
    )


@pytest.mark.asyncio
async def test_long_transcript_becomes_three_vectors(tmp_path):
    embedder = FakeEmbedder()
    store = FakeVectorStore()
    record = Record(
        talk_id="42",
        title="Long talk",
        speaker="Someone",
        topics="['science']",
        event="TED2020",
        description="Long.",
        transcript="A" * 2400,
    )
    pipeline = _pipeline(tmp_path, embedder, store, default_start=0)

    stats = await pipeline.run(records=[record])

    assert [len(t) for t in embedder.texts] == [1000, 1000, 800]
    assert [v.id for v in store.upserted] == ["42-0", "42-1", "42-2"]
    assert store.upserted[2].metadata == {
        "talk_id": "42",
        "title": "Long talk",
        "speaker": "Someone",
        "topics": "['science']",
        "event": "TED2020",
        "description": "Long.",
        "text": "A" * 800,
    }
    assert stats["chunks_created"] == 3
    assert stats["vectors_upserted"] == 3
    assert (tmp_path / "progress.log").read_text() == "1"


@pytest.mark.asyncio
async def test_resumes_after_saved_checkpoint(tmp_path):
    (tmp_path / "progress.log").write_text("10")
    store = FakeVectorStore()
    pipeline = _pipeline(tmp_path, store=store)

    stats = await pipeline.run(records=_records(15))

    assert [v.id for v in store.upserted] == ["t11-0", "t12-0", "t13-0", "t14-0"]
    assert stats["start_index"] == 11
    assert stats["records_processed"] == 4


@pytest.mark.asyncio
async def test_starts_at_second_row_without_checkpoint(tmp_path):
    store = FakeVectorStore()
    pipeline = _pipeline(tmp_path, store=store)

    await pipeline.run(records=_records(3))

    assert [v.id for v in store.upserted] == ["t1-0", "t2-0"]
    assert (tmp_path / "progress.log").read_text() == "3"


def test_unreadable_checkpoint_is_ignored(tmp_path):
    (tmp_path / "progress.log").write_text("not-a-number")
    pipeline = _pipeline(tmp_path)

    assert pipeline.resume_index() == 1


@pytest.mark.asyncio
async def test_record_without_transcript_is_skipped(tmp_path):
    embedder = FakeEmbedder()
    store = FakeVectorStore()
    records = [
        Record(talk_id="1", transcript="first"),
        Record(talk_id="2", transcript=""),
        Record(talk_id="3", transcript="third"),
    ]
    pipeline = _pipeline(tmp_path, embedder, store, default_start=0)

    stats = await pipeline.run(records=records)

    assert embedder.texts == ["first", "third"]
    assert [v.id for v in store.upserted] == ["1-0", "3-0"]
    assert stats["records_processed"] == 3
    assert stats["records_skipped"] == 1


@pytest.mark.asyncio
async def test_checkpoint_saved_every_five_records_and_at_end(tmp_path):
    checkpoint = RecordingCheckpoint(tmp_path / "progress.log")
    pipeline = _pipeline(tmp_path, checkpoint=checkpoint, default_start=0)

    stats = await pipeline.run(records=_records(12))

    assert checkpoint.saves == [4, 9, 12]
    assert stats["checkpoint"] == 12


@pytest.mark.asyncio
async def test_upsert_failure_aborts_run_keeping_last_periodic_checkpoint(tmp_path):
    checkpoint = RecordingCheckpoint(tmp_path / "progress.log")
    store = FakeVectorStore(fail_on_upsert=7)
    store.upsert_error = UpsertFailure("pinecone down", attempts=5)
    pipeline = _pipeline(tmp_path, store=store, checkpoint=checkpoint, default_start=0)

    with pytest.raises(UpsertFailure):
        await pipeline.run(records=_records(12))

    assert checkpoint.saves == [4]
    assert (tmp_path / "progress.log").read_text() == "4"
    assert len(store.upserted) == 7


@pytest.mark.asyncio
async def test_embedding_failure_aborts_run(tmp_path):
    embedder = FakeEmbedder(error=EmbeddingFailure("llmod down", attempts=5))
    store = FakeVectorStore()
    pipeline = _pipeline(tmp_path, embedder, store, default_start=0)

    with pytest.raises(EmbeddingFailure):
        await pipeline.run(records=_records(3))

    assert store.upserted == []
    assert not (tmp_path / "progress.log").exists()


@pytest.mark.asyncio
async def test_nothing_left_leaves_checkpoint_untouched(tmp_path):
    (tmp_path / "progress.log").write_text("20")
    checkpoint = RecordingCheckpoint(tmp_path / "progress.log")
    pipeline = _pipeline(tmp_path, checkpoint=checkpoint)

    stats = await pipeline.run(records=_records(5))

    assert stats["records_processed"] == 0
    assert checkpoint.saves == []
    assert (tmp_path / "progress.log").read_text() == "20"


@pytest.mark.asyncio
async def test_progress_callback_reports_each_record(tmp_path):
    seen = []
    pipeline = _pipeline(tmp_path, default_start=0)

    await pipeline.run(
        records=_records(3),
        progress_callback=lambda current, total, record: seen.append((current, total, record.talk_id)),
    )

    assert seen == [(1, 3, "t0"), (2, 3, "t1"), (3, 3, "t2")]


def test_load_records_maps_dataset_columns(tmp_path):
    csv_path = tmp_path / "talks.csv"
    csv_path.write_text(
        "talk_id,title,speaker_1,topics,event,description,transcript\n"
        '1,Averting the climate crisis,Al Gore,"[\'climate change\']",TED2006,'
        '"With humor, Al Gore...","Thank you so much, Chris."\n'
        "92,Empty talk,Nobody,[],TEDx,Nothing,\n",
        encoding="utf-8",
    )

    records = load_records(csv_path)

    assert len(records) == 2
    assert records[0].talk_id == "1"
    assert records[0].speaker == "Al Gore"
    assert records[0].topics == "['climate change']"
    assert records[0].description == "With humor, Al Gore..."
    assert records[0].transcript == "Thank you so much, Chris."
    assert records[1].transcript == ""


def test_load_records_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_records(tmp_path / "missing.csv")


@pytest.mark.asyncio
async def test_from_settings_reads_dataset_and_indexes_over_http(tmp_path):
    csv_path = tmp_path / "talks.csv"
    csv_path.write_text(
        "talk_id,title,speaker_1,topics,event,description,transcript\n"
        "1,First,Ann,[],TED2006,One,Skipped by default start.\n"
        "2,Second,Bob,[],TED2007,Two,Second transcript.\n"
        "3,Third,Cid,[],TED2008,Three,Third transcript.\n",
        encoding="utf-8",
    )
    upserts = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/embeddings":
            return httpx.Response(200, json=embedding_body())
        assert request.url.path == "/vectors/upsert"
        upserts.append(json.loads(request.content))
        return httpx.Response(200, json={"upsertedCount": 1})

    settings = Settings(
        llm_api_key="llm-key",
        pinecone_api_key="pc-key",
        pinecone_index_name="talks",
        pinecone_index_host="talks-abc123.svc.pinecone.test",
        llmod_base_url="https://llmod.test",
        dataset_path=csv_path,
        checkpoint_path=tmp_path / "progress.log",
    )
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    pipeline = IngestPipeline.from_settings(settings, http_client=http_client)

    stats = await pipeline.run()

    assert stats["total_records"] == 3
    assert stats["records_processed"] == 2
    assert [u["vectors"][0]["id"] for u in upserts] == ["2-0", "3-0"]
    assert upserts[0]["namespace"] == "__default__"
    assert upserts[0]["vectors"][0]["metadata"]["speaker"] == "Bob"
    assert upserts[0]["vectors"][0]["metadata"]["text"] == "Second transcript."
    assert (tmp_path / "progress.log").read_text(encoding="utf-8") == "3"
