"""Shared fixtures and fakes for unit tests."""
from typing import List

import pytest

from talkrag.rag.store_pinecone import IndexedVector, VectorMatch

DIM = 1536


class SleepRecorder:
    """Stands in for asyncio.sleep and remembers requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeEmbedder:
    """Returns a constant vector and records every text it was asked to embed."""

    def __init__(self, error: Exception = None):
        self.texts: List[str] = []
        self.error = error

    async def embed(self, text: str) -> List[float]:
        self.texts.append(text)
        if self.error is not None:
            raise self.error
        return [0.1] * DIM


class FakeVectorStore:
    """Records upserts and serves canned query matches."""

    def __init__(self, matches: List[VectorMatch] = None, fail_on_upsert: int = None):
        self.upserted: List[IndexedVector] = []
        self.queries: List[int] = []
        self.matches = matches or []
        self.fail_on_upsert = fail_on_upsert
        self.upsert_error: Exception = None

    async def upsert(self, vectors):
        if self.fail_on_upsert is not None and len(self.upserted) == self.fail_on_upsert:
            raise self.upsert_error
        self.upserted.extend(vectors)
        return len(vectors)

    async def query(self, vector, top_k=None):
        self.queries.append(top_k)
        return self.matches


class FakeLLMClient:
    """Chat client double; replies with a fixed answer or raises."""

    def __init__(self, reply: dict = None, error: Exception = None):
        self.calls = []
        self.reply = reply if reply is not None else {
            "choices": [{"message": {"role": "assistant", "content": "  An answer.  "}}]
        }
        self.error = error

    async def chat(self, messages, model=None):
        self.calls.append({"messages": messages, "model": model})
        if self.error is not None:
            raise self.error
        return self.reply


def embedding_body(dimension: int = DIM) -> dict:
    return {"data": [{"embedding": [0.25] * dimension, "index": 0}]}


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def talk_match() -> VectorMatch:
    return VectorMatch(
        id="42-0",
        score=0.87,
        metadata={
            "talk_id": "42",
            "title": "The power of vulnerability",
            "speaker": "Brené Brown",
            "topics": "['psychology', 'emotions']",
            "event": "TEDxHouston",
            "description": "A talk about connection.",
            "text": "Connection is why we're here.",
        },
    )
