"""Question answering over retrieved talk chunks.

One question in, one answer out: validate, retrieve, assemble the prompt and
ask the chat model. Nothing here is retried; failures surface to the caller.
"""
from dataclasses import dataclass, field
from typing import List, Optional

import httpx
import structlog

from talkrag import config
from talkrag.errors import GenerationFailure, InvalidRequest
from talkrag.llm_client import LLModClient
from talkrag.rag.embedder import Embedder
from talkrag.rag.prompts import FALLBACK_ANSWER, SYSTEM_PROMPT, build_user_prompt
from talkrag.rag.retriever import ChunkMatch, Retriever
from talkrag.rag.store_pinecone import PineconeVectorStore

logger = structlog.get_logger()


@dataclass
class QueryResult:
    """Answer plus everything needed to audit how it was produced."""

    response: str
    context: List[ChunkMatch] = field(default_factory=list)
    system_prompt: str = SYSTEM_PROMPT
    user_prompt: str = ""


class QueryPipeline:
    """Retrieval-augmented answering for a single question."""

    def __init__(
        self,
        retriever: Retriever,
        llm_client: LLModClient,
        chat_model: str = None,
    ):
        self.retriever = retriever
        self.llm_client = llm_client
        self.chat_model = chat_model or config.CHAT_MODEL

    @classmethod
    def from_settings(
        cls, settings, http_client: Optional[httpx.AsyncClient] = None
    ) -> "QueryPipeline":
        client = LLModClient(
            api_key=settings.llm_api_key,
            base_url=settings.llmod_base_url,
            timeout=settings.request_timeout,
            http_client=http_client,
        )
        retriever = Retriever(
            embedder=Embedder(
                client, model=settings.embedding_model, dimension=settings.embedding_dim
            ),
            vector_store=PineconeVectorStore.from_settings(settings, http_client=http_client),
            top_k=settings.top_k,
        )
        return cls(retriever, client, chat_model=settings.chat_model)

    @staticmethod
    def validate_question(question) -> str:
        """Return the trimmed question.

        Raises:
            InvalidRequest: If the question is not a non-blank string
        """
        if not isinstance(question, str):
            raise InvalidRequest("Missing 'question' field in JSON body")

        question = question.strip()
        if not question:
            raise InvalidRequest("Question cannot be empty")

        return question

    async def generate(self, user_prompt: str) -> str:
        """Ask the chat model.

        Raises:
            GenerationFailure: On any HTTP, transport or response-shape error
        """
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": user_prompt},
        ]

        try:
            data = await self.llm_client.chat(messages, model=self.chat_model)
            content = data["choices"][0]["message"]["content"]
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
            logger.error("generation_failed", error=str(e), error_type=type(e).__name__)
            raise GenerationFailure(f"Chat completion failed: {e}") from e

        return str(content or "").strip()

    async def answer(self, question) -> QueryResult:
        """Answer a question from the indexed transcripts.

        Args:
            question: Raw user question

        Returns:
            QueryResult with answer, context and the prompts used

        Raises:
            InvalidRequest: Blank or non-string question
            EmbeddingFailure: Question could not be embedded
            RetrievalFailure: Vector query failed
            GenerationFailure: Chat call failed
        """
        question = self.validate_question(question)

        matches = await self.retriever.retrieve(question)

        if not matches:
            logger.info("no_relevant_context_found", question_preview=question[:100])
            return QueryResult(response=FALLBACK_ANSWER)

        user_prompt = build_user_prompt(question, matches)
        answer = await self.generate(user_prompt)

        logger.info(
            "answer_generated",
            context_chunks=len(matches),
            prompt_length=len(user_prompt),
            response_length=len(answer),
        )

        return QueryResult(response=answer, context=matches, user_prompt=user_prompt)
