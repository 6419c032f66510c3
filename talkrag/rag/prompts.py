"""Prompt text for grounded answering."""
from typing import List

from talkrag.rag.retriever import ChunkMatch

FALLBACK_ANSWER = "I don't know based on the provided data"

SYSTEM_PROMPT = (
    "You are a TED Talk assistant that answers questions strictly and only based on "
    "the TED dataset context provided to you (metadata and transcript passages). "
    "You must not use any external knowledge, the open internet, or information that "
    "is not explicitly contained in the retrieved context. If the answer cannot be "
    f'determined from the provided context, respond: "{FALLBACK_ANSWER}." '
    "Always explain your answer using the given context, quoting or paraphrasing the "
    "relevant transcript or metadata when helpful. If the user asks for multiple "
    "results, list them clearly with numbered points."
)


def format_context(matches: List[ChunkMatch]) -> str:
    """Render matches as numbered blocks, one per chunk."""
    blocks = []
    for i, m in enumerate(matches, 1):
        blocks.append(
            f"#{i}\n"
            f"Talk ID: {m.talk_id}\n"
            f"Title: {m.title}\n"
            f"Speaker: {m.speaker}\n"
            f"Topics: {m.topics}\n"
            f"Event: {m.event}\n"
            f"Description: {m.description}\n"
            f"Score: {m.score}\n"
            f"Chunk: {m.chunk}"
        )
    return "\n\n".join(blocks)


def build_user_prompt(question: str, matches: List[ChunkMatch]) -> str:
    return (
        f"Question: {question}\n\n"
        f"Context:\n{format_context(matches)}\n\n"
        "Remember: Answer strictly from the context above. If you cannot answer, "
        f'say: "{FALLBACK_ANSWER}."'
    )
