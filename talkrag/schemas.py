"""Request and response bodies for the HTTP API."""
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from talkrag.rag.query import QueryResult


class PromptRequest(BaseModel):
    """Body of POST /api/prompt."""
    question: str


class ChunkMatchOut(BaseModel):
    talk_id: str
    title: str
    speaker: str
    topics: str
    event: str
    description: str
    chunk: str
    score: float


class AugmentedPrompt(BaseModel):
    """The exact prompts sent to the chat model."""
    model_config = ConfigDict(populate_by_name=True)

    system: str = Field(..., alias="System")
    user: str = Field(..., alias="User")


class PromptResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response: str
    context: List[ChunkMatchOut]
    augmented_prompt: AugmentedPrompt = Field(..., alias="Augmented_prompt")

    @classmethod
    def from_result(cls, result: QueryResult) -> "PromptResponse":
        return cls(
            response=result.response,
            context=[ChunkMatchOut(**m.to_dict()) for m in result.context],
            augmented_prompt=AugmentedPrompt(
                system=result.system_prompt,
                user=result.user_prompt,
            ),
        )


class StatsResponse(BaseModel):
    """Body of GET /api/stats."""
    chunk_size: int
    overlap_ratio: float
    top_k: int
