"""Application configuration with sensible defaults.

Module-level values are defaults. Secrets and numeric overrides are only
read and validated by ``Settings.from_env()``, which is called once at startup and whose
result is passed explicitly into every client.
"""
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from talkrag.errors import ConfigurationError

# Paths
BASE_DIR = Path(__file__).parent.parent
DATA_DIR = BASE_DIR / "data"
DATASET_PATH = Path(os.getenv("DATASET_PATH", str(DATA_DIR / "ted_talks_en.csv")))
CHECKPOINT_PATH = Path(os.getenv("CHECKPOINT_PATH", str(BASE_DIR / "progress.log")))

# LLMod (OpenAI-compatible) configuration
LLMOD_BASE_URL = os.getenv("LLMOD_BASE_URL", "https://api.llmod.ai")
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "RPRTHPB-text-embedding-3-small")
CHAT_MODEL = os.getenv("CHAT_MODEL", "RPRTHPB-gpt-5-mini")
EMBEDDING_DIM = 1536

# Pinecone configuration
PINECONE_CONTROLLER_URL = os.getenv("PINECONE_CONTROLLER_URL", "https://api.pinecone.io")
PINECONE_NAMESPACE = os.getenv("PINECONE_NAMESPACE", "__default__")
PINECONE_API_VERSION = "2025-01"


class EmptyUpsertPolicy(str, Enum):
    """What to do when Pinecone acknowledges an upsert with an empty body."""

    WARN = "warn"  # log and treat as written
    RETRY = "retry"  # treat as a failed attempt


UPSERT_EMPTY_RESPONSE = EmptyUpsertPolicy.WARN

# RAG parameters (character-based)
CHUNK_SIZE = 1000
CHUNK_OVERLAP = 200
RETRIEVAL_TOP_K = 15

# Ingestion
CHECKPOINT_EVERY = 5
DEFAULT_START_ROW = 1

# Retry budgets
EMBED_MAX_ATTEMPTS = 5
EMBED_BACKOFF_SECONDS = 1.0
UPSERT_MAX_ATTEMPTS = 5
UPSERT_BACKOFF_SECONDS = 2.0

# Network
REQUEST_TIMEOUT = 60.0

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def _env_upsert_policy() -> EmptyUpsertPolicy:
    raw = os.getenv("UPSERT_EMPTY_RESPONSE")
    if raw is None or not raw.strip():
        return UPSERT_EMPTY_RESPONSE
    try:
        return EmptyUpsertPolicy(raw.strip().lower())
    except ValueError:
        choices = ", ".join(p.value for p in EmptyUpsertPolicy)
        raise ConfigurationError(
            f"UPSERT_EMPTY_RESPONSE must be one of {choices}, got {raw!r}"
        ) from None


@dataclass(frozen=True)
class Settings:
    """Everything the clients and pipelines need, built once at startup."""

    llm_api_key: str
    pinecone_api_key: str
    pinecone_index_name: str
    pinecone_index_host: Optional[str] = None
    pinecone_namespace: str = PINECONE_NAMESPACE
    pinecone_controller_url: str = PINECONE_CONTROLLER_URL
    llmod_base_url: str = LLMOD_BASE_URL
    embedding_model: str = EMBEDDING_MODEL
    chat_model: str = CHAT_MODEL
    embedding_dim: int = EMBEDDING_DIM
    chunk_size: int = CHUNK_SIZE
    chunk_overlap: int = CHUNK_OVERLAP
    top_k: int = RETRIEVAL_TOP_K
    upsert_empty_response: EmptyUpsertPolicy = UPSERT_EMPTY_RESPONSE
    request_timeout: float = REQUEST_TIMEOUT
    dataset_path: Path = DATASET_PATH
    checkpoint_path: Path = CHECKPOINT_PATH

    @property
    def overlap_ratio(self) -> float:
        return self.chunk_overlap / self.chunk_size

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        """Load settings from the environment (and ``.env`` if present).

        Args:
            env_file: Explicit dotenv file (default: ``.env`` in the project root)

        Returns:
            Populated Settings

        Raises:
            ConfigurationError: If a required credential is missing or a
                tuning value cannot be parsed
        """
        load_dotenv(env_file or BASE_DIR / ".env")

        required = {
            "LLM_API_KEY": os.getenv("LLM_API_KEY"),
            "PINECONE_API_KEY": os.getenv("PINECONE_API_KEY"),
            "PINECONE_INDEX_NAME": os.getenv("PINECONE_INDEX_NAME"),
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        chunk_size = _env_number("CHUNK_SIZE", CHUNK_SIZE, int)
        chunk_overlap = _env_number("CHUNK_OVERLAP", CHUNK_OVERLAP, int)
        top_k = _env_number("RETRIEVAL_TOP_K", RETRIEVAL_TOP_K, int)

        if chunk_size <= 0 or not 0 <= chunk_overlap < chunk_size:
            raise ConfigurationError(
                f"CHUNK_OVERLAP must be in [0, CHUNK_SIZE), got "
                f"CHUNK_SIZE={chunk_size} CHUNK_OVERLAP={chunk_overlap}"
            )
        if top_k < 1:
            raise ConfigurationError(f"RETRIEVAL_TOP_K must be >= 1, got {top_k}")

        return cls(
            llm_api_key=required["LLM_API_KEY"],
            pinecone_api_key=required["PINECONE_API_KEY"],
            pinecone_index_name=required["PINECONE_INDEX_NAME"],
            pinecone_index_host=os.getenv("PINECONE_INDEX_HOST") or None,
            pinecone_namespace=os.getenv("PINECONE_NAMESPACE", PINECONE_NAMESPACE),
            pinecone_controller_url=os.getenv(
                "PINECONE_CONTROLLER_URL", PINECONE_CONTROLLER_URL
            ),
            llmod_base_url=os.getenv("LLMOD_BASE_URL", LLMOD_BASE_URL),
            embedding_model=os.getenv("EMBEDDING_MODEL", EMBEDDING_MODEL),
            chat_model=os.getenv("CHAT_MODEL", CHAT_MODEL),
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            top_k=top_k,
            upsert_empty_response=_env_upsert_policy(),
            request_timeout=_env_number("REQUEST_TIMEOUT", REQUEST_TIMEOUT, float),
            dataset_path=Path(os.getenv("DATASET_PATH", str(DATASET_PATH))),
            checkpoint_path=Path(os.getenv("CHECKPOINT_PATH", str(CHECKPOINT_PATH))),
        )
