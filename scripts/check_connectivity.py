#!/usr/bin/env python
"""Check connectivity to Pinecone and the LLMod embedding service."""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx

from talkrag.config import Settings
from talkrag.errors import ConfigurationError, EmbeddingFailure
from talkrag.llm_client import LLModClient
from talkrag.logging_config import configure_logging
from talkrag.rag.embedder import Embedder
from talkrag.rag.store_pinecone import PineconeVectorStore
from talkrag.retry import RetryPolicy

# Color codes for terminal output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"


def print_success(msg):
    print(f"{GREEN}✓{RESET} {msg}")


def print_error(msg):
    print(f"{RED}✗{RESET} {msg}")


def print_info(msg):
    print(f"{BLUE}ℹ{RESET} {msg}")


def print_warning(msg):
    print(f"{YELLOW}⚠{RESET} {msg}")


def print_section(title):
    print(f"\n{BLUE}{'='*60}{RESET}")
    print(f"{BLUE}{title:^60}{RESET}")
    print(f"{BLUE}{'='*60}{RESET}\n")


async def check_pinecone(settings: Settings, errors: list) -> None:
    print_section("1. Pinecone Index")

    store = PineconeVectorStore.from_settings(settings)
    try:
        stats = await store.describe_index_stats()
    except (httpx.HTTPError, ValueError) as e:
        print_error("Pinecone connectivity failed")
        print_info("  Check PINECONE_API_KEY and PINECONE_INDEX_NAME")
        print_info(f"  Details: {e}")
        errors.append(f"Pinecone: {e}")
        return

    print_success(f"Connected to index: {settings.pinecone_index_name}")
    print_info(f"  Dimension: {stats.get('dimension')}")
    print_info(f"  Total vectors: {stats.get('totalVectorCount', 0)}")

    namespace = (stats.get("namespaces") or {}).get(settings.pinecone_namespace) or {}
    print_info(
        f"  Vectors in namespace '{settings.pinecone_namespace}': "
        f"{namespace.get('vectorCount', 0)}"
    )

    if stats.get("dimension") not in (None, settings.embedding_dim):
        print_warning(
            f"Index dimension {stats.get('dimension')} does not match "
            f"embedding dimension {settings.embedding_dim}"
        )


async def check_embedding(settings: Settings, errors: list) -> None:
    print_section("2. LLMod Embedding Service")

    client = LLModClient(
        api_key=settings.llm_api_key,
        base_url=settings.llmod_base_url,
        timeout=settings.request_timeout,
    )
    embedder = Embedder(
        client,
        model=settings.embedding_model,
        dimension=settings.embedding_dim,
        retry_policy=RetryPolicy(max_attempts=1),
    )

    try:
        vector = await embedder.embed("This is a test sentence for embedding connectivity.")
    except EmbeddingFailure as e:
        print_error("Embedding request failed")
        print_info("  Check LLM_API_KEY and LLMOD_BASE_URL")
        print_info(f"  Details: {e.cause}")
        errors.append(f"Embedding: {e.cause}")
        return

    print_success(f"Received embedding of dimension {len(vector)}")
    print_info("  Note: this call consumed budget.")


async def main():
    print_section("Connectivity Check")
    configure_logging("WARNING")

    errors = []

    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        print_error(str(e))
        return [str(e)]

    await check_pinecone(settings, errors)
    await check_embedding(settings, errors)

    print_section("Summary")

    if not errors:
        print_success("All checks passed!")
    else:
        print_error(f"Found {len(errors)} error(s):")
        for i, error in enumerate(errors, 1):
            print(f"  {i}. {error}")

    print()
    return errors


if __name__ == "__main__":
    errors = asyncio.run(main())
    sys.exit(1 if errors else 0)
