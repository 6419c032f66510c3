"""Pinecone vector store client for semantic search.

Handles:
- Index host resolution through the control plane
- Vector upsert with bounded retry
- Similarity query (no retry, a user is waiting)
- Index statistics for connectivity checks

All indexing and search happen remotely; nothing is kept locally after an
upsert succeeds.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import httpx
import structlog

from talkrag import config
from talkrag.config import EmptyUpsertPolicy
from talkrag.errors import RetrievalFailure, UpsertFailure
from talkrag.http_session import open_session
from talkrag.retry import RetryPolicy, linear_backoff, retry_async

logger = structlog.get_logger()


class EmptyUpsertResponse(ValueError):
    """Upsert returned 2xx but reported nothing written."""


@dataclass(frozen=True)
class IndexedVector:
    """An embedding with its id and metadata, ready for upsert."""

    id: str
    values: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        return {"id": self.id, "values": self.values, "metadata": self.metadata}


@dataclass(frozen=True)
class VectorMatch:
    """A single nearest-neighbour hit."""

    id: str
    score: float
    metadata: Dict[str, Any]


def default_upsert_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=config.UPSERT_MAX_ATTEMPTS,
        backoff=linear_backoff(config.UPSERT_BACKOFF_SECONDS),
    )


class PineconeVectorStore:
    """Thin async wrapper over the Pinecone REST API."""

    def __init__(
        self,
        api_key: str,
        index_name: str,
        namespace: str = None,
        host: Optional[str] = None,
        controller_url: str = None,
        timeout: float = None,
        http_client: Optional[httpx.AsyncClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
        empty_response_policy: EmptyUpsertPolicy = EmptyUpsertPolicy.WARN,
    ):
        """Initialize the Pinecone store.

        Args:
            api_key: Pinecone API key
            index_name: Name of the index to address
            namespace: Namespace for all reads and writes (default from config)
            host: Data-plane host; looked up from the index name when omitted
            controller_url: Control-plane base URL (default from config)
            timeout: Request timeout in seconds (default from config)
            http_client: Shared httpx client (one per request when omitted)
            retry_policy: Upsert attempt budget (5 attempts, 2s linear)
            empty_response_policy: Handling of empty upsert acknowledgements
        """
        self.api_key = api_key
        self.index_name = index_name
        self.namespace = namespace or config.PINECONE_NAMESPACE
        self.controller_url = (controller_url or config.PINECONE_CONTROLLER_URL).rstrip("/")
        self.timeout = timeout or config.REQUEST_TIMEOUT
        self.retry_policy = retry_policy or default_upsert_policy()
        self.empty_response_policy = EmptyUpsertPolicy(empty_response_policy)
        self._http_client = http_client
        self._host = self._normalize_host(host) if host else None

    @classmethod
    def from_settings(cls, settings, http_client: Optional[httpx.AsyncClient] = None):
        return cls(
            api_key=settings.pinecone_api_key,
            index_name=settings.pinecone_index_name,
            namespace=settings.pinecone_namespace,
            host=settings.pinecone_index_host,
            controller_url=settings.pinecone_controller_url,
            timeout=settings.request_timeout,
            http_client=http_client,
            empty_response_policy=settings.upsert_empty_response,
        )

    @staticmethod
    def _normalize_host(host: str) -> str:
        host = host.rstrip("/")
        if not host.startswith(("http://", "https://")):
            host = f"https://{host}"
        return host

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Api-Key": self.api_key,
            "Content-Type": "application/json",
            "X-Pinecone-API-Version": config.PINECONE_API_VERSION,
        }

    async def _resolve_host(self, client: httpx.AsyncClient) -> str:
        """Look up (once) the data-plane host for the configured index."""
        if self._host is not None:
            return self._host

        response = await client.get(
            f"{self.controller_url}/indexes/{self.index_name}",
            headers=self.headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        body = response.json()
        host = body.get("host") if isinstance(body, dict) else None

        if not host:
            raise ValueError(f"Index '{self.index_name}' description has no host")

        self._host = self._normalize_host(host)
        logger.info("pinecone_host_resolved", index=self.index_name, host=self._host)
        return self._host

    async def _post(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        async with open_session(self._http_client, self.timeout) as client:
            host = await self._resolve_host(client)
            response = await client.post(
                f"{host}{path}",
                json=payload,
                headers=self.headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response

    async def _upsert_once(self, vectors: Sequence[IndexedVector]) -> int:
        response = await self._post(
            "/vectors/upsert",
            {
                "vectors": [v.to_payload() for v in vectors],
                "namespace": self.namespace,
            },
        )

        body = response.json() if response.content else None
        upserted = body.get("upsertedCount") if isinstance(body, dict) else None

        if not upserted:
            if self.empty_response_policy is EmptyUpsertPolicy.RETRY:
                raise EmptyUpsertResponse(
                    f"Upsert of {len(vectors)} vector(s) returned an empty response"
                )
            logger.warning(
                "pinecone_upsert_empty_response",
                vector_id=vectors[0].id,
                body=body,
            )
            return 0

        return upserted

    async def upsert(self, vectors: Sequence[IndexedVector]) -> int:
        """Write vectors to the index, overwriting existing ids.

        Args:
            vectors: Vectors to upsert

        Returns:
            Number of vectors Pinecone reports as written (0 if it did not say)

        Raises:
            UpsertFailure: If every attempt failed
        """
        if not vectors:
            return 0

        upserted = await retry_async(
            lambda: self._upsert_once(vectors),
            self.retry_policy,
            retry_on=(httpx.HTTPError, ValueError),
            failure=UpsertFailure,
            event="pinecone_upsert",
            vector_id=vectors[0].id,
            vector_count=len(vectors),
        )

        logger.debug("vectors_upserted", count=len(vectors), first_id=vectors[0].id)
        return upserted

    async def query(self, vector: List[float], top_k: int = None) -> List[VectorMatch]:
        """Find the nearest stored vectors.

        Args:
            vector: Query embedding
            top_k: Maximum number of matches (default from config)

        Returns:
            Matches sorted by descending similarity score

        Raises:
            RetrievalFailure: On any error; queries are not retried
        """
        top_k = top_k or config.RETRIEVAL_TOP_K

        try:
            response = await self._post(
                "/query",
                {
                    "vector": vector,
                    "topK": top_k,
                    "includeMetadata": True,
                    "includeValues": False,
                    "namespace": self.namespace,
                },
            )
            raw_matches = response.json().get("matches") or []
            matches = [
                VectorMatch(
                    id=str(m["id"]),
                    score=float(m.get("score") or 0.0),
                    metadata=m.get("metadata") or {},
                )
                for m in raw_matches
            ]
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(
                "pinecone_query_failed",
                error=str(e),
                error_type=type(e).__name__,
                index=self.index_name,
            )
            raise RetrievalFailure(f"Vector query failed: {e}") from e

        matches.sort(key=lambda m: m.score, reverse=True)
        matches = matches[:top_k]

        logger.info(
            "vector_search_completed",
            top_k=top_k,
            results_found=len(matches),
        )

        return matches

    async def describe_index_stats(self) -> Dict[str, Any]:
        """Fetch index statistics (dimension, vector counts per namespace).

        Raises:
            httpx.HTTPError: On transport errors or non-2xx responses
        """
        response = await self._post("/describe_index_stats", {})
        return response.json()
