"""LLMod (OpenAI-compatible) API client wrapper with error handling."""
from typing import Dict, List, Optional

import httpx
import structlog

from talkrag import config
from talkrag.http_session import open_session

logger = structlog.get_logger()


class LLModClient:
    """Async client for the embeddings and chat-completions endpoints."""

    def __init__(
        self,
        api_key: str,
        base_url: str = None,
        timeout: float = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize LLMod client.

        Args:
            api_key: Bearer token for the API
            base_url: API base URL (defaults to config.LLMOD_BASE_URL)
            timeout: Request timeout in seconds (defaults to config.REQUEST_TIMEOUT)
            http_client: Shared httpx client; a short-lived one is opened per
                request when omitted
        """
        self.api_key = api_key
        self.base_url = (base_url or config.LLMOD_BASE_URL).rstrip("/")
        self.timeout = timeout or config.REQUEST_TIMEOUT
        self._http_client = http_client

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def chat(
        self,
        messages: List[Dict[str, str]],
        model: str = None,
    ) -> Dict:
        """Send a chat completion request.

        Temperature is deliberately not sent; the hosted model rejects it.

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: Model to use (defaults to config.CHAT_MODEL)

        Returns:
            Response dict with 'choices'

        Raises:
            httpx.HTTPError: On transport errors or non-2xx responses
            ValueError: If the body is not JSON
        """
        model = model or config.CHAT_MODEL

        payload = {
            "model": model,
            "messages": messages,
        }

        async with open_session(self._http_client, self.timeout) as client:
            logger.info(
                "llmod_chat_request",
                model=model,
                message_count=len(messages),
            )

            try:
                response = await client.post(
                    f"{self.base_url}/v1/chat/completions",
                    json=payload,
                    headers=self.headers,
                    timeout=self.timeout,
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error(
                    "llmod_chat_http_error",
                    status_code=e.response.status_code,
                    body=e.response.text[:500],
                )
                raise
            except httpx.HTTPError as e:
                logger.error("llmod_connection_error", error=str(e), base_url=self.base_url)
                raise

            return response.json()

    async def embeddings(
        self,
        text: str,
        model: str = None,
    ) -> Dict:
        """Generate an embedding for a piece of text.

        Args:
            text: Text to embed
            model: Model to use (defaults to config.EMBEDDING_MODEL)

        Returns:
            Response dict with 'data' list

        Raises:
            httpx.HTTPError: On transport errors or non-2xx responses
            ValueError: If the body is not JSON
        """
        model = model or config.EMBEDDING_MODEL

        payload = {
            "model": model,
            "input": text,
        }

        async with open_session(self._http_client, self.timeout) as client:
            logger.debug(
                "llmod_embedding_request",
                model=model,
                input_length=len(text),
            )

            response = await client.post(
                f"{self.base_url}/v1/embeddings",
                json=payload,
                headers=self.headers,
                timeout=self.timeout,
            )
            response.raise_for_status()

            return response.json()
