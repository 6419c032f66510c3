"""Unit tests for the chat-completions side of the LLMod client."""
import json

import httpx
import pytest

from talkrag.llm_client import LLModClient


def _make_client(handler) -> LLModClient:
    return LLModClient(
        api_key="test-key",
        base_url="https://llmod.test/",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.asyncio
async def test_chat_sends_model_and_messages_only():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={"choices": [{"message": {"role": "assistant", "content": "Hi."}}]},
        )

    client = _make_client(handler)
    messages = [
        {"role": "system", "content": "Be brief."},
        {"role": "user", "content": "Hello?"},
    ]

    reply = await client.chat(messages, model="chat-test")

    assert reply["choices"][0]["message"]["content"] == "Hi."
    assert len(requests) == 1
    request = requests[0]
    assert request.method == "POST"
    assert request.url == "https://llmod.test/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer test-key"
    body = json.loads(request.content)
    assert body == {"model": "chat-test", "messages": messages}
    assert "temperature" not in body


@pytest.mark.asyncio
async def test_chat_http_error_is_raised():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    client = _make_client(handler)

    with pytest.raises(httpx.HTTPStatusError):
        await client.chat([{"role": "user", "content": "Hello?"}], model="chat-test")
