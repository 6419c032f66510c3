"""Outbound HTTP session shared by the remote API clients."""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx


@asynccontextmanager
async def open_session(
    http_client: Optional[httpx.AsyncClient], timeout: float
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the injected client, or a short-lived one closed on exit."""
    if http_client is not None:
        yield http_client
    else:
        async with httpx.AsyncClient(timeout=timeout) as client:
            yield client
