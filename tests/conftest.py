from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest

from openoai import Identity, MemoryTokenStore, OAIServer, ServerConfig
from tests.helpers import InMemoryRecordSource, make_records


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def identity() -> Identity:
    return Identity(
        repositoryName="Test Repository",
        baseURL="http://repo.example.org/oai",
        earliestDatestamp="2020-01-01T00:00:00Z",
        adminEmail="admin@example.org",
    )


@pytest.fixture
def source() -> InMemoryRecordSource:
    return InMemoryRecordSource(make_records(7))


@pytest.fixture
def tokens() -> MemoryTokenStore:
    return MemoryTokenStore()


@pytest.fixture
def server(identity: Identity, source: InMemoryRecordSource, tokens: MemoryTokenStore) -> OAIServer:
    return OAIServer(identity, source, config=ServerConfig(max_records=3), token_store=tokens)


@pytest.fixture
async def http_client(server: OAIServer) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=server.app())
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
