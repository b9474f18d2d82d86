# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

from __future__ import annotations

import pytest

from openoai import OAIServer
from tests.helpers import NS, InMemoryRecordSource, error_codes


@pytest.mark.anyio
async def test_identify_lists_repository_description(server: OAIServer) -> None:
    response = await server.handle({"verb": "Identify"})

    assert response.ok
    identify = response.root.find("oai:Identify", NS)
    assert [child.tag.split("}")[1] for child in identify] == [
        "repositoryName",
        "baseURL",
        "protocolVersion",
        "earliestDatestamp",
        "deletedRecord",
        "granularity",
        "adminEmail",
    ]
    assert identify.findtext("oai:repositoryName", namespaces=NS) == "Test Repository"
    assert identify.findtext("oai:protocolVersion", namespaces=NS) == "2.0"
    assert response.root.findtext("oai:request", namespaces=NS) == "http://repo.example.org/oai"


@pytest.mark.anyio
async def test_identify_rejects_arguments(server: OAIServer) -> None:
    response = await server.handle({"verb": "Identify", "identifier": "x", "foo": "bar"})

    assert response.error_codes == ["badArgument", "badArgument"]
    assert response.root.find("oai:Identify", NS) is None
    assert error_codes(response.root) == ["badArgument", "badArgument"]


@pytest.mark.anyio
async def test_identify_from_mapping_is_verbatim() -> None:
    identity = {
        "repositoryName": "Plain",
        "baseURL": "http://plain/oai",
        "adminEmail": ["one@plain", "two@plain"],
        "compression": "gzip",
    }
    server = OAIServer(identity, InMemoryRecordSource([]))

    response = await server.handle({"verb": "Identify"})

    identify = response.root.find("oai:Identify", NS)
    assert [node.text for node in identify.findall("oai:adminEmail", NS)] == ["one@plain", "two@plain"]
    assert identify.findtext("oai:compression", namespaces=NS) == "gzip"
    assert response.root.findtext("oai:request", namespaces=NS) == "http://plain/oai"
