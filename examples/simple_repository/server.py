# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""Small OAI-PMH repository serving Dublin Core records from memory.

Usage::

    python examples/simple_repository/server.py --port 8000

Then harvest it::

    curl 'http://127.0.0.1:8000/oai?verb=Identify'
    curl 'http://127.0.0.1:8000/oai?verb=ListRecords&metadataPrefix=oai_dc'

Pages hold five records, so the listing spans several requests chained by
resumption tokens.
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import datetime, timedelta, timezone
from xml.sax.saxutils import escape

from openoai import Identity, MemoryTokenStore, OAIServer, Record, ServerConfig
from openoai.datestamps import to_utc
from openoai.utils import setup_logger


DC_FORMATS = {
    "oai_dc": {
        "schema": "http://www.openarchives.org/OAI/2.0/oai_dc.xsd",
        "metadataNamespace": "http://www.openarchives.org/OAI/2.0/oai_dc/",
    }
}

TITLES = [
    "On the Electrodynamics of Moving Bodies",
    "A Mathematical Theory of Communication",
    "Computing Machinery and Intelligence",
    "The Chemical Basis of Morphogenesis",
    "Molecular Structure of Nucleic Acids",
    "On Computable Numbers",
    "A Relational Model of Data for Large Shared Data Banks",
    "Go To Statement Considered Harmful",
    "Time, Clocks, and the Ordering of Events in a Distributed System",
    "The UNIX Time-Sharing System",
    "Reflections on Trusting Trust",
    "As We May Think",
]


def dublin_core(title: str, date: datetime) -> str:
    return (
        '<oai_dc:dc xmlns:oai_dc="http://www.openarchives.org/OAI/2.0/oai_dc/" '
        'xmlns:dc="http://purl.org/dc/elements/1.1/">'
        f"<dc:title>{escape(title)}</dc:title>"
        f"<dc:date>{date:%Y-%m-%d}</dc:date>"
        "</oai_dc:dc>"
    )


class CatalogueSource:
    """Record source over a fixed, date-ordered list."""

    def __init__(self) -> None:
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.records = [
            Record(
                identifier=f"oai:example.org:paper-{index}",
                timestamp=start + timedelta(days=7 * index),
                metadata=dublin_core(title, start + timedelta(days=7 * index)),
            )
            for index, title in enumerate(TITLES)
        ]

    def list_metadata_formats(self, identifier=None):
        return DC_FORMATS

    def get_record(self, identifier, metadata_prefix):
        return next((record for record in self.records if record.identifier == identifier), None)

    def list_records(self, metadata_prefix, from_=None, until=None, *, count_only=False, offset=0, limit=None):
        matching = [
            record
            for record in self.records
            if (from_ is None or to_utc(record.timestamp) >= from_)
            and (until is None or to_utc(record.timestamp) <= until)
        ]
        if count_only:
            return len(matching)
        return matching[offset : offset + limit if limit else None]


server = OAIServer(
    Identity(
        repositoryName="Example Papers",
        baseURL="http://127.0.0.1:8000/oai",
        earliestDatestamp="2024-01-01T00:00:00Z",
        adminEmail="admin@example.org",
    ),
    CatalogueSource(),
    config=ServerConfig(max_records=5),
    token_store=MemoryTokenStore(),
    name="example-papers",
)


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve the example OAI-PMH repository")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", default="info")
    args = parser.parse_args()

    setup_logger(level=args.log_level)
    asyncio.run(server.serve(host=args.host, port=args.port, log_level=args.log_level))


if __name__ == "__main__":
    main()
