# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""Shared test helpers: in-memory record sources and a controllable clock."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import anyio
import anyio.lowlevel

from openoai.datestamps import to_utc
from openoai.errors import ErrorCode, OAIError
from openoai.response import OAI_NS
from openoai.types import MetadataFormat, Record


NS = {"oai": OAI_NS}

DC_FORMATS = {
    "oai_dc": {
        "schema": "http://www.openarchives.org/OAI/2.0/oai_dc.xsd",
        "metadataNamespace": "http://www.openarchives.org/OAI/2.0/oai_dc/",
    },
}

BASE_TIME = datetime(2020, 1, 1, tzinfo=timezone.utc)


def dc_metadata(title: str) -> str:
    return (
        '<oai_dc:dc xmlns:oai_dc="http://www.openarchives.org/OAI/2.0/oai_dc/" '
        'xmlns:dc="http://purl.org/dc/elements/1.1/">'
        f"<dc:title>{title}</dc:title>"
        "</oai_dc:dc>"
    )


def make_records(count: int) -> list[Record]:
    return [
        Record(
            identifier=f"oai:example.org:{index}",
            timestamp=BASE_TIME + timedelta(days=index),
            metadata=dc_metadata(f"Record {index}"),
        )
        for index in range(count)
    ]


class InMemoryRecordSource:
    """Synchronous record source over a fixed list of records."""

    def __init__(self, records: list[Record], formats: dict | None = None) -> None:
        self.records = list(records)
        self.formats = DC_FORMATS if formats is None else formats
        self.list_calls: list[dict[str, object]] = []

    def list_metadata_formats(self, identifier: str | None = None):
        if identifier is not None and not any(r.identifier == identifier for r in self.records):
            raise OAIError(ErrorCode.ID_DOES_NOT_EXIST)
        return dict(self.formats)

    def get_record(self, identifier: str, metadata_prefix: str):
        for record in self.records:
            if record.identifier == identifier:
                return record
        return None

    def list_records(self, metadata_prefix, from_=None, until=None, *, count_only=False, offset=0, limit=None):
        self.list_calls.append(
            {"prefix": metadata_prefix, "from": from_, "until": until, "count_only": count_only, "offset": offset}
        )
        matching = [
            record
            for record in self.records
            if (from_ is None or to_utc(record.timestamp) >= from_)
            and (until is None or to_utc(record.timestamp) <= until)
        ]
        if count_only:
            return len(matching)
        end = None if limit is None else offset + limit
        return matching[offset:end]


class AsyncRecordSource(InMemoryRecordSource):
    """Coroutine-based variant returning plain mappings instead of models."""

    async def list_metadata_formats(self, identifier: str | None = None):
        await anyio.lowlevel.checkpoint()
        return {
            prefix: MetadataFormat.model_validate(entry)
            for prefix, entry in super().list_metadata_formats(identifier).items()
        }

    async def get_record(self, identifier: str, metadata_prefix: str):
        await anyio.lowlevel.checkpoint()
        record = super().get_record(identifier, metadata_prefix)
        if record is None:
            return None
        return {"identifier": record.identifier, "timestamp": record.timestamp, "metadata": record.metadata}

    async def list_records(self, metadata_prefix, from_=None, until=None, *, count_only=False, offset=0, limit=None):
        await anyio.lowlevel.checkpoint()
        return super().list_records(
            metadata_prefix, from_, until, count_only=count_only, offset=offset, limit=limit
        )


class FailingRecordSource(InMemoryRecordSource):
    """Source whose listing blows up, used to test error folding."""

    def list_records(self, *args, **kwargs):
        raise RuntimeError("storage offline")


class FakeClock:
    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def error_codes(root) -> list[str]:
    return [node.get("code") for node in root.findall("oai:error", NS)]
