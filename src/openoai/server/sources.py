# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""Record source contract.

The repository's storage is an external collaborator. OpenOAI pulls from it
through three calls; each may be implemented as a plain method or a coroutine.
Return values may use the typed models from :mod:`openoai.types` or plain
mappings with the same keys.
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping, Sequence
from datetime import datetime
from typing import Any, Protocol, Union, runtime_checkable

from ..types import MetadataFormat, Record


FormatsResult = Union[Mapping[str, Union[MetadataFormat, Mapping[str, str]]], None]
RecordResult = Union[Record, Mapping[str, Any], None]
ListResult = Union[int, Sequence[Union[Record, Mapping[str, Any]]]]


@runtime_checkable
class RecordSource(Protocol):
    def list_metadata_formats(
        self, identifier: str | None = None
    ) -> FormatsResult | Awaitable[FormatsResult]:
        """Formats available for *identifier*, or repository-wide when ``None``."""

    def get_record(self, identifier: str, metadata_prefix: str) -> RecordResult | Awaitable[RecordResult]:
        """The record in the given format, or ``None`` when it does not exist."""

    def list_records(
        self,
        metadata_prefix: str,
        from_: datetime | None = None,
        until: datetime | None = None,
        *,
        count_only: bool = False,
        offset: int = 0,
        limit: int | None = None,
    ) -> ListResult | Awaitable[ListResult]:
        """Matching record count when *count_only*, else up to *limit* records from *offset*."""


__all__ = ["FormatsResult", "ListResult", "RecordResult", "RecordSource"]
