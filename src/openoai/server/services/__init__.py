# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""Verb service implementations for OAIServer."""

from __future__ import annotations

from .formats import MetadataFormatsService
from .identify import IdentifyService
from .records import RecordsService
from .sets import SetsService


__all__ = [
    "IdentifyService",
    "MetadataFormatsService",
    "RecordsService",
    "SetsService",
]
