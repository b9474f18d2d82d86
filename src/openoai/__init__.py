# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""OpenOAI: an OAI-PMH 2.0 data provider core."""

from __future__ import annotations

from .errors import ErrorCode, OAIError
from .response import OAIResponse
from .server import OAIServer, RecordSource, ServerConfig
from .tokens import FileTokenStore, MemoryTokenStore, TokenNotFound, TokenStore
from .types import Continuation, Identity, MetadataFormat, OAIRequest, Record, Verb


__all__ = [
    "Continuation",
    "ErrorCode",
    "FileTokenStore",
    "Identity",
    "MemoryTokenStore",
    "MetadataFormat",
    "OAIError",
    "OAIRequest",
    "OAIResponse",
    "OAIServer",
    "Record",
    "RecordSource",
    "ServerConfig",
    "TokenNotFound",
    "TokenStore",
    "Verb",
]
