# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""Public server-side surface for OpenOAI.

The dispatch engine lives in :mod:`openoai.server.core`; this module re-exports
the primitives host applications are expected to import.
"""

from __future__ import annotations

from .config import ServerConfig
from .core import OAIServer, ServerValidationError
from .sources import RecordSource


__all__ = [
    "OAIServer",
    "RecordSource",
    "ServerConfig",
    "ServerValidationError",
]
