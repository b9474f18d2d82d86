# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""Transport adapters for OpenOAI servers."""

from __future__ import annotations

from .base import BaseTransport
from .http import HTTPTransport, XML_MEDIA_TYPE

__all__ = [
    "BaseTransport",
    "HTTPTransport",
    "XML_MEDIA_TYPE",
]
