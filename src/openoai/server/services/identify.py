# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""Identify verb."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ...context import RequestContext
from ...types import Identity, identity_elements


class IdentifyService:
    """Echoes the configured repository identity."""

    def __init__(self, identity: Identity | Mapping[str, Any]) -> None:
        self._identity = identity

    @property
    def identity(self) -> Identity | Mapping[str, Any]:
        return self._identity

    async def handle(self, ctx: RequestContext) -> None:
        if ctx.arguments:
            for key in ctx.arguments:
                ctx.reject_argument(key)
            return

        ctx.assembler.ensure_verb_node()
        for name, value in identity_elements(self._identity):
            ctx.assembler.add_to_verb_node(name, value)


__all__ = ["IdentifyService"]
