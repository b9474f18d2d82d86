# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""ListSets verb. The repository declares no set hierarchy."""

from __future__ import annotations

from ...context import RequestContext
from ...errors import ErrorCode


class SetsService:
    async def handle(self, ctx: RequestContext) -> None:
        if "resumptionToken" not in ctx.arguments:
            ctx.add_error(ErrorCode.NO_SET_HIERARCHY)
            return

        for key in ctx.arguments:
            if key != "resumptionToken":
                ctx.reject_argument(key, "Unexpected")
        if ctx.failed:
            return

        # no set listing ever issues a token, so any presented one is invalid
        ctx.add_error(ErrorCode.BAD_RESUMPTION_TOKEN)


__all__ = ["SetsService"]
