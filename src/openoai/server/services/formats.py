# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""ListMetadataFormats verb and the supported-format lookup shared by other verbs."""

from __future__ import annotations

from ..sources import RecordSource
from ...context import RequestContext
from ...errors import ErrorCode, OAIError
from ...types import MetadataFormat, coerce_formats
from ...utils import maybe_await_with_args


class MetadataFormatsService:
    def __init__(self, source: RecordSource, *, logger) -> None:
        self._source = source
        self._logger = logger

    async def supported(self, identifier: str | None = None) -> dict[str, MetadataFormat]:
        """Formats for *identifier*, or every format the repository offers."""
        formats = await maybe_await_with_args(self._source.list_metadata_formats, identifier)
        return coerce_formats(formats)

    async def check_prefix(self, ctx: RequestContext, prefix: str) -> bool:
        """Record ``cannotDisseminateFormat`` unless *prefix* is offered repository-wide."""
        if prefix in await self.supported():
            return True
        ctx.add_error(OAIError(ErrorCode.CANNOT_DISSEMINATE_FORMAT, f"Unsupported metadataPrefix: {prefix}"))
        return False

    async def handle(self, ctx: RequestContext) -> None:
        for key in ctx.arguments:
            if key != "identifier":
                ctx.reject_argument(key)
        if ctx.failed:
            return

        identifier = ctx.arguments.get("identifier") or None
        formats = await self.supported(identifier)
        if not formats:
            ctx.add_error(ErrorCode.NO_METADATA_FORMATS)
            return

        self._logger.debug("listing metadata formats", extra={"event": "formats.list", "count": len(formats)})
        for prefix, entry in formats.items():
            node = ctx.assembler.add_to_verb_node("metadataFormat")
            ctx.assembler.add_child(node, "metadataPrefix", prefix)
            ctx.assembler.add_child(node, "schema", entry.schema_location)
            ctx.assembler.add_child(node, "metadataNamespace", entry.namespace)


__all__ = ["MetadataFormatsService"]
