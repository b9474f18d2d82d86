# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""OAI-PMH data provider built around a fixed verb dispatch table."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any

from .config import ServerConfig
from .services import IdentifyService, MetadataFormatsService, RecordsService, SetsService
from .sources import RecordSource
from ..context import RequestContext
from ..errors import ErrorCode, OAIError, bad_argument
from ..response import OAIResponse, ResponseAssembler
from ..tokens import FileTokenStore, TokenStore
from ..types import Identity, OAIRequest, Verb
from ..utils import get_logger


if TYPE_CHECKING:  # pragma: no cover - typing only
    from starlette.applications import Starlette

Handler = Callable[[RequestContext], Awaitable[None]]


class ServerValidationError(RuntimeError):
    """Raised when the server configuration cannot answer every verb."""


class OAIServer:
    """Answers OAI-PMH requests for one repository.

    Each request is validated, dispatched to the handler for its verb, and
    turned into exactly one document: the verb body when no error was
    collected, otherwise one ``error`` node per collected error in the order
    they were raised.
    """

    def __init__(
        self,
        identity: Identity | Mapping[str, Any],
        source: RecordSource,
        *,
        config: ServerConfig | None = None,
        token_store: TokenStore | None = None,
        name: str = "repository",
    ) -> None:
        self.config = config or ServerConfig()
        self.source = source
        self._logger = get_logger(f"openoai.server.{name}")

        self.tokens: TokenStore = token_store or FileTokenStore(
            self.config.token_dir, prefix=self.config.token_prefix, valid=self.config.token_valid
        )
        self.identify: IdentifyService = IdentifyService(identity)
        self.formats: MetadataFormatsService = MetadataFormatsService(source, logger=self._logger)
        self.records: RecordsService = RecordsService(
            source, formats=self.formats, tokens=self.tokens, config=self.config, logger=self._logger
        )
        self.sets: SetsService = SetsService()

        self._handlers: dict[Verb, Handler] = {
            Verb.IDENTIFY: self.identify.handle,
            Verb.LIST_METADATA_FORMATS: self.formats.handle,
            Verb.LIST_SETS: self.sets.handle,
            Verb.LIST_IDENTIFIERS: self.records.list_records,
            Verb.LIST_RECORDS: self.records.list_records,
            Verb.GET_RECORD: self.records.get_record,
        }
        self.validate()

    @property
    def base_url(self) -> str:
        identity = self.identify.identity
        if isinstance(identity, Identity):
            return identity.baseURL
        return str(identity.get("baseURL", ""))

    def validate(self) -> None:
        missing = [verb.value for verb in Verb if verb not in self._handlers]
        if missing:
            raise ServerValidationError(f"No handler registered for verbs: {', '.join(missing)}")

    # ------------------------------------------------------------------
    # Request processing
    # ------------------------------------------------------------------

    async def handle(self, args: Mapping[str, str], base_url: str | None = None) -> OAIResponse:
        """Process a request given as a flat argument mapping (``verb`` included)."""
        return await self.handle_request(OAIRequest.from_mapping(args, base_url or self.base_url))

    async def handle_request(self, request: OAIRequest) -> OAIResponse:
        verb = request.verb
        if verb is None:
            error = OAIError(ErrorCode.BAD_VERB, _bad_verb_message(request))
            self._logger.warning("rejected request", extra={"event": "request.bad_verb", "verb": request.verb_value})
            assembler = ResponseAssembler(request.base_url, None, {})
            assembler.add_errors([error])
            return OAIResponse(assembler, [error])

        ctx = RequestContext(request=request, assembler=ResponseAssembler(request.base_url, verb.value, request.arguments))
        for key in sorted(request.repeated):
            ctx.add_error(bad_argument(key, "Repeated"))

        self._logger.debug("dispatching %s", verb.value, extra={"event": "request.dispatch"})
        await self._dispatch(ctx, self._handlers[verb])

        if ctx.failed:
            self._logger.warning(
                "request failed",
                extra={"event": "request.errors", "verb": verb.value, "codes": [e.code.value for e in ctx.errors]},
            )
            assembler = ResponseAssembler(request.base_url, verb.value, request.arguments)
            assembler.add_errors(ctx.errors)
            return OAIResponse(assembler, ctx.errors)

        ctx.assembler.ensure_verb_node()
        return OAIResponse(ctx.assembler)

    async def _dispatch(self, ctx: RequestContext, handler: Handler) -> None:
        try:
            await handler(ctx)
        except OAIError as exc:
            ctx.add_error(exc)
        except Exception as exc:
            self._logger.exception(
                "handler failed", extra={"event": "request.handler_failure", "verb": ctx.request.verb_value}
            )
            ctx.add_error(OAIError(ErrorCode.BAD_ARGUMENT, f"The request could not be processed: {exc}"))

    # ------------------------------------------------------------------
    # HTTP surface
    # ------------------------------------------------------------------

    def app(self, path: str = "/oai") -> Starlette:
        """Return a Starlette application answering on *path*."""
        from .transports import HTTPTransport

        return HTTPTransport(self).build_app(path=path)

    async def serve(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        path: str | None = None,
        log_level: str | None = None,
        **uvicorn_options: Any,
    ) -> None:
        """Serve the repository over HTTP with uvicorn until cancelled."""
        from .transports import HTTPTransport

        await HTTPTransport(self).run(host=host, port=port, path=path, log_level=log_level, **uvicorn_options)


def _bad_verb_message(request: OAIRequest) -> str:
    if "verb" in request.repeated:
        return "Repeated OAI verb"
    if not request.verb_value:
        return "Missing OAI verb"
    return f"Illegal OAI verb: {request.verb_value}"


__all__ = ["OAIServer", "ServerValidationError"]
