# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""Record capability service: GetRecord, ListRecords and ListIdentifiers.

List requests start either *fresh* (selective-harvest arguments, cursor 0) or
*continued* (a lone ``resumptionToken``). Continued requests take the cursor
and the original ``metadataPrefix``/``from``/``until`` from the token, which
is consumed on resolve. After each page the service either mints a new token
for the remainder, writes an empty token to close a multi-page sequence, or
writes nothing when a fresh request fit in one page.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from ..config import ServerConfig
from ..sources import RecordSource
from .formats import MetadataFormatsService
from ...context import RequestContext
from ...datestamps import Granularity, parse_datestamp
from ...errors import ErrorCode, OAIError, bad_argument
from ...tokens import TokenNotFound, TokenStore
from ...types import Continuation, Record, Verb
from ...utils import maybe_await_with_args


GET_RECORD_ARGUMENTS = frozenset({"identifier", "metadataPrefix"})
LIST_ARGUMENTS = frozenset({"metadataPrefix", "from", "until", "set", "resumptionToken"})


class RecordsService:
    """Serves record headers and metadata pulled from a :class:`RecordSource`."""

    def __init__(
        self,
        source: RecordSource,
        *,
        formats: MetadataFormatsService,
        tokens: TokenStore,
        config: ServerConfig,
        logger,
    ) -> None:
        self._source = source
        self._formats = formats
        self._tokens = tokens
        self._config = config
        self._logger = logger

    # ------------------------------------------------------------------
    # GetRecord
    # ------------------------------------------------------------------

    async def get_record(self, ctx: RequestContext) -> None:
        args = ctx.arguments
        prefix = args.get("metadataPrefix")
        identifier = args.get("identifier")

        if prefix is None:
            ctx.add_error(bad_argument("metadataPrefix", "Missing required"))
        else:
            await self._formats.check_prefix(ctx, prefix)
        if identifier is None:
            ctx.add_error(bad_argument("identifier", "Missing required"))
        _reject_unknown(ctx, args, GET_RECORD_ARGUMENTS)
        if ctx.failed:
            return

        found = await maybe_await_with_args(self._source.get_record, identifier, prefix)
        if found is None:
            ctx.add_error(OAIError(ErrorCode.ID_DOES_NOT_EXIST, f"Unknown identifier: {identifier}"))
            return

        record = Record.coerce(found)
        ctx.assembler.add_record(record.identifier, record.timestamp, record.metadata, deleted=record.deleted)

    # ------------------------------------------------------------------
    # ListRecords / ListIdentifiers
    # ------------------------------------------------------------------

    async def list_records(self, ctx: RequestContext) -> None:
        token = ctx.arguments.get("resumptionToken")
        if token is not None:
            continuation = await self._continued(ctx, token)
        else:
            continuation = await self._fresh(ctx)
        if continuation is None or ctx.failed:
            return

        await self._deliver_page(ctx, continuation, continued=token is not None)

    async def _fresh(self, ctx: RequestContext) -> Continuation | None:
        args = ctx.arguments
        prefix = args.get("metadataPrefix")
        if prefix is None:
            ctx.add_error(bad_argument("metadataPrefix", "Missing required"))
        else:
            await self._formats.check_prefix(ctx, prefix)

        bounds: dict[str, tuple[datetime, Granularity]] = {}
        for name in ("from", "until"):
            value = args.get(name)
            if value is None:
                continue
            try:
                bounds[name] = parse_datestamp(value)
            except ValueError:
                ctx.add_error(bad_argument(name, "Illegal datestamp in"))

        if len(bounds) == 2:
            (start, start_granularity), (end, end_granularity) = bounds["from"], bounds["until"]
            if start_granularity is not end_granularity:
                ctx.add_error(OAIError(ErrorCode.BAD_ARGUMENT, "from and until must share the same granularity"))
            elif start > end:
                ctx.add_error(OAIError(ErrorCode.BAD_ARGUMENT, "from must not be later than until"))

        if "set" in args:
            ctx.add_error(ErrorCode.NO_SET_HIERARCHY)
        _reject_unknown(ctx, args, LIST_ARGUMENTS)

        if ctx.failed:
            return None
        return Continuation(cursor=0, metadata_prefix=prefix, from_=args.get("from"), until=args.get("until"))

    async def _continued(self, ctx: RequestContext, token: str) -> Continuation | None:
        for key in ctx.arguments:
            if key != "resumptionToken":
                ctx.reject_argument(key, "Unexpected")
        # a request already in error must not consume the token
        if ctx.failed:
            return None

        try:
            return await maybe_await_with_args(self._tokens.resolve, token)
        except TokenNotFound:
            ctx.add_error(OAIError(ErrorCode.BAD_RESUMPTION_TOKEN, f"Invalid or expired resumption token: {token}"))
            return None

    async def _deliver_page(self, ctx: RequestContext, continuation: Continuation, *, continued: bool) -> None:
        prefix = continuation.metadata_prefix
        start = _bound(continuation.from_)
        end = _bound(continuation.until)
        cursor = continuation.cursor
        limit = self._config.max_records

        total = int(
            await maybe_await_with_args(self._source.list_records, prefix, start, end, count_only=True)
        )
        fetched = await maybe_await_with_args(
            self._source.list_records, prefix, start, end, count_only=False, offset=cursor, limit=limit
        )
        records = [Record.coerce(item) for item in _take(fetched or (), limit)]

        assembler = ctx.assembler
        verb_node = assembler.ensure_verb_node()
        for record in records:
            if ctx.verb is Verb.LIST_RECORDS:
                assembler.add_record(record.identifier, record.timestamp, record.metadata, deleted=record.deleted)
            else:
                assembler.add_header(verb_node, record.identifier, record.timestamp, deleted=record.deleted)

        next_cursor = cursor + len(records)
        self._logger.debug(
            "delivered page",
            extra={"event": "records.page", "cursor": cursor, "count": len(records), "total": total},
        )

        if records and next_cursor < total:
            issued = await maybe_await_with_args(
                self._tokens.issue, next_cursor, prefix, continuation.from_, continuation.until
            )
            assembler.add_resumption_token(
                issued.value, expiration=issued.expires_at, complete_list_size=total, cursor=next_cursor
            )
        elif continued:
            assembler.add_resumption_token(None, complete_list_size=total, cursor=cursor)


def _bound(value: str | None) -> datetime | None:
    if value is None:
        return None
    return parse_datestamp(value)[0]


def _take(items: Iterable[Record], limit: int) -> list[Record]:
    taken = []
    for item in items:
        if len(taken) >= limit:
            break
        taken.append(item)
    return taken


def _reject_unknown(ctx: RequestContext, args, allowed: frozenset[str]) -> None:
    for key in args:
        if key not in allowed:
            ctx.reject_argument(key)


__all__ = ["RecordsService"]
