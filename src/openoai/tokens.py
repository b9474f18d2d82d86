# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""Resumption token storage.

A token maps an unguessable identity to the :class:`~openoai.types.Continuation`
needed to serve the next page. Tokens are single-use: :meth:`TokenStore.resolve`
removes the entry whether or not it is still valid, and of two concurrent
resolutions of the same token exactly one observes the continuation.

A token expires at ``issued_at + valid``. Expired and unknown tokens are
indistinguishable to callers; both raise :class:`TokenNotFound`. Expired
entries are also reaped lazily: every issue or resolve runs
:meth:`~BaseTokenStore.purge_expired` once ``purge_interval`` has elapsed
since the previous sweep.

Two implementations ship with OpenOAI:

* :class:`MemoryTokenStore` keeps entries in a lock-guarded dict and sweeps on
  every call. Suitable for a single process.
* :class:`FileTokenStore` writes one JSON file per token. Issue links a fully
  written temp file into place (so a token file is never observed half
  written), resolve renames the file to a private claim name before reading it
  (so only one resolver can win).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import datetime, timedelta
import json
import os
from pathlib import Path
import re
import secrets
import tempfile
import threading
from typing import Any, NamedTuple, Protocol, runtime_checkable

from .datestamps import utcnow
from .types import Continuation
from .utils import get_logger


Clock = Callable[[], datetime]

_TOKEN_PATTERN = re.compile(r"[A-Za-z0-9_\-]{1,128}")
_TOKEN_BYTES = 16
_CLAIM_SUFFIX = ".claim"
_TMP_SUFFIX = ".tmp"


class TokenNotFound(LookupError):
    """Raised when a token is unknown, already used, expired, or malformed."""


class IssuedToken(NamedTuple):
    value: str
    expires_at: datetime


@runtime_checkable
class TokenStore(Protocol):
    def issue(
        self,
        cursor: int,
        metadata_prefix: str,
        from_: str | None = None,
        until: str | None = None,
    ) -> IssuedToken:
        """Persist a continuation and return its new token."""

    def resolve(self, token: str) -> Continuation:
        """Return and invalidate the continuation behind *token*."""

    def purge_expired(self) -> int:
        """Delete every expired entry and return how many were removed."""


@dataclass(frozen=True, slots=True)
class _Entry:
    continuation: Continuation
    issued_at: datetime


class BaseTokenStore(ABC):
    """Shared expiry bookkeeping for the bundled stores."""

    DEFAULT_PURGE_INTERVAL: timedelta = timedelta(minutes=5)

    def __init__(
        self,
        *,
        valid: timedelta = timedelta(hours=24),
        clock: Clock = utcnow,
        purge_interval: timedelta | None = None,
    ) -> None:
        if valid <= timedelta(0):
            raise ValueError("token validity window must be positive")
        self.valid = valid
        self.purge_interval = self.DEFAULT_PURGE_INTERVAL if purge_interval is None else purge_interval
        self._clock = clock
        self._next_purge: datetime | None = None
        self._logger = get_logger(f"openoai.tokens.{type(self).__name__}")

    def issue(
        self,
        cursor: int,
        metadata_prefix: str,
        from_: str | None = None,
        until: str | None = None,
    ) -> IssuedToken:
        self._maybe_purge()
        entry = _Entry(
            continuation=Continuation(cursor=cursor, metadata_prefix=metadata_prefix, from_=from_, until=until),
            issued_at=self._clock(),
        )
        token = self._store(entry)
        self._logger.info("resumption token issued", extra={"event": "token.issue", "token": token, "cursor": cursor})
        return IssuedToken(token, entry.issued_at + self.valid)

    def resolve(self, token: str) -> Continuation:
        self._maybe_purge()
        if not _TOKEN_PATTERN.fullmatch(token or ""):
            raise TokenNotFound(token)
        entry = self._take(token)
        if entry is None:
            raise TokenNotFound(token)
        if self._is_expired(entry):
            self._logger.info("expired resumption token presented", extra={"event": "token.expired", "token": token})
            raise TokenNotFound(token)
        self._logger.info("resumption token resolved", extra={"event": "token.resolve", "token": token})
        return entry.continuation

    def _is_expired(self, entry: _Entry) -> bool:
        return entry.issued_at + self.valid < self._clock()

    def _maybe_purge(self) -> None:
        now = self._clock()
        if self._next_purge is not None and now < self._next_purge:
            return
        self._next_purge = now + self.purge_interval
        self.purge_expired()

    @staticmethod
    def _new_token() -> str:
        return secrets.token_hex(_TOKEN_BYTES)

    @abstractmethod
    def _store(self, entry: _Entry) -> str: ...

    @abstractmethod
    def _take(self, token: str) -> _Entry | None: ...

    @abstractmethod
    def purge_expired(self) -> int: ...


class MemoryTokenStore(BaseTokenStore):
    """Process-local token store. Expired entries are reaped on every call."""

    DEFAULT_PURGE_INTERVAL = timedelta(0)

    def __init__(
        self,
        *,
        valid: timedelta = timedelta(hours=24),
        clock: Clock = utcnow,
        purge_interval: timedelta | None = None,
    ) -> None:
        super().__init__(valid=valid, clock=clock, purge_interval=purge_interval)
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _store(self, entry: _Entry) -> str:
        with self._lock:
            token = self._new_token()
            while token in self._entries:
                token = self._new_token()
            self._entries[token] = entry
        return token

    def _take(self, token: str) -> _Entry | None:
        with self._lock:
            return self._entries.pop(token, None)

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_locked()

    def _purge_locked(self) -> int:
        expired = [token for token, entry in self._entries.items() if self._is_expired(entry)]
        for token in expired:
            del self._entries[token]
        return len(expired)


class FileTokenStore(BaseTokenStore):
    """Token store backed by one JSON file per token under *directory*.

    Only regular files named ``<prefix><token>`` are treated as tokens, so the
    store can share a directory such as the system temp dir with other files.
    """

    def __init__(
        self,
        directory: str | os.PathLike[str] | None = None,
        *,
        prefix: str = "oai2-",
        valid: timedelta = timedelta(hours=24),
        clock: Clock = utcnow,
        purge_interval: timedelta | None = None,
    ) -> None:
        super().__init__(valid=valid, clock=clock, purge_interval=purge_interval)
        self.directory = Path(directory) if directory is not None else Path(tempfile.gettempdir())
        self.prefix = prefix
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, token: str) -> Path:
        return self.directory / f"{self.prefix}{token}"

    def _store(self, entry: _Entry) -> str:
        payload = json.dumps(_encode(entry)).encode("utf-8")
        fd, tmp_name = tempfile.mkstemp(prefix=self.prefix, suffix=_TMP_SUFFIX, dir=self.directory)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            while True:
                token = self._new_token()
                try:
                    os.link(tmp_name, self.path_for(token))
                except FileExistsError:
                    continue
                return token
        finally:
            os.unlink(tmp_name)

    def _take(self, token: str) -> _Entry | None:
        return self._claim(self.path_for(token))

    def _claim(self, path: Path) -> _Entry | None:
        if not path.is_file():
            return None
        claimed = path.with_name(f"{path.name}.{secrets.token_hex(4)}{_CLAIM_SUFFIX}")
        try:
            os.rename(path, claimed)
        except OSError:
            return None
        try:
            raw = claimed.read_bytes()
        finally:
            claimed.unlink(missing_ok=True)
        try:
            return _decode(json.loads(raw))
        except (ValueError, KeyError, TypeError):
            self._logger.warning("discarding unreadable token file", extra={"event": "token.corrupt", "path": str(path)})
            return None

    def _token_files(self) -> Iterator[Path]:
        for path in self.directory.glob(f"{self.prefix}*"):
            if _TOKEN_PATTERN.fullmatch(path.name[len(self.prefix) :]) and path.is_file():
                yield path

    def purge_expired(self) -> int:
        removed = 0
        for path in self._token_files():
            try:
                entry = _decode(json.loads(path.read_bytes()))
            except OSError:
                continue
            except (ValueError, KeyError, TypeError):
                # not ours, or presented later and discarded by _claim
                continue
            if not self._is_expired(entry):
                continue
            try:
                path.unlink()
            except OSError:
                continue
            removed += 1
        if removed:
            self._logger.info("purged expired resumption tokens", extra={"event": "token.purge", "count": removed})
        return removed


def _encode(entry: _Entry) -> dict[str, Any]:
    continuation = entry.continuation
    return {
        "cursor": continuation.cursor,
        "metadataPrefix": continuation.metadata_prefix,
        "from": continuation.from_,
        "until": continuation.until,
        "issuedAt": entry.issued_at.isoformat(),
    }


def _decode(payload: dict[str, Any]) -> _Entry:
    continuation = Continuation(
        cursor=int(payload["cursor"]),
        metadata_prefix=str(payload["metadataPrefix"]),
        from_=payload.get("from"),
        until=payload.get("until"),
    )
    return _Entry(continuation=continuation, issued_at=datetime.fromisoformat(payload["issuedAt"]))


__all__ = [
    "BaseTokenStore",
    "FileTokenStore",
    "IssuedToken",
    "MemoryTokenStore",
    "TokenNotFound",
    "TokenStore",
]
