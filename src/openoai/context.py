# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""Per-request state threaded through validation and dispatch.

One :class:`RequestContext` exists per inbound request and is owned by the
coroutine handling it, so none of its fields need locking.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .errors import ErrorCode, OAIError, bad_argument

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .response import ResponseAssembler
    from .types import OAIRequest, Verb


@dataclass(slots=True)
class RequestContext:
    """Request, response-in-progress, and the errors accumulated so far."""

    request: OAIRequest
    assembler: ResponseAssembler
    errors: list[OAIError] = field(default_factory=list)

    @property
    def verb(self) -> Verb | None:
        return self.request.verb

    @property
    def arguments(self):
        return self.request.arguments

    @property
    def failed(self) -> bool:
        return bool(self.errors)

    def add_error(self, error: OAIError | ErrorCode | str, message: str | None = None) -> None:
        if not isinstance(error, OAIError):
            error = OAIError(error, message)
        self.errors.append(error)

    def reject_argument(self, key: str, reason: str = "Illegal") -> None:
        """Record ``badArgument`` for *key* unless it was already reported as repeated."""
        if key in self.request.repeated:
            return
        self.errors.append(bad_argument(key, reason))


__all__ = ["RequestContext"]
