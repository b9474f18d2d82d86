# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""OAI-PMH protocol error taxonomy.

Every failure a harvester can observe is one of the seven codes below. Errors
are request-scoped: handlers collect them on the request context and the
response assembler renders them as ``<error code="...">`` nodes. Nothing in
this module ever terminates request processing on its own.

Reference: http://www.openarchives.org/OAI/openarchivesprotocol.html#ErrorConditions
"""

from __future__ import annotations

from enum import Enum
from typing import Final


class ErrorCode(str, Enum):
    """Closed set of OAI-PMH error codes supported by this repository."""

    BAD_VERB = "badVerb"
    BAD_ARGUMENT = "badArgument"
    BAD_RESUMPTION_TOKEN = "badResumptionToken"
    CANNOT_DISSEMINATE_FORMAT = "cannotDisseminateFormat"
    ID_DOES_NOT_EXIST = "idDoesNotExist"
    NO_METADATA_FORMATS = "noMetadataFormats"
    NO_SET_HIERARCHY = "noSetHierarchy"


MESSAGES: Final[dict[ErrorCode, str]] = {
    ErrorCode.BAD_VERB: (
        "Value of the verb argument is not a legal OAI-PMH verb, the verb argument is missing, "
        "or the verb argument is repeated."
    ),
    ErrorCode.BAD_ARGUMENT: (
        "The request includes illegal arguments, is missing required arguments, includes a repeated "
        "argument, or values for arguments have an illegal syntax."
    ),
    ErrorCode.BAD_RESUMPTION_TOKEN: "The value of the resumptionToken argument is invalid or expired.",
    ErrorCode.CANNOT_DISSEMINATE_FORMAT: (
        "The metadata format identified by the value given for the metadataPrefix argument is not "
        "supported by the item or by the repository."
    ),
    ErrorCode.ID_DOES_NOT_EXIST: "The value of the identifier argument is unknown or illegal in this repository.",
    ErrorCode.NO_METADATA_FORMATS: "There are no metadata formats available for the specified item.",
    ErrorCode.NO_SET_HIERARCHY: "The repository does not support sets.",
}


class OAIError(Exception):
    """A protocol error destined for the response document.

    Raise it from handlers or record sources; the dispatch engine catches it at
    the verb boundary and appends it to the request's error list.
    """

    def __init__(self, code: ErrorCode | str, message: str | None = None) -> None:
        self.code = ErrorCode(code)
        self.message = message or MESSAGES[self.code]
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"OAIError({self.code.value!r}, {self.message!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OAIError):
            return NotImplemented
        return self.code is other.code and self.message == other.message

    def __hash__(self) -> int:
        return hash((self.code, self.message))


def bad_argument(name: str, reason: str = "Illegal") -> OAIError:
    return OAIError(ErrorCode.BAD_ARGUMENT, f"{reason} argument: {name}")


__all__ = ["ErrorCode", "MESSAGES", "OAIError", "bad_argument"]
