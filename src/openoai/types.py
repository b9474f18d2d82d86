# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""Protocol value types shared across OpenOAI.

Requests and continuations are immutable dataclasses; repository-facing
configuration (identity, metadata formats) is validated with pydantic so that
misconfiguration fails at construction time instead of mid-harvest.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .datestamps import Timestamp, is_valid_datestamp


class Verb(str, Enum):
    IDENTIFY = "Identify"
    LIST_METADATA_FORMATS = "ListMetadataFormats"
    LIST_SETS = "ListSets"
    LIST_IDENTIFIERS = "ListIdentifiers"
    LIST_RECORDS = "ListRecords"
    GET_RECORD = "GetRecord"

    @classmethod
    def parse(cls, value: str | None) -> Verb | None:
        """Return the matching verb, or ``None`` for a missing or unknown value."""
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class OAIRequest:
    """An inbound harvester request.

    ``arguments`` never contains the ``verb`` key. ``repeated`` names every
    key (``verb`` included) that appeared more than once in the raw query.
    """

    verb_value: str | None
    arguments: Mapping[str, str]
    base_url: str
    repeated: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments", MappingProxyType(dict(self.arguments)))

    @property
    def verb(self) -> Verb | None:
        if "verb" in self.repeated:
            return None
        return Verb.parse(self.verb_value)

    @classmethod
    def from_mapping(cls, args: Mapping[str, str], base_url: str) -> OAIRequest:
        arguments = dict(args)
        verb_value = arguments.pop("verb", None)
        return cls(verb_value=verb_value, arguments=arguments, base_url=base_url)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]], base_url: str) -> OAIRequest:
        """Build a request from raw query pairs, remembering repeated keys."""
        arguments: dict[str, str] = {}
        repeated: set[str] = set()
        for key, value in pairs:
            if key in arguments:
                repeated.add(key)
                continue
            arguments[key] = value
        verb_value = arguments.pop("verb", None)
        return cls(verb_value=verb_value, arguments=arguments, base_url=base_url, repeated=frozenset(repeated))


@dataclass(frozen=True, slots=True)
class Record:
    """A single item supplied by the record source.

    ``metadata`` is opaque: an lxml element, an XML document as ``str`` or
    ``bytes``, or a path to an XML file.
    """

    identifier: str
    timestamp: Timestamp
    metadata: Any = None
    deleted: bool = False

    @classmethod
    def coerce(cls, value: Record | Mapping[str, Any]) -> Record:
        if isinstance(value, Record):
            return value
        return cls(
            identifier=value["identifier"],
            timestamp=value["timestamp"],
            metadata=value.get("metadata"),
            deleted=bool(value.get("deleted", False)),
        )


@dataclass(frozen=True, slots=True)
class Continuation:
    """State carried by a resumption token between two pages."""

    cursor: int
    metadata_prefix: str
    from_: str | None = None
    until: str | None = None


class MetadataFormat(BaseModel):
    """Schema and namespace advertised for one metadata prefix."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    schema_location: str = Field(validation_alias=AliasChoices("schema", "schema_location"))
    namespace: str = Field(validation_alias=AliasChoices("namespace", "metadataNamespace"))


def coerce_formats(value: Mapping[str, Any] | None) -> dict[str, MetadataFormat]:
    """Normalize a record-source format mapping into validated models."""
    if not value:
        return {}
    return {
        prefix: entry if isinstance(entry, MetadataFormat) else MetadataFormat.model_validate(entry)
        for prefix, entry in value.items()
    }


class Identity(BaseModel):
    """Repository description returned by ``Identify``.

    Field names are the OAI-PMH element names and are emitted in declaration
    order. ``adminEmail`` may be given as a single address or a list.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    repositoryName: str
    baseURL: str
    protocolVersion: str = "2.0"
    earliestDatestamp: str
    deletedRecord: Literal["no", "transient", "persistent"] = "no"
    granularity: Literal["YYYY-MM-DD", "YYYY-MM-DDThh:mm:ssZ"] = "YYYY-MM-DDThh:mm:ssZ"
    adminEmail: list[str] = Field(min_length=1)

    @field_validator("adminEmail", mode="before")
    @classmethod
    def _wrap_single_email(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("earliestDatestamp")
    @classmethod
    def _check_datestamp(cls, value: str) -> str:
        if not is_valid_datestamp(value):
            raise ValueError(f"earliestDatestamp is not an OAI datestamp: {value!r}")
        return value

    def elements(self) -> Iterator[tuple[str, str]]:
        for name, value in self.model_dump().items():
            if isinstance(value, list):
                for item in value:
                    yield name, item
            else:
                yield name, value


def identity_elements(identity: Identity | Mapping[str, Any]) -> Iterator[tuple[str, str]]:
    """Yield ``(element, text)`` pairs for an identity, verbatim and in order."""
    if isinstance(identity, Identity):
        yield from identity.elements()
        return
    for name, value in identity.items():
        if isinstance(value, (list, tuple)):
            for item in value:
                yield name, str(item)
        else:
            yield name, str(value)


__all__ = [
    "Continuation",
    "Identity",
    "MetadataFormat",
    "OAIRequest",
    "Record",
    "Verb",
    "coerce_formats",
    "identity_elements",
]
