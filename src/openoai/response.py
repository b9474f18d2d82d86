# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""Response document assembly.

:class:`ResponseAssembler` knows the OAI-PMH envelope and element names but
none of the protocol rules: it is told what to append and where. The dispatch
engine drives it and decides whether the final document carries a verb body
or error nodes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import copy
from datetime import datetime
import os
import re
from typing import Any, Final

from lxml import etree

from .datestamps import Timestamp, format_datestamp, utcnow
from .errors import OAIError
from .utils import get_logger


OAI_NS: Final[str] = "http://www.openarchives.org/OAI/2.0/"
XSI_NS: Final[str] = "http://www.w3.org/2001/XMLSchema-instance"
OAI_SCHEMA: Final[str] = "http://www.openarchives.org/OAI/2.0/OAI-PMH.xsd"

OAI: Final[str] = "{%s}" % OAI_NS
XSI: Final[str] = "{%s}" % XSI_NS

NSMAP: Final[dict[str | None, str]] = {None: OAI_NS, "xsi": XSI_NS}

# Everything outside the XML 1.0 Char production
_INVALID_XML_CHARS = re.compile(r"[^\x09\x0A\x0D\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")
_XML_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_.\-]*")

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)

_logger = get_logger("openoai.response")


def clean_text(value: Any) -> str:
    return _INVALID_XML_CHARS.sub("", str(value))


def parse_fragment(payload: Any) -> etree._Element:
    """Turn an opaque metadata payload into an element ready for splicing.

    Accepts an lxml element or tree, an XML document as ``bytes``/``str``, or a
    filesystem path. Elements are deep-copied so the caller's tree is left
    untouched.
    """
    if isinstance(payload, etree._ElementTree):
        return copy.deepcopy(payload.getroot())
    if isinstance(payload, etree._Element):
        return copy.deepcopy(payload)
    if isinstance(payload, bytes):
        return etree.fromstring(payload, _PARSER)
    if isinstance(payload, str) and payload.lstrip().startswith("<"):
        return etree.fromstring(payload.encode("utf-8"), _PARSER)
    if isinstance(payload, (str, os.PathLike)):
        return etree.parse(os.fspath(payload), _PARSER).getroot()
    raise TypeError(f"Unsupported metadata payload: {type(payload).__name__}")


class ResponseAssembler:
    """Builds one ``OAI-PMH`` document.

    The envelope (``responseDate`` and the echoed ``request``) is written on
    construction. The verb node is created lazily on the first call to
    :meth:`add_to_verb_node`.
    """

    def __init__(
        self,
        base_url: str,
        verb: str | None,
        arguments: Mapping[str, str],
        *,
        response_date: datetime | None = None,
    ) -> None:
        self._verb = verb
        self._verb_node: etree._Element | None = None

        self.root = etree.Element(OAI + "OAI-PMH", nsmap=NSMAP)
        self.root.set(XSI + "schemaLocation", f"{OAI_NS} {OAI_SCHEMA}")
        self.add_child(self.root, "responseDate", format_datestamp(response_date or utcnow()))

        request = self.add_child(self.root, "request", base_url)
        if verb:
            request.set("verb", clean_text(verb))
        for key, value in arguments.items():
            if not _XML_NAME.fullmatch(key):
                _logger.debug("argument not echoed, not an XML name", extra={"event": "response.echo.skip", "key": key})
                continue
            request.set(key, clean_text(value))

    # ------------------------------------------------------------------
    # Primitive operations
    # ------------------------------------------------------------------

    def add_child(self, parent: etree._Element, name: str, text: Any = None) -> etree._Element:
        node = etree.SubElement(parent, OAI + name)
        if text is not None and text != "":
            node.text = clean_text(text)
        return node

    def ensure_verb_node(self) -> etree._Element:
        if self._verb_node is None:
            if not self._verb:
                raise RuntimeError("cannot create a verb node for a request without a verb")
            self._verb_node = self.add_child(self.root, self._verb)
        return self._verb_node

    @property
    def has_body(self) -> bool:
        return self._verb_node is not None

    def add_to_verb_node(self, name: str, text: Any = None) -> etree._Element:
        return self.add_child(self.ensure_verb_node(), name, text)

    def add_resumption_token(
        self,
        token: str | None,
        *,
        expiration: datetime | None = None,
        complete_list_size: int | None = None,
        cursor: int | None = None,
    ) -> etree._Element:
        node = self.add_to_verb_node("resumptionToken", token)
        if expiration is not None:
            node.set("expirationDate", format_datestamp(expiration))
        if complete_list_size is not None:
            node.set("completeListSize", str(complete_list_size))
        if cursor is not None:
            node.set("cursor", str(cursor))
        return node

    def import_fragment(self, parent: etree._Element, payload: Any) -> etree._Element:
        fragment = parse_fragment(payload)
        parent.append(fragment)
        return fragment

    # ------------------------------------------------------------------
    # Record structure
    # ------------------------------------------------------------------

    def add_header(
        self,
        parent: etree._Element,
        identifier: str,
        timestamp: Timestamp,
        *,
        deleted: bool = False,
    ) -> etree._Element:
        header = self.add_child(parent, "header")
        if deleted:
            header.set("status", "deleted")
        self.add_child(header, "identifier", identifier)
        self.add_child(header, "datestamp", format_datestamp(timestamp))
        return header

    def add_record(
        self,
        identifier: str,
        timestamp: Timestamp,
        metadata: Any = None,
        *,
        deleted: bool = False,
    ) -> etree._Element:
        record = self.add_to_verb_node("record")
        self.add_header(record, identifier, timestamp, deleted=deleted)
        if not deleted and metadata is not None:
            self.import_fragment(self.add_child(record, "metadata"), metadata)
        return record

    def add_errors(self, errors: Iterable[OAIError]) -> None:
        if self._verb_node is not None:
            raise RuntimeError("error nodes cannot be mixed with a verb body")
        for error in errors:
            node = self.add_child(self.root, "error", error.message)
            node.set("code", error.code.value)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def tree(self) -> etree._ElementTree:
        return etree.ElementTree(self.root)

    def to_bytes(self, *, pretty_print: bool = True) -> bytes:
        return etree.tostring(self.root, xml_declaration=True, encoding="UTF-8", pretty_print=pretty_print)


class OAIResponse:
    """Outcome of processing one request: the document plus its error list."""

    def __init__(self, assembler: ResponseAssembler, errors: Iterable[OAIError] = ()) -> None:
        self._assembler = assembler
        self.errors: list[OAIError] = list(errors)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def error_codes(self) -> list[str]:
        return [error.code.value for error in self.errors]

    @property
    def root(self) -> etree._Element:
        return self._assembler.root

    def tree(self) -> etree._ElementTree:
        return self._assembler.tree()

    def to_bytes(self, *, pretty_print: bool = True) -> bytes:
        return self._assembler.to_bytes(pretty_print=pretty_print)


__all__ = [
    "NSMAP",
    "OAI",
    "OAI_NS",
    "OAIResponse",
    "ResponseAssembler",
    "XSI",
    "clean_text",
    "parse_fragment",
]
