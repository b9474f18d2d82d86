# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""Logging utilities for OpenOAI.

Every log call inside OpenOAI names what happened through an ``event`` extra
(``token.issue``, ``request.errors`` ...) and may attach further fields, e.g.
``extra={"event": "token.issue", "token": token, "cursor": 3}``. The
formatters here render those fields: appended as ``key=value`` pairs for
terminals, or as a JSON object with a top-level ``event`` for log shippers
(``OPENOAI_LOG_JSON=1``).
"""

from __future__ import annotations

from collections.abc import Callable
import json
import logging
import os
from typing import Any, ClassVar, Final


RESET: Final[str] = "\033[0m"
LOGGER_COLOR: Final[str] = "\033[94m"     # Bright blue
EVENT_COLOR: Final[str] = "\033[2m"       # Dim

DEFAULT_LOGGER_NAME: Final[str] = "openoai"
ENV_LOG_LEVEL: Final[str] = "OPENOAI_LOG_LEVEL"
ENV_LOG_JSON: Final[str] = "OPENOAI_LOG_JSON"
ENV_NO_COLOR: Final[str] = "NO_COLOR"
DEFAULT_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT: Final[str] = "%Y-%m-%d %H:%M:%S"

JsonSerializer = Callable[[dict[str, Any]], str]

# Attributes every LogRecord carries; anything else arrived through ``extra``
_BUILTIN_RECORD_KEYS: Final[frozenset[str]] = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


def record_fields(record: logging.LogRecord) -> tuple[str | None, dict[str, Any]]:
    """Split the ``extra`` data of *record* into its event name and other fields."""
    fields = {key: value for key, value in record.__dict__.items() if key not in _BUILTIN_RECORD_KEYS}
    event = fields.pop("event", None)
    return event, fields


class EventFormatter(logging.Formatter):
    """Plain-text formatter that appends the event and its fields."""

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        event, fields = record_fields(record)
        suffix = self.render_fields(event, fields)
        return f"{line} {suffix}" if suffix else line

    def render_fields(self, event: str | None, fields: dict[str, Any]) -> str:
        parts = [f"event={event}"] if event else []
        parts.extend(f"{key}={value}" for key, value in fields.items())
        return " ".join(parts)


class ColoredFormatter(EventFormatter):
    """:class:`EventFormatter` with ANSI colours for level, logger name and fields."""

    LEVEL_COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",        # Cyan
        "INFO": "\033[32m",         # Green
        "WARNING": "\033[33m",      # Yellow
        "ERROR": "\033[1;31m",      # Bold bright red
        "CRITICAL": "\033[1;35m",   # Bold bright magenta
    }

    def format(self, record: logging.LogRecord) -> str:
        orig_levelname = record.levelname
        orig_name = record.name

        record.levelname = f"{self.LEVEL_COLORS.get(orig_levelname, '')}{orig_levelname}{RESET}"
        record.name = f"{LOGGER_COLOR}{orig_name}{RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = orig_levelname
            record.name = orig_name

    def render_fields(self, event: str | None, fields: dict[str, Any]) -> str:
        rendered = super().render_fields(event, fields)
        return f"{EVENT_COLOR}{rendered}{RESET}" if rendered else rendered


class OpenOAIHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """StreamHandler subclass managed by OpenOAI."""


class StructuredJSONFormatter(logging.Formatter):
    """One JSON object per record: ``event`` at the top level, other extras under ``fields``."""

    def __init__(self, serializer: JsonSerializer | None = None, *, datefmt: str | None = None) -> None:
        super().__init__(datefmt=datefmt)
        self._serializer = serializer or _default_json_serializer

    def format(self, record: logging.LogRecord) -> str:
        event, fields = record_fields(record)
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if event:
            payload["event"] = event
        if fields:
            payload["fields"] = fields
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return self._serializer(payload)


def _default_json_serializer(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, default=str)


def _has_openoai_handler(root: logging.Logger) -> bool:
    return any(isinstance(handler, OpenOAIHandler) for handler in root.handlers)


def _read_bool_env(key: str) -> bool:
    value = os.getenv(key)
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(ENV_LOG_LEVEL)
        if not level:
            return logging.INFO

    if isinstance(level, int):
        return level

    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(
    *,
    level: int | str | None = None,
    use_json: bool | None = None,
    use_color: bool | None = None,
    json_serializer: JsonSerializer | None = None,
    force: bool = False,
) -> None:
    """Configure the root logger.

    Args:
        level: Override the log level. Falls back to ``OPENOAI_LOG_LEVEL`` then
            ``logging.INFO``.
        use_json: Enable JSON output. Defaults to ``OPENOAI_LOG_JSON`` when
            ``None``.
        use_color: Enable colored output. Defaults to ``True`` unless ``NO_COLOR``
            is set or JSON output is active.
        json_serializer: Callable that converts the payload dict into a JSON
            string, e.g. a faster third-party encoder.
        force: Reconfigure even if OpenOAI already attached its handler.
    """
    root = logging.getLogger()

    if _has_openoai_handler(root) and not force:
        return

    for handler in list(root.handlers):
        if isinstance(handler, OpenOAIHandler):
            root.removeHandler(handler)
            handler.close()

    resolved_level = _resolve_level(level)
    root.setLevel(resolved_level)

    resolved_use_json = use_json if use_json is not None else _read_bool_env(ENV_LOG_JSON)
    if use_color is None:
        use_color = not resolved_use_json and not os.getenv(ENV_NO_COLOR)

    formatter: logging.Formatter
    if resolved_use_json:
        formatter = StructuredJSONFormatter(json_serializer, datefmt=DEFAULT_DATEFMT)
    elif use_color:
        formatter = ColoredFormatter(DEFAULT_FORMAT, datefmt=DEFAULT_DATEFMT)
    else:
        formatter = EventFormatter(DEFAULT_FORMAT, datefmt=DEFAULT_DATEFMT)

    handler = OpenOAIHandler()
    handler.setLevel(resolved_level)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger configured for OpenOAI usage.

    Args:
        name: Optional logger name. Defaults to ``DEFAULT_LOGGER_NAME``.
    """
    if not _has_openoai_handler(logging.getLogger()):
        setup_logger()
    return logging.getLogger(name or DEFAULT_LOGGER_NAME)


__all__ = [
    "DEFAULT_LOGGER_NAME",
    "ColoredFormatter",
    "EventFormatter",
    "OpenOAIHandler",
    "StructuredJSONFormatter",
    "get_logger",
    "record_fields",
    "setup_logger",
]
