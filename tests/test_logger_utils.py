# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

from __future__ import annotations

import io
import json
import logging

import pytest

from openoai.utils.logger import (
    ColoredFormatter,
    EventFormatter,
    OpenOAIHandler,
    StructuredJSONFormatter,
    get_logger,
    setup_logger,
)


def _emit(formatter: logging.Formatter, level: int = logging.INFO, **extra) -> str:
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    logger = logging.getLogger("openoai.test.logger")
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    try:
        logger.log(level, "token issued", extra=extra)
        handler.flush()
    finally:
        logger.handlers = []
        logger.propagate = True

    return stream.getvalue().strip()


@pytest.fixture(autouse=True)
def _restore_root_handlers():
    root = logging.getLogger()
    saved = list(root.handlers)
    level = root.level
    yield
    root.handlers = saved
    root.setLevel(level)


def test_setup_logger_installs_single_handler(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENOAI_LOG_JSON", "0")
    setup_logger(force=True)
    setup_logger()

    handlers = [h for h in logging.getLogger().handlers if isinstance(h, OpenOAIHandler)]
    assert len(handlers) == 1


def test_level_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENOAI_LOG_LEVEL", "debug")
    setup_logger(force=True)

    assert logging.getLogger().level == logging.DEBUG


@pytest.mark.parametrize(
    ("env", "formatter_type"),
    [
        ({"OPENOAI_LOG_JSON": "1"}, StructuredJSONFormatter),
        ({"OPENOAI_LOG_JSON": "0", "NO_COLOR": "1"}, EventFormatter),
    ],
)
def test_formatter_chosen_from_environment(monkeypatch: pytest.MonkeyPatch, env, formatter_type) -> None:
    monkeypatch.delenv("NO_COLOR", raising=False)
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    setup_logger(force=True)

    handler = next(h for h in logging.getLogger().handlers if isinstance(h, OpenOAIHandler))
    assert type(handler.formatter) is formatter_type


def test_get_logger_defaults_to_package_name() -> None:
    assert get_logger().name == "openoai"
    assert get_logger("openoai.server").name == "openoai.server"


def test_json_payload_lifts_event() -> None:
    line = _emit(StructuredJSONFormatter(), event="token.issue", token="abc", cursor=3)

    payload = json.loads(line)
    assert payload["logger"] == "openoai.test.logger"
    assert payload["message"] == "token issued"
    assert payload["event"] == "token.issue"
    assert payload["fields"] == {"token": "abc", "cursor": 3}


def test_json_payload_without_extras() -> None:
    payload = json.loads(_emit(StructuredJSONFormatter()))

    assert "event" not in payload
    assert "fields" not in payload


def test_custom_serializer() -> None:
    line = _emit(StructuredJSONFormatter(lambda payload: f"{payload['level']}|{payload['event']}"), event="x")

    assert line == "info|x"


def test_plain_formatter_appends_fields() -> None:
    line = _emit(EventFormatter("%(levelname)s %(message)s"), event="request.errors", codes=["badVerb"])

    assert line == "INFO token issued event=request.errors codes=['badVerb']"


def test_plain_formatter_leaves_bare_messages_alone() -> None:
    assert _emit(EventFormatter("%(message)s")) == "token issued"


def test_colored_formatter_restores_record() -> None:
    formatter = ColoredFormatter("%(levelname)s %(name)s %(message)s")
    record = logging.LogRecord("demo", logging.WARNING, __file__, 0, "careful", args=(), exc_info=None)
    record.event = "token.expired"

    rendered = formatter.format(record)

    assert "\033[33mWARNING" in rendered
    assert "event=token.expired" in rendered
    assert record.levelname == "WARNING"
    assert record.name == "demo"
