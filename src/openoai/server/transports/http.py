# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""HTTP transport.

OAI-PMH requests arrive as ``GET`` query strings or ``POST`` bodies encoded
as ``application/x-www-form-urlencoded``. Both are turned into an
:class:`~openoai.types.OAIRequest` (repeated keys preserved for validation)
and answered with the XML document produced by the server.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Final
from urllib.parse import parse_qsl

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route
from uvicorn import Config, Server

from .base import BaseTransport
from ...types import OAIRequest
from ...utils import get_logger


XML_MEDIA_TYPE: Final[str] = "text/xml; charset=UTF-8"
FORM_MEDIA_TYPE: Final[str] = "application/x-www-form-urlencoded"


class HTTPTransport(BaseTransport):
    """Serve an :class:`openoai.server.OAIServer` over plain HTTP."""

    DEFAULT_HOST: str = "127.0.0.1"
    DEFAULT_PORT: int = 8000
    DEFAULT_PATH: str = "/oai"
    DEFAULT_LOG_LEVEL: str = "info"

    def __init__(self, server) -> None:
        super().__init__(server)
        self._logger = get_logger("openoai.transport.http")

    async def run(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        path: str | None = None,
        log_level: str | None = None,
        **uvicorn_options: Any,
    ) -> None:
        host = host or self.DEFAULT_HOST
        port = port or self.DEFAULT_PORT
        path = path or self.DEFAULT_PATH
        log_level = log_level or self.DEFAULT_LOG_LEVEL

        app = self.build_app(path=path)
        config = Config(app=app, host=host, port=port, log_level=log_level, **uvicorn_options)
        self._logger.info("serving OAI-PMH on http://%s:%s%s", host, port, path)
        await Server(config).serve()

    def build_app(self, *, path: str | None = None) -> Starlette:
        return Starlette(routes=list(self._build_routes(path=path or self.DEFAULT_PATH)))

    def _build_routes(self, *, path: str) -> Iterable[Route]:
        return [Route(path, self._endpoint, methods=["GET", "POST"])]

    async def _endpoint(self, request: Request) -> Response:
        pairs = await self._read_pairs(request)
        base_url = str(request.url.replace(query=""))
        oai_request = OAIRequest.from_pairs(pairs, base_url)
        result = await self.server.handle_request(oai_request)
        return Response(result.to_bytes(), media_type=XML_MEDIA_TYPE)

    async def _read_pairs(self, request: Request) -> list[tuple[str, str]]:
        pairs = list(request.query_params.multi_items())
        if request.method == "POST":
            content_type = request.headers.get("content-type", "")
            if content_type.split(";")[0].strip().lower() == FORM_MEDIA_TYPE:
                body = (await request.body()).decode("utf-8", errors="replace")
                pairs.extend(parse_qsl(body, keep_blank_values=True))
        return pairs


__all__ = ["HTTPTransport", "XML_MEDIA_TYPE"]
