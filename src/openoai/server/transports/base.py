"""Shared transport primitives for :mod:`openoai.server`.

Provides a minimal base class that custom transports can subclass.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from ..core import OAIServer


class BaseTransport(ABC):
    """Common base for server transports.

    Subclasses receive the :class:`OAIServer` whose requests they carry and
    must define :meth:`run`, which accepts transport-specific keyword
    arguments (e.g. host/port for HTTP).
    """

    def __init__(self, server: "OAIServer") -> None:
        self._server = server

    @property
    def server(self) -> "OAIServer":
        """Return the owning :class:`OAIServer`."""

        return self._server

    @abstractmethod
    async def run(self, **kwargs) -> None:
        """Start the transport and block until it stops."""


__all__ = ["BaseTransport"]
