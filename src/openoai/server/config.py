# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""Server configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
import os
from pathlib import Path
import tempfile
from typing import Final


ENV_TOKEN_VALID: Final[str] = "OPENOAI_TOKEN_VALID"
ENV_MAX_RECORDS: Final[str] = "OPENOAI_MAX_RECORDS"
ENV_TOKEN_DIR: Final[str] = "OPENOAI_TOKEN_DIR"


@dataclass(slots=True)
class ServerConfig:
    """Pagination and token-storage settings.

    ``token_valid`` is how long an issued resumption token stays usable,
    ``max_records`` caps the records returned per list page, and
    ``token_dir``/``token_prefix`` address the default file token store.
    """

    token_valid: timedelta = timedelta(hours=24)
    max_records: int = 100
    token_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    token_prefix: str = "oai2-"

    def __post_init__(self) -> None:
        if self.max_records <= 0:
            raise ValueError("max_records must be positive")
        if self.token_valid <= timedelta(0):
            raise ValueError("token_valid must be positive")
        self.token_dir = Path(self.token_dir)

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build a config, overriding defaults from ``OPENOAI_*`` variables."""
        overrides: dict[str, object] = {}
        token_valid = os.getenv(ENV_TOKEN_VALID)
        if token_valid:
            overrides["token_valid"] = timedelta(seconds=int(token_valid))
        max_records = os.getenv(ENV_MAX_RECORDS)
        if max_records:
            overrides["max_records"] = int(max_records)
        token_dir = os.getenv(ENV_TOKEN_DIR)
        if token_dir:
            overrides["token_dir"] = Path(token_dir)
        return cls(**overrides)  # type: ignore[arg-type]


__all__ = ["ServerConfig"]
