from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_WINDOW_SIZE = 2 ** 19


class StreamSettings(BaseSettings):
    """Window and cache sizing for a stream, read from ``RANGESTREAM_*`` env vars."""

    model_config = SettingsConfigDict(
        env_prefix="RANGESTREAM_", case_sensitive=False, extra="forbid", frozen=True
    )

    window_size: int = Field(default=DEFAULT_WINDOW_SIZE, gt=0)
    # 0 disables the window cache
    max_cache_bytes: int = Field(default=0, ge=0)
    # seconds, only used by the HTTP clients
    timeout: float = Field(default=30.0, gt=0)

    @property
    def max_cache_entries(self) -> int:
        """Number of whole windows that fit in ``max_cache_bytes``."""
        return self.max_cache_bytes // self.window_size
