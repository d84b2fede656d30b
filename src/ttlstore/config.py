"""Library configuration via environment variables."""

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "TTLSTORE_", "env_file": ".env", "env_file_encoding": "utf-8"}

    scheduler: Literal["thread", "asyncio", "manual"] = "thread"
    cache_ttl_ms: float | None = 60_000  # 1 minute; None = cached reads never expire

    storage_type: str = "memory"
