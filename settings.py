# SPDX-FileCopyrightText: © 2023-2024 Devon D. Sparks
# SPDX-License-Identifier: AGPL-3.0

"""
Runtime configuration, read from the environment (prefix JSONLDCHECK_) or a
local .env file.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="JSONLDCHECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Bundled copies of well-known contexts, indexed by index.json
    CONTEXT_DIR: Path = Path(__file__).parent / "static" / "contexts"

    # Fetch contexts that are not bundled over HTTP
    ALLOW_REMOTE_CONTEXTS: bool = False
    REMOTE_TIMEOUT: float = 10.0

    # Let HTTP clients reference contexts on the server's filesystem
    SERVICE_LOCAL_CONTEXTS: bool = False

    LOG_LEVEL: str = "WARNING"

    HOST: str = "0.0.0.0"
    PORT: int = 5000


@lru_cache
def get_settings() -> Settings:
    return Settings()
