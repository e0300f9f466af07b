"""Configuration loading from environment variables and mneme.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_CONFIG_FILENAME = "mneme.toml"
_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class ServerConfig:
    """HTTP server configuration."""

    host: str = "127.0.0.1"
    port: int = 3005
    max_body_bytes: int = 10 * 1024 * 1024


@dataclass
class StoreConfig:
    """Knowledge store configuration."""

    seed_samples: bool = False
    default_search_limit: int = 10


@dataclass
class MnemeConfig:
    """Top-level Mneme configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    log_level: str = "INFO"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def load_config(config_path: Path | None = None) -> MnemeConfig:
    """Load configuration from environment variables and optional mneme.toml.

    Priority: environment variables > mneme.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.mneme/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, Path.home() / ".mneme" / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    server_data = file_data.get("server", {})
    store_data = file_data.get("store", {})

    port = os.getenv("MNEME_PORT") or os.getenv("PORT") or server_data.get("port", 3005)

    config = MnemeConfig(
        server=ServerConfig(
            host=os.getenv("MNEME_HOST", server_data.get("host", "127.0.0.1")),
            port=int(port),
            max_body_bytes=int(
                os.getenv(
                    "MNEME_MAX_BODY_BYTES", server_data.get("max_body_bytes", 10 * 1024 * 1024)
                )
            ),
        ),
        store=StoreConfig(
            seed_samples=_env_bool("MNEME_SEED_SAMPLES", store_data.get("seed_samples", False)),
            default_search_limit=int(
                os.getenv("MNEME_SEARCH_LIMIT", store_data.get("default_search_limit", 10))
            ),
        ),
        log_level=os.getenv("MNEME_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
    return config
