"""Application configuration.

AppConfig is a frozen dataclass built once at startup, either directly or
from ``SPROUT_*`` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=3000, secret_key="s3cr3t")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Reload (development mode, requires debug=True)
    reload_include: tuple[str, ...] = ()  # Extra extensions to watch (e.g. ".toml")
    reload_dirs: tuple[str, ...] = ()  # Extra directories to watch alongside cwd

    # Security
    secret_key: str = ""

    # Validation: reject fields a schema does not declare
    strict_schemas: bool = False

    # Limits
    max_content_length: int = 1024 * 1024  # 1 MB of JSON is plenty

    # Logging
    log_level: str = "info"

    @classmethod
    def from_env(cls, prefix: str = "SPROUT_", **overrides: object) -> AppConfig:
        """Build a config from ``{prefix}SECRET_KEY``, ``{prefix}DEBUG`` and friends.

        Keyword *overrides* win over the environment.
        """
        env = os.environ
        values: dict[str, object] = {}
        if (secret := env.get(f"{prefix}SECRET_KEY")) is not None:
            values["secret_key"] = secret
        if (debug := env.get(f"{prefix}DEBUG")) is not None:
            values["debug"] = debug.strip().lower() in _TRUTHY
        if (host := env.get(f"{prefix}HOST")) is not None:
            values["host"] = host
        if (port := env.get(f"{prefix}PORT")) is not None:
            values["port"] = int(port)
        if (level := env.get(f"{prefix}LOG_LEVEL")) is not None:
            values["log_level"] = level
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]
