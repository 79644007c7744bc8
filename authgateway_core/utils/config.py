"""Configuration utilities.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from authgateway_core.gateway.config import (
    DEFAULT_BACKEND_URL,
    DEFAULT_REALM,
    GatewayConfig,
)
from authgateway_core.security.credentials import StaticCredentialStore

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="Config")


class ConfigError(ValueError):
    """Configuration could not be loaded or is invalid."""


@dataclass
class Config:
    """Gateway settings as loaded from file and environment."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8080

    # Backend
    backend_url: str = DEFAULT_BACKEND_URL
    timeout: float = 30.0
    forward_query: bool = False
    ssl_verify: bool = True

    # Authentication
    realm: str = DEFAULT_REALM
    users: Dict[str, str] = field(default_factory=dict)
    users_file: str = ""

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def field_names(cls) -> set:
        return {f.name for f in fields(cls)}

    @classmethod
    def from_dict(cls: Type[T], data: Mapping[str, Any]) -> T:
        """Create config from dictionary, ignoring unknown keys."""
        valid_fields = cls.field_names()
        unknown = set(data) - valid_fields
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {sorted(unknown)}")
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)

    @classmethod
    def from_json(cls: Type[T], path: str) -> T:
        """Load config from JSON file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file must hold a JSON object: {path}")
        return cls.from_dict(data)

    @classmethod
    def from_env(
        cls: Type[T],
        prefix: str = "GATEWAY_",
        environ: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """Read overrides from environment variables.

        Returns only the keys that are set, so they can be layered over
        another config. ``<PREFIX>USERS`` holds a JSON object.
        """
        environ = os.environ if environ is None else environ
        data: Dict[str, Any] = {}

        for key, value in environ.items():
            if not key.startswith(prefix):
                continue
            config_key = key[len(prefix):].lower()
            if config_key not in cls.field_names():
                continue

            if config_key == "users":
                try:
                    data[config_key] = json.loads(value)
                except json.JSONDecodeError as e:
                    raise ConfigError(f"{key} must be a JSON object: {e}") from e
            else:
                data[config_key] = value

        return data

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def merge(self, overrides: Mapping[str, Any]) -> "Config":
        """Copy of this config with ``overrides`` applied."""
        data = self.to_dict()
        data.update(overrides)
        return type(self).from_dict(data)

    def validate(self) -> "Config":
        """Coerce string values and check ranges. Returns self."""
        try:
            self.port = int(self.port)
            self.timeout = float(self.timeout)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        self.forward_query = _to_bool("forward_query", self.forward_query)
        self.ssl_verify = _to_bool("ssl_verify", self.ssl_verify)

        if not 0 <= self.port <= 65535:
            raise ConfigError(f"port out of range: {self.port}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive: {self.timeout}")
        if not isinstance(self.users, dict):
            raise ConfigError("users must be a mapping of username to password")
        if self.log_format not in ("text", "json"):
            raise ConfigError(f"log_format must be 'text' or 'json': {self.log_format}")
        return self

    def load_users(self) -> Dict[str, str]:
        """Users from ``users_file`` overlaid with inline ``users``."""
        users: Dict[str, str] = {}
        if self.users_file:
            try:
                with open(self.users_file, "r", encoding="utf-8") as f:
                    file_users = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise ConfigError(f"Cannot read users file {self.users_file}: {e}") from e
            if not isinstance(file_users, dict):
                raise ConfigError(f"Users file must hold a JSON object: {self.users_file}")
            users.update(file_users)
        users.update(self.users)
        return users

    def build_gateway_config(self) -> GatewayConfig:
        """Freeze these settings into the GatewayConfig used at runtime."""
        self.validate()
        try:
            store = StaticCredentialStore(self.load_users())
            return GatewayConfig(
                backend_base_url=self.backend_url,
                credential_store=store,
                host=self.host,
                port=self.port,
                timeout=self.timeout,
                forward_query=self.forward_query,
                ssl_verify=self.ssl_verify,
                realm=self.realm,
            )
        except (TypeError, ValueError) as e:
            if isinstance(e, ConfigError):
                raise
            raise ConfigError(str(e)) from e


def _to_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off", ""):
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def load_config(
    path: Optional[str] = None,
    env_prefix: str = "GATEWAY_",
    environ: Optional[Mapping[str, str]] = None,
) -> Config:
    """Load configuration from multiple sources.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (if provided)
    3. Defaults
    """
    config = Config()

    if path:
        if not Path(path).exists():
            raise ConfigError(f"Config file not found: {path}")
        if path.endswith(".json"):
            config = Config.from_json(path)
        else:
            raise ConfigError(f"Unknown config format: {path}")

    config = config.merge(Config.from_env(env_prefix, environ))
    return config.validate()


__all__ = [
    "Config",
    "ConfigError",
    "load_config",
]
