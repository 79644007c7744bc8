"""Gateway configuration - immutable process-wide settings.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from authgateway_core.proxy.forwarder import ProxyConfig
from authgateway_core.security.credentials import CredentialStore, StaticCredentialStore
from authgateway_core.utils.helpers import parse_backend_url

DEFAULT_BACKEND_URL = "http://localhost:8000/api"
DEFAULT_REALM = "API Gateway"


@dataclass(frozen=True)
class GatewayConfig:
    """Gateway configuration.

    Built once at startup and shared read-only by every request thread.
    """

    backend_base_url: str = DEFAULT_BACKEND_URL
    credential_store: CredentialStore = field(default_factory=StaticCredentialStore)
    host: str = "0.0.0.0"
    port: int = 8080
    timeout: float = 30.0
    forward_query: bool = False
    ssl_verify: bool = True
    realm: str = DEFAULT_REALM

    def __post_init__(self) -> None:
        parse_backend_url(self.backend_base_url)
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if '"' in self.realm:
            raise ValueError("realm may not contain double quotes")

    def proxy_config(self) -> ProxyConfig:
        return ProxyConfig(
            timeout=self.timeout,
            forward_query=self.forward_query,
            ssl_verify=self.ssl_verify,
        )


__all__ = [
    "DEFAULT_BACKEND_URL",
    "DEFAULT_REALM",
    "GatewayConfig",
]
