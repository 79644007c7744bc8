"""AuthGateway - Basic-auth reverse proxy for a single backend.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

AuthGateway puts HTTP Basic Authentication in front of one backend API:
- Credential validation against an immutable credential store
- Single-exchange request forwarding
- Verbatim response relay
- Threaded HTTP server with a middleware pipeline

Architecture Overview:
┌─────────────────────────────────────────────────────────────────────────────┐
│                             AuthGateway                                      │
├─────────────────────────────────────────────────────────────────────────────┤
│                                                                              │
│  ┌───────────────────────────────────────────────────────────────────────┐  │
│  │                        Request Pipeline                                │  │
│  │  Client ──▶ Server ──▶ Middleware ──▶ Controller ──▶ Backend          │  │
│  └───────────────────────────────────────────────────────────────────────┘  │
│                                                                              │
│  ┌─────────────────┐  ┌─────────────────┐  ┌─────────────────────────────┐ │
│  │    Gateway      │  │    Security     │  │           Proxy             │ │
│  │                 │  │                 │  │                             │ │
│  │ - Server        │  │ - Basic auth    │  │ - RequestForwarder          │ │
│  │ - Controller    │  │ - Credential    │  │ - ResponseRelay             │ │
│  │ - Request       │  │   store         │  │                             │ │
│  │ - Config        │  │                 │  │                             │ │
│  └─────────────────┘  └─────────────────┘  └─────────────────────────────┘ │
│                                                                              │
└─────────────────────────────────────────────────────────────────────────────┘

Request Flow:
1. Client sends request to the Gateway server
2. Middleware chain logs the request
3. Controller checks Basic credentials (401 on any failure)
4. Forwarder sends one request to the backend (502 if unreachable)
5. Relay copies status, headers and body back to the client

Usage:
    from authgateway_core import (
        Gateway,
        GatewayConfig,
        LoggingMiddleware,
        StaticCredentialStore,
    )

    config = GatewayConfig(
        backend_base_url="http://localhost:8000/api",
        credential_store=StaticCredentialStore({"admin": "supersecretpassword"}),
    )
    gateway = Gateway(config)
    gateway.use(LoggingMiddleware())
    gateway.run(host="0.0.0.0", port=8080)
"""

__version__ = "0.1.0"
__author__ = "BlackRoad OS, Inc."

# Gateway core
from authgateway_core.gateway.request import Headers, Request, Response
from authgateway_core.gateway.config import GatewayConfig
from authgateway_core.gateway.controller import (
    Exchange,
    GatewayController,
    GatewayState,
    InvalidTransition,
)
from authgateway_core.gateway.server import Gateway

# Middleware
from authgateway_core.middleware.base import Middleware, MiddlewareChain
from authgateway_core.middleware.logging import LoggingMiddleware

# Proxy
from authgateway_core.proxy.forwarder import (
    BackendResponse,
    ProxyConfig,
    RequestForwarder,
    UpstreamUnreachable,
)
from authgateway_core.proxy.relay import ResponseRelay

# Security
from authgateway_core.security.auth import (
    AuthResult,
    AuthStatus,
    BasicAuthenticator,
    Credentials,
)
from authgateway_core.security.credentials import (
    CredentialStore,
    StaticCredentialStore,
)

# Utils
from authgateway_core.utils.config import Config, ConfigError, load_config

__all__ = [
    # Version
    "__version__",
    # Gateway
    "Exchange",
    "Gateway",
    "GatewayConfig",
    "GatewayController",
    "GatewayState",
    "Headers",
    "InvalidTransition",
    "Request",
    "Response",
    # Middleware
    "LoggingMiddleware",
    "Middleware",
    "MiddlewareChain",
    # Proxy
    "BackendResponse",
    "ProxyConfig",
    "RequestForwarder",
    "ResponseRelay",
    "UpstreamUnreachable",
    # Security
    "AuthResult",
    "AuthStatus",
    "BasicAuthenticator",
    "CredentialStore",
    "Credentials",
    "StaticCredentialStore",
    # Utils
    "Config",
    "ConfigError",
    "load_config",
]
