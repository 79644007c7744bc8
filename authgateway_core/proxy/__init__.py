"""Proxy module - Request forwarding and response relay."""

from authgateway_core.proxy.forwarder import (
    BackendResponse,
    ContentDecodingError,
    OutboundRequest,
    ProxyConfig,
    RequestForwarder,
    UpstreamUnreachable,
)
from authgateway_core.proxy.relay import ResponseRelay

__all__ = [
    "BackendResponse",
    "ContentDecodingError",
    "OutboundRequest",
    "ProxyConfig",
    "RequestForwarder",
    "ResponseRelay",
    "UpstreamUnreachable",
]
