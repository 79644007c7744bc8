"""Gateway module - Core gateway server."""

from authgateway_core.gateway.request import Headers, Request, Response
from authgateway_core.gateway.config import GatewayConfig
from authgateway_core.gateway.controller import (
    Exchange,
    GatewayController,
    GatewayState,
    InvalidTransition,
)
from authgateway_core.gateway.server import Gateway

__all__ = [
    "Exchange",
    "Gateway",
    "GatewayConfig",
    "GatewayController",
    "GatewayState",
    "Headers",
    "InvalidTransition",
    "Request",
    "Response",
]
