"""Gateway Controller - per-request authentication, forwarding and relay.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, FrozenSet, List, Optional

from authgateway_core.gateway.config import GatewayConfig
from authgateway_core.gateway.request import Request, Response
from authgateway_core.proxy.forwarder import RequestForwarder, UpstreamUnreachable
from authgateway_core.proxy.relay import ResponseRelay
from authgateway_core.security.auth import AuthResult, BasicAuthenticator

logger = logging.getLogger(__name__)

UNAUTHORIZED_ERROR = "Unauthorized"
UPSTREAM_ERROR = "Failed to connect to backend API"


class GatewayState(Enum):
    """Lifecycle of one inbound request."""

    START = auto()
    AUTHENTICATING = auto()
    UNAUTHORIZED = auto()
    FORWARDING = auto()
    UPSTREAM_ERROR = auto()
    RELAYING = auto()
    DONE = auto()

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES: FrozenSet[GatewayState] = frozenset(
    {GatewayState.UNAUTHORIZED, GatewayState.UPSTREAM_ERROR, GatewayState.DONE}
)

TRANSITIONS: Dict[GatewayState, FrozenSet[GatewayState]] = {
    GatewayState.START: frozenset({GatewayState.AUTHENTICATING}),
    GatewayState.AUTHENTICATING: frozenset(
        {GatewayState.UNAUTHORIZED, GatewayState.FORWARDING}
    ),
    GatewayState.FORWARDING: frozenset(
        {GatewayState.UPSTREAM_ERROR, GatewayState.RELAYING}
    ),
    GatewayState.RELAYING: frozenset({GatewayState.DONE}),
}


class InvalidTransition(RuntimeError):
    """A request tried to move between states that are not connected."""

    def __init__(self, current: GatewayState, target: GatewayState):
        super().__init__(f"Cannot move from {current.name} to {target.name}")
        self.current = current
        self.target = target


@dataclass
class Exchange:
    """Record of one request's trip through the controller."""

    request: Request
    request_id: str
    state: GatewayState = GatewayState.START
    history: List[GatewayState] = field(default_factory=lambda: [GatewayState.START])
    response: Optional[Response] = None
    auth: Optional[AuthResult] = None
    error: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.state.is_terminal

    def advance(self, target: GatewayState) -> None:
        if target not in TRANSITIONS.get(self.state, frozenset()):
            raise InvalidTransition(self.state, target)
        logger.debug(f"[{self.request_id}] {self.state.name} -> {target.name}")
        self.state = target
        self.history.append(target)


class GatewayController:
    """Runs Authenticator -> RequestForwarder -> ResponseRelay for a request.

    Every request ends in exactly one terminal state:

        START ──▶ AUTHENTICATING ──▶ UNAUTHORIZED            (401)
                         │
                         ▼
                    FORWARDING ──▶ UPSTREAM_ERROR            (502)
                         │
                         ▼
                     RELAYING ──▶ DONE           (backend status)

    The controller holds no per-request state, so one instance serves
    all request threads.
    """

    def __init__(
        self,
        config: GatewayConfig,
        authenticator: Optional[BasicAuthenticator] = None,
        forwarder: Optional[RequestForwarder] = None,
        relay: Optional[ResponseRelay] = None,
    ):
        self.config = config
        self.authenticator = authenticator or BasicAuthenticator(config.credential_store)
        self.forwarder = forwarder or RequestForwarder(
            config.backend_base_url,
            config.proxy_config(),
        )
        self.relay = relay or ResponseRelay()

    def handle(self, request: Request) -> Response:
        """Handle a request and return the response for the caller."""
        return self.process(request).response

    def process(self, request: Request) -> Exchange:
        """Drive a request to a terminal state.

        Args:
            request: Inbound request

        Returns:
            The finished Exchange, carrying the response
        """
        request_id = request.context.get("request_id") or uuid.uuid4().hex[:8]
        exchange = Exchange(request=request, request_id=request_id)

        exchange.advance(GatewayState.AUTHENTICATING)
        exchange.auth = self.authenticator.check(request.get_header("Authorization"))

        if not exchange.auth.is_authenticated:
            logger.warning(
                f"[{request_id}] Rejected {request.method} {request.path}: "
                f"{exchange.auth.status.name} ({exchange.auth.error})"
            )
            exchange.advance(GatewayState.UNAUTHORIZED)
            exchange.response = self.unauthorized_response()
            return exchange

        request.context["identity"] = exchange.auth.identity
        exchange.advance(GatewayState.FORWARDING)

        try:
            backend_response = self.forwarder.forward(request)
        except UpstreamUnreachable as e:
            logger.error(
                f"[{request_id}] Backend {e.backend_address} unreachable: {e.details}"
            )
            exchange.advance(GatewayState.UPSTREAM_ERROR)
            exchange.error = e.details
            exchange.response = self.upstream_error_response(e.details)
            return exchange

        exchange.advance(GatewayState.RELAYING)
        logger.debug(
            f"[{request_id}] Backend answered {backend_response.status_code} "
            f"in {backend_response.latency_ms:.2f}ms"
        )
        exchange.response = self.relay.relay(backend_response)
        exchange.advance(GatewayState.DONE)
        return exchange

    def unauthorized_response(self) -> Response:
        return Response.error(
            401,
            UNAUTHORIZED_ERROR,
            headers={"WWW-Authenticate": f'Basic realm="{self.config.realm}"'},
        )

    def upstream_error_response(self, details: str) -> Response:
        return Response.error(502, UPSTREAM_ERROR, details=details)


__all__ = [
    "Exchange",
    "GatewayController",
    "GatewayState",
    "InvalidTransition",
    "TERMINAL_STATES",
]
