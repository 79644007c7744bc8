"""Gateway Server - threaded HTTP front end.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Optional, Tuple, Type

from authgateway_core.gateway.config import GatewayConfig
from authgateway_core.gateway.controller import GatewayController
from authgateway_core.gateway.request import Request, Response
from authgateway_core.middleware.base import Middleware, MiddlewareChain
from authgateway_core.proxy.relay import ResponseRelay

logger = logging.getLogger(__name__)

CLOSE = {"Connection": "close"}


class RequestFramingError(Exception):
    """The inbound request body cannot be read as framed."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


class GatewayRequestHandler(BaseHTTPRequestHandler):
    """Turns each HTTP request into a Request for the Gateway.

    Any method token is accepted; ``do_<METHOD>`` lookups all resolve to
    the same dispatcher. Credentials are checked before the body is
    touched, so unauthenticated callers always get 401 and their body
    is never read.
    """

    protocol_version = "HTTP/1.1"
    server_version = "AuthGateway"

    gateway: "Gateway"

    def __getattr__(self, name: str) -> Any:
        if name.startswith("do_"):
            return self._dispatch
        raise AttributeError(name)

    def _dispatch(self) -> None:
        has_body = "Content-Length" in self.headers or "Transfer-Encoding" in self.headers

        if has_body and not self.gateway.authenticates(self.headers.get("Authorization")):
            # the unread body leaves the connection unusable
            response = self.gateway.handle_request(self._request(body=None))
            response.headers.set("Connection", "close")
            self._reply(response)
            return

        try:
            body = self._read_body()
        except RequestFramingError as e:
            self._reply(Response.error(e.status, e.message, headers=CLOSE))
            return

        self._reply(self.gateway.handle_request(self._request(body)))

    def _request(self, body: Optional[bytes]) -> Request:
        return Request.from_target(
            self.command,
            self.path,
            headers=self.headers.items(),
            body=body,
            remote_addr=self.client_address[0],
            protocol=self.request_version,
        )

    def _read_body(self) -> Optional[bytes]:
        if "chunked" in (self.headers.get("Transfer-Encoding") or "").lower():
            raise RequestFramingError(411, "Length Required")

        length = self.headers.get("Content-Length")
        if length is None:
            return None
        try:
            size = int(length)
        except ValueError:
            raise RequestFramingError(400, "Invalid Content-Length") from None
        if size < 0:
            raise RequestFramingError(400, "Invalid Content-Length")

        max_size = self.gateway.max_request_size
        if max_size and size > max_size:
            raise RequestFramingError(413, "Payload Too Large")
        return self.rfile.read(size)

    def _reply(self, response: Response) -> None:
        ResponseRelay.write(response, self, include_body=self.command != "HEAD")

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class Gateway:
    """API Gateway Server.

    Features:
    - Basic authentication against a credential store
    - Single fixed backend
    - Middleware pipeline
    - One thread per connection

    Usage:
        config = GatewayConfig(
            backend_base_url="http://localhost:8000/api",
            credential_store=StaticCredentialStore({"admin": "secret"}),
        )
        gateway = Gateway(config)
        gateway.use(LoggingMiddleware())
        gateway.run()
    """

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        controller: Optional[GatewayController] = None,
        max_request_size: int = 10 * 1024 * 1024,  # 10MB
    ):
        self.config = config or GatewayConfig()
        self.controller = controller or GatewayController(self.config)
        self.max_request_size = max_request_size
        self._middleware = MiddlewareChain()
        self._server: Optional[ThreadingHTTPServer] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.RLock()

    def use(self, middleware: Middleware) -> "Gateway":
        """Add middleware to the pipeline.

        Args:
            middleware: Middleware instance
        """
        with self._lock:
            self._middleware.add(middleware)
        return self

    def authenticates(self, authorization: Optional[str]) -> bool:
        """Whether an Authorization header value passes the Basic check."""
        return self.controller.authenticator.check(authorization).is_authenticated

    def handle_request(self, request: Request) -> Response:
        """Handle incoming request through middleware and the controller.

        Args:
            request: Incoming request

        Returns:
            Response for the client
        """
        try:
            request, short_circuit = self._middleware.process_request(request)
            if short_circuit is not None:
                response = short_circuit
            else:
                response = self.controller.handle(request)
            return self._middleware.process_response(request, response)
        except Exception:
            logger.exception(f"Unhandled error for {request.method} {request.path}")
            return Response.error(500)

    def make_server(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> ThreadingHTTPServer:
        """Bind a threaded HTTP server for this gateway."""
        host = self.config.host if host is None else host
        port = self.config.port if port is None else port

        handler: Type[GatewayRequestHandler] = type(
            "BoundGatewayRequestHandler",
            (GatewayRequestHandler,),
            {"gateway": self},
        )
        server = ThreadingHTTPServer((host, port), handler)
        server.daemon_threads = True
        return server

    def start(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> Tuple[str, int]:
        """Serve in a background thread. Returns the bound address."""
        with self._lock:
            if self._server is not None:
                raise RuntimeError("Gateway is already running")
            self._server = self.make_server(host, port)
            self._thread = threading.Thread(
                target=self._server.serve_forever,
                name="authgateway-server",
                daemon=True,
            )
            self._thread.start()

        address = self.server_address
        logger.info(f"Gateway listening on {address[0]}:{address[1]}")
        return address

    def run(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> None:
        """Start the gateway server and block until stopped.

        Args:
            host: Override host
            port: Override port
        """
        logger.info(f"Starting gateway -> {self.config.backend_base_url}")
        self.start(host, port)
        thread = self._thread
        try:
            # short joins keep the main thread responsive to Ctrl-C
            while thread is not None and thread.is_alive():
                thread.join(0.5)
        finally:
            self.stop()

    def stop(self) -> None:
        """Stop the gateway server."""
        with self._lock:
            server, self._server = self._server, None
            thread, self._thread = self._thread, None

        if server is None:
            return
        if thread is not None:
            server.shutdown()
            thread.join()
        server.server_close()
        logger.info("Gateway stopped")

    @property
    def running(self) -> bool:
        return self._server is not None

    @property
    def server_address(self) -> Tuple[str, int]:
        if self._server is None:
            raise RuntimeError("Gateway is not running")
        host, port = self._server.server_address[:2]
        return str(host), int(port)

    def get_stats(self) -> Dict[str, Any]:
        """Get gateway statistics."""
        return {
            "backend": self.config.backend_base_url,
            "users": len(self.config.credential_store),
            "middleware": len(self._middleware),
            "running": self.running,
        }


__all__ = [
    "Gateway",
    "GatewayConfig",
    "GatewayRequestHandler",
    "RequestFramingError",
]
