"""Response Relay - copy a backend response back to the caller.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from http.server import BaseHTTPRequestHandler

from authgateway_core.gateway.request import Response
from authgateway_core.proxy.forwarder import BackendResponse

logger = logging.getLogger(__name__)

# The body is already fully read and decoded, so these would lie to the client
DROPPED_RESPONSE_HEADERS = ("content-encoding", "transfer-encoding")


class ResponseRelay:
    """Turns a captured BackendResponse into the caller's Response.

    Status is copied unchanged, headers are copied in order minus
    Content-Encoding and Transfer-Encoding, body is copied byte for byte.
    """

    def relay(self, backend_response: BackendResponse) -> Response:
        dropped = list(DROPPED_RESPONSE_HEADERS)
        if backend_response.decoded:
            # length of the encoded body, no longer accurate
            dropped.append("content-length")

        return Response(
            status=backend_response.status_code,
            headers=backend_response.headers.without(*dropped),
            body=backend_response.body,
        )

    @staticmethod
    def write(
        response: Response,
        handler: BaseHTTPRequestHandler,
        include_body: bool = True,
    ) -> None:
        """Write a Response onto a request handler's output stream.

        Adds Content-Length when the response carries a body and has none.
        Nothing but the given headers is emitted.
        """
        handler.send_response_only(response.status, response.status_message)

        for name, value in response.headers:
            handler.send_header(name, value)

        if include_body and response.allows_body and "Content-Length" not in response.headers:
            handler.send_header("Content-Length", str(len(response.body)))

        handler.end_headers()

        if include_body and response.allows_body and response.body:
            handler.wfile.write(response.body)
        handler.wfile.flush()


__all__ = [
    "DROPPED_RESPONSE_HEADERS",
    "ResponseRelay",
]
