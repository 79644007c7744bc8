"""Request Forwarder - single-exchange forwarding to the backend.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import gzip
import http.client
import logging
import ssl
import time
import zlib
from dataclasses import dataclass
from typing import Optional, Tuple

from authgateway_core.gateway.request import Headers, Request
from authgateway_core.utils.helpers import (
    BackendTarget,
    join_url,
    parse_backend_url,
    request_target,
)

logger = logging.getLogger(__name__)

# Methods whose inbound body is forwarded
BODY_METHODS = ("POST", "PUT", "PATCH")

# Never forwarded to the backend
STRIPPED_REQUEST_HEADERS = ("authorization",)

# Recomputed for the body actually sent
FRAMING_HEADERS = ("content-length", "transfer-encoding")

# Content codings _decode can undo
DECODABLE_CODINGS = ("gzip", "x-gzip", "deflate", "identity")

READ_CHUNK_SIZE = 64 * 1024


class UpstreamUnreachable(Exception):
    """The backend exchange failed at the transport level.

    Covers refused connections, DNS failures, timeouts, TLS handshake
    errors, malformed responses and bodies that cannot be decoded.
    ``details`` holds the error text.
    """

    def __init__(self, details: str, backend_address: str = ""):
        super().__init__(details)
        self.details = details
        self.backend_address = backend_address


class ContentDecodingError(Exception):
    """The backend body carries a content coding that cannot be undone."""


@dataclass
class ProxyConfig:
    """Proxy configuration."""

    timeout: float = 30.0
    forward_query: bool = False
    ssl_verify: bool = True


@dataclass
class OutboundRequest:
    """Request as it will be sent to the backend."""

    method: str
    url: str
    headers: Headers
    body: Optional[bytes] = None


@dataclass
class BackendResponse:
    """Status, headers and body captured from one backend exchange.

    ``decoded`` is True when a gzip/deflate body was decompressed, which
    makes the backend's Content-Length stale.
    """

    status_code: int
    headers: Headers
    body: bytes = b""
    decoded: bool = False
    latency_ms: float = 0.0
    backend_address: str = ""


def accept_decodable(value: str) -> str:
    """Narrow an Accept-Encoding value to codings the gateway can decode.

    Quality parameters are kept. Falls back to ``identity`` when nothing
    usable is left, including for a bare ``*``.
    """
    kept = []
    for part in value.split(","):
        coding = part.split(";", 1)[0].strip().lower()
        if coding in DECODABLE_CODINGS:
            kept.append(part.strip())
    return ", ".join(kept) or "identity"


def describe_error(error: BaseException) -> str:
    """Non-empty text for a transport error."""
    text = str(error).strip()
    if not text:
        return error.__class__.__name__
    return text


class RequestForwarder:
    """Forwards an authenticated request to the fixed backend.

    Every call to ``forward`` performs exactly one HTTP exchange on a
    fresh connection and reads status, headers and body from that same
    response. Nothing is retried.
    """

    def __init__(self, backend_url: str, config: Optional[ProxyConfig] = None):
        self.backend_url = backend_url
        self.config = config or ProxyConfig()
        self._target: BackendTarget = parse_backend_url(backend_url)

    @property
    def target(self) -> BackendTarget:
        return self._target

    def build_outbound(self, request: Request) -> OutboundRequest:
        """Derive the backend request from an inbound one.

        Same method, headers minus Authorization, body only for
        POST/PUT/PATCH. The query string is dropped unless
        ``forward_query`` is set. Accept-Encoding is narrowed to
        gzip/deflate/identity.
        """
        query = request.query if self.config.forward_query else None
        url = join_url(self.backend_url, request.path, query)

        headers = request.headers.without(*STRIPPED_REQUEST_HEADERS, *FRAMING_HEADERS)

        # the relay drops Content-Encoding, so only ask for what _decode handles
        accepted = headers.get_all("Accept-Encoding")
        if accepted:
            headers.set("Accept-Encoding", accept_decodable(", ".join(accepted)))

        body = None
        if request.method in BODY_METHODS:
            body = request.body or b""

        return OutboundRequest(
            method=request.method,
            url=url,
            headers=headers,
            body=body,
        )

    def forward(self, request: Request) -> BackendResponse:
        """Forward request to backend.

        Raises:
            UpstreamUnreachable: the exchange could not be completed
        """
        outbound = self.build_outbound(request)
        address = self._target.address
        start_time = time.perf_counter()
        deadline = start_time + self.config.timeout

        conn = self._connection()
        try:
            self._send(conn, outbound)
            sock = conn.sock
            self._arm(sock, deadline)
            resp = conn.getresponse()
            status_code = resp.status
            headers = Headers(resp.getheaders())
            body = self._read_body(resp, sock, deadline)
            body, decoded = self._decode(headers, body)
        except (OSError, http.client.HTTPException, ContentDecodingError) as e:
            details = describe_error(e)
            logger.debug(f"{outbound.method} {outbound.url} failed: {details}")
            raise UpstreamUnreachable(details, backend_address=address) from e
        finally:
            conn.close()

        return BackendResponse(
            status_code=status_code,
            headers=headers,
            body=body,
            decoded=decoded,
            latency_ms=(time.perf_counter() - start_time) * 1000,
            backend_address=address,
        )

    def _connection(self) -> http.client.HTTPConnection:
        target = self._target
        if target.secure:
            context = ssl.create_default_context()
            if not self.config.ssl_verify:
                context.check_hostname = False
                context.verify_mode = ssl.CERT_NONE
            return http.client.HTTPSConnection(
                target.host,
                target.port,
                timeout=self.config.timeout,
                context=context,
            )
        return http.client.HTTPConnection(
            target.host,
            target.port,
            timeout=self.config.timeout,
        )

    def _send(self, conn: http.client.HTTPConnection, outbound: OutboundRequest) -> None:
        headers = outbound.headers
        conn.putrequest(
            outbound.method,
            request_target(outbound.url),
            skip_host="Host" in headers,
            skip_accept_encoding="Accept-Encoding" in headers,
        )
        for name, value in headers:
            conn.putheader(name, value)
        if outbound.body is not None:
            conn.putheader("Content-Length", str(len(outbound.body)))
        conn.endheaders(outbound.body)

    @staticmethod
    def _arm(sock, deadline: float) -> None:
        """Shrink the socket timeout to what is left before the deadline."""
        remaining = deadline - time.perf_counter()
        if remaining <= 0:
            raise TimeoutError("timed out waiting for backend response")
        if sock is not None:
            sock.settimeout(remaining)

    def _read_body(self, resp: http.client.HTTPResponse, sock, deadline: float) -> bytes:
        """Read the whole body before ``deadline``.

        Every socket read is bounded by the time left, so the timeout
        covers the exchange as a whole.
        """
        chunks = []
        while True:
            self._arm(sock, deadline)
            chunk = resp.read1(READ_CHUNK_SIZE)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)

    def _decode(self, headers: Headers, body: bytes) -> Tuple[bytes, bool]:
        """Undo gzip/deflate content coding so the body can be relayed as-is.

        Raises:
            ContentDecodingError: unsupported or corrupt coding
        """
        encoding = (headers.get("Content-Encoding") or "").strip().lower()
        if not body or not encoding or encoding == "identity":
            return body, False

        try:
            if encoding in ("gzip", "x-gzip"):
                return gzip.decompress(body), True
            if encoding == "deflate":
                try:
                    return zlib.decompress(body), True
                except zlib.error:
                    # raw deflate stream without zlib header
                    return zlib.decompress(body, -zlib.MAX_WBITS), True
        except (OSError, EOFError, zlib.error) as e:
            logger.warning(f"Could not decode {encoding} body from backend: {e}")
            raise ContentDecodingError(f"Could not decode {encoding} response body: {e}") from e

        logger.warning(f"Unsupported Content-Encoding from backend: {encoding}")
        raise ContentDecodingError(f"Unsupported Content-Encoding: {encoding}")


__all__ = [
    "BODY_METHODS",
    "BackendResponse",
    "ContentDecodingError",
    "OutboundRequest",
    "ProxyConfig",
    "RequestForwarder",
    "UpstreamUnreachable",
    "accept_decodable",
    "describe_error",
]
