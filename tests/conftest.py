"""Shared fixtures: a recording stub backend and a running gateway."""

import gzip
import http.client
import json
import socket
import threading
import time
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Dict, List, Optional, Tuple

import pytest

from authgateway_core.gateway.config import GatewayConfig
from authgateway_core.gateway.server import Gateway
from authgateway_core.security.auth import encode_basic
from authgateway_core.security.credentials import StaticCredentialStore

USERS = {"admin": "supersecretpassword"}
VALID_AUTH = encode_basic("admin", "supersecretpassword")


@dataclass
class RecordedRequest:
    """What the stub backend saw."""

    method: str
    path: str
    headers: List[Tuple[str, str]]
    body: bytes

    def header(self, name: str) -> Optional[str]:
        for key, value in self.headers:
            if key.lower() == name.lower():
                return value
        return None

    def header_names(self) -> List[str]:
        return [key.lower() for key, _ in self.headers]


class StubBackendHandler(BaseHTTPRequestHandler):
    """Backend with a few canned endpoints under any base path.

    /ok          200 {"ok":true}
    /echo        request body back, same Content-Type
    /status/N    empty JSON object with status N
    /cookies     two Set-Cookie headers
    /gzip        gzip-encoded body
    /chunked     chunked transfer encoding
    /br          body labelled as brotli, whatever was accepted
    /slow        sleeps before answering
    /trickle     ten bytes, one every 100ms
    """

    protocol_version = "HTTP/1.1"
    backend: "StubBackend"

    def __getattr__(self, name):
        if name.startswith("do_"):
            return self._handle
        raise AttributeError(name)

    def _handle(self):
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        self.backend.record(
            RecordedRequest(
                method=self.command,
                path=self.path,
                headers=list(self.headers.items()),
                body=body,
            )
        )

        endpoint = self.path.split("?", 1)[0].rsplit("/api", 1)[-1]

        if endpoint == "/echo":
            content_type = self.headers.get("Content-Type", "application/octet-stream")
            self._send(200, body, [("Content-Type", content_type)])
        elif endpoint.startswith("/status/"):
            self._send(int(endpoint.rsplit("/", 1)[-1]), b"{}", [("Content-Type", "application/json")])
        elif endpoint == "/cookies":
            self._send(
                200,
                b"cookies",
                [("Set-Cookie", "a=1"), ("Set-Cookie", "b=2"), ("X-Backend", "stub")],
            )
        elif endpoint == "/gzip":
            self._send(
                200,
                gzip.compress(b'{"compressed":true}'),
                [("Content-Type", "application/json"), ("Content-Encoding", "gzip")],
            )
        elif endpoint == "/chunked":
            self.send_response(200)
            self.send_header("Content-Type", "text/plain")
            self.send_header("Transfer-Encoding", "chunked")
            self.end_headers()
            for chunk in (b"hello ", b"world"):
                self.wfile.write(b"%x\r\n%s\r\n" % (len(chunk), chunk))
            self.wfile.write(b"0\r\n\r\n")
        elif endpoint == "/br":
            self._send(
                200,
                b"\x8b\x05\x80not-really-brotli\x03",
                [("Content-Type", "text/plain"), ("Content-Encoding", "br")],
            )
        elif endpoint == "/trickle":
            self.send_response(200)
            self.send_header("Content-Length", "10")
            self.end_headers()
            try:
                for _ in range(10):
                    self.wfile.write(b"x")
                    self.wfile.flush()
                    time.sleep(0.1)
            except OSError:
                pass
        elif endpoint == "/slow":
            time.sleep(self.backend.slow_seconds)
            self._send(200, b"late", [("Content-Type", "text/plain")])
        else:
            self._send(200, b'{"ok":true}', [("Content-Type", "application/json")])

    def _send(self, status, body, headers):
        self.send_response(status)
        for name, value in headers:
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def log_message(self, format, *args):
        pass


class StubBackend:
    """Threaded stub backend that records every request it receives."""

    def __init__(self):
        self.requests: List[RecordedRequest] = []
        self.slow_seconds = 2.0
        self._lock = threading.Lock()
        handler = type("BoundStubHandler", (StubBackendHandler,), {"backend": self})
        self._server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
        self._server.daemon_threads = True
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)

    @property
    def url(self) -> str:
        host, port = self._server.server_address[:2]
        return f"http://{host}:{port}"

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.requests)

    def record(self, request: RecordedRequest) -> None:
        with self._lock:
            self.requests.append(request)

    def start(self) -> "StubBackend":
        self._thread.start()
        return self

    def stop(self) -> None:
        self._server.shutdown()
        self._server.server_close()
        self._thread.join()


@dataclass
class ClientResponse:
    status: int
    headers: List[Tuple[str, str]]
    body: bytes

    def header(self, name: str) -> Optional[str]:
        for key, value in self.headers:
            if key.lower() == name.lower():
                return value
        return None

    def header_values(self, name: str) -> List[str]:
        return [v for k, v in self.headers if k.lower() == name.lower()]

    def json(self):
        return json.loads(self.body.decode())


def send(
    address: Tuple[str, int],
    method: str,
    path: str,
    headers: Optional[Dict[str, str]] = None,
    body: Optional[bytes] = None,
) -> ClientResponse:
    """One request over a fresh connection."""
    conn = http.client.HTTPConnection(address[0], address[1], timeout=10)
    try:
        conn.request(method, path, body=body, headers=headers or {})
        resp = conn.getresponse()
        return ClientResponse(resp.status, resp.getheaders(), resp.read())
    finally:
        conn.close()


def send_raw(address: Tuple[str, int], data: bytes) -> bytes:
    """Write raw bytes and read until the gateway closes the connection."""
    with socket.create_connection(address, timeout=10) as sock:
        sock.sendall(data)
        received = b""
        while True:
            chunk = sock.recv(65536)
            if not chunk:
                return received
            received += chunk


def unused_port() -> int:
    """A port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def backend():
    stub = StubBackend().start()
    yield stub
    stub.stop()


@pytest.fixture
def gateway_config(backend):
    return GatewayConfig(
        backend_base_url=f"{backend.url}/api",
        credential_store=StaticCredentialStore(USERS),
        host="127.0.0.1",
        port=0,
        timeout=5.0,
    )


@pytest.fixture
def gateway(gateway_config):
    gw = Gateway(gateway_config)
    gw.start()
    yield gw
    gw.stop()
