"""Request/Response - HTTP request and response objects.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

HeaderInput = Union["Headers", Mapping[str, str], Iterable[Tuple[str, str]], None]


class Headers:
    """Ordered, case-insensitive header multimap.

    Keeps every (name, value) pair in arrival order, including repeated
    names such as ``Set-Cookie``. Lookups ignore case; the original
    spelling of each name is preserved for output.
    """

    def __init__(self, items: HeaderInput = None):
        self._items: List[Tuple[str, str]] = []
        if items is None:
            return
        if isinstance(items, Headers):
            pairs: Iterable[Tuple[str, str]] = items.items()
        elif isinstance(items, Mapping):
            pairs = items.items()
        else:
            pairs = items
        for name, value in pairs:
            self.add(name, value)

    def add(self, name: str, value: str) -> "Headers":
        """Append a header, keeping any existing values."""
        self._items.append((str(name), str(value)))
        return self

    def set(self, name: str, value: str) -> "Headers":
        """Replace all values of a header with a single value."""
        self.remove(name)
        return self.add(name, value)

    def remove(self, name: str) -> int:
        """Remove every value of a header. Returns how many were removed."""
        key = name.lower()
        before = len(self._items)
        self._items = [(k, v) for k, v in self._items if k.lower() != key]
        return before - len(self._items)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get the first value of a header (case-insensitive)."""
        key = name.lower()
        for k, v in self._items:
            if k.lower() == key:
                return v
        return default

    def get_all(self, name: str) -> List[str]:
        """Get every value of a header, in order."""
        key = name.lower()
        return [v for k, v in self._items if k.lower() == key]

    def items(self) -> List[Tuple[str, str]]:
        return list(self._items)

    def names(self) -> List[str]:
        return [k for k, _ in self._items]

    def without(self, *names: str) -> "Headers":
        """Copy of these headers minus the given names (case-insensitive)."""
        drop = {n.lower() for n in names}
        return Headers((k, v) for k, v in self._items if k.lower() not in drop)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        key = name.lower()
        return any(k.lower() == key for k, _ in self._items)

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return [(k.lower(), v) for k, v in self._items] == [
            (k.lower(), v) for k, v in other._items
        ]

    def __repr__(self) -> str:
        return f"Headers({self._items!r})"


@dataclass
class Request:
    """HTTP Request object.

    Represents an incoming HTTP request with all its components.
    ``body`` is None when the client sent no body at all.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: str = ""
    body: Optional[bytes] = None
    remote_addr: str = ""
    protocol: str = "HTTP/1.1"

    # Per-request scratch space for middleware
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.headers, Headers):
            self.headers = Headers(self.headers)

    @property
    def target(self) -> str:
        """Path plus query string, as sent on the request line."""
        if self.query:
            return f"{self.path}?{self.query}"
        return self.path

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get header value (case-insensitive)."""
        return self.headers.get(name, default)

    @classmethod
    def from_target(
        cls,
        method: str,
        target: str,
        headers: HeaderInput = None,
        body: Optional[bytes] = None,
        remote_addr: str = "",
        protocol: str = "HTTP/1.1",
    ) -> "Request":
        """Build a request from a raw request-line target (``/path?query``)."""
        path, _, query = target.partition("?")
        return cls(
            method=method,
            path=path or "/",
            headers=Headers(headers),
            query=query,
            body=body,
            remote_addr=remote_addr,
            protocol=protocol,
        )


@dataclass
class Response:
    """HTTP Response object.

    Represents an outgoing HTTP response.
    """

    status: int = 200
    body: bytes = b""
    headers: Headers = field(default_factory=Headers)

    # Common status messages
    STATUS_MESSAGES = {
        200: "OK",
        201: "Created",
        204: "No Content",
        301: "Moved Permanently",
        302: "Found",
        304: "Not Modified",
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        405: "Method Not Allowed",
        408: "Request Timeout",
        429: "Too Many Requests",
        500: "Internal Server Error",
        502: "Bad Gateway",
        503: "Service Unavailable",
        504: "Gateway Timeout",
    }

    def __post_init__(self) -> None:
        if not isinstance(self.headers, Headers):
            self.headers = Headers(self.headers)

    @property
    def status_message(self) -> str:
        """Get status message."""
        message = self.STATUS_MESSAGES.get(self.status)
        if message is None:
            try:
                message = HTTPStatus(self.status).phrase
            except ValueError:
                message = "Unknown"
        return message

    @property
    def allows_body(self) -> bool:
        """1xx, 204 and 304 responses never carry a body."""
        return not (100 <= self.status < 200 or self.status in (204, 304))

    def json_body(self) -> Any:
        """Parse body as JSON."""
        return json.loads(self.body.decode())

    @classmethod
    def json(
        cls,
        data: Any,
        status: int = 200,
        headers: HeaderInput = None,
    ) -> "Response":
        """Create JSON response with a compact body."""
        body = json.dumps(data, separators=(",", ":")).encode()
        resp_headers = Headers(headers)
        resp_headers.set("Content-Type", "application/json")
        return cls(status=status, body=body, headers=resp_headers)

    @classmethod
    def error(
        cls,
        status: int,
        message: Optional[str] = None,
        headers: HeaderInput = None,
        **extra: Any,
    ) -> "Response":
        """Create error response."""
        msg = message or cls.STATUS_MESSAGES.get(status, "Error")
        data = {"error": msg}
        data.update(extra)
        return cls.json(data, status=status, headers=headers)


__all__ = [
    "Headers",
    "Request",
    "Response",
]
