"""Helper utilities.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit


@dataclass(frozen=True)
class BackendTarget:
    """Parsed backend base URL."""

    scheme: str
    host: str
    port: int

    @property
    def secure(self) -> bool:
        return self.scheme == "https"

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


def parse_backend_url(url: str) -> BackendTarget:
    """Parse and validate a backend base URL such as ``http://host:8000/api``."""
    parsed = urlsplit(url)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"Backend URL must use http or https: {url!r}")
    if not parsed.hostname:
        raise ValueError(f"Backend URL has no host: {url!r}")
    if parsed.query or parsed.fragment:
        raise ValueError(f"Backend URL may not carry a query or fragment: {url!r}")

    port = parsed.port or (443 if parsed.scheme == "https" else 80)
    return BackendTarget(
        scheme=parsed.scheme,
        host=parsed.hostname,
        port=port,
    )


def join_url(base_url: str, path: str, query: Optional[str] = None) -> str:
    """Plain concatenation of base URL and inbound path.

    No slash normalization: ``http://b/api`` + ``/users`` gives
    ``http://b/api/users``.
    """
    url = f"{base_url}{path}"
    if query:
        url = f"{url}?{query}"
    return url


def request_target(url: str) -> str:
    """Path-and-query portion of a URL, as written on the request line."""
    parsed = urlsplit(url)
    target = parsed.path or "/"
    if parsed.query:
        target = f"{target}?{parsed.query}"
    return target


__all__ = [
    "BackendTarget",
    "parse_backend_url",
    "join_url",
    "request_target",
]
