"""Logging Middleware - Request/response logging.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from authgateway_core.gateway.request import Request, Response
from authgateway_core.middleware.base import Middleware

logger = logging.getLogger(__name__)

# Never written to logs
REDACTED_HEADERS = ("authorization", "cookie", "proxy-authorization")


@dataclass
class LoggingConfig:
    """Logging middleware configuration."""

    log_headers: bool = False
    log_query: bool = True
    skip_paths: List[str] = field(default_factory=list)


class LoggingMiddleware(Middleware):
    """Logging middleware for requests and responses.

    Tags each request with a short id that the controller reuses in its
    own log lines.
    """

    def __init__(self, config: Optional[LoggingConfig] = None):
        self.config = config or LoggingConfig()

    def pre_request(self, request: Request) -> Optional[Response]:
        """Log incoming request."""
        request_id = uuid.uuid4().hex[:8]
        request.context["request_id"] = request_id
        request.context["start_time"] = time.perf_counter()

        if request.path in self.config.skip_paths:
            request.context["skip_log"] = True
            return None

        log_parts = [f"[{request_id}] --> {request.method} {request.path}"]

        if self.config.log_query and request.query:
            log_parts.append(f"query={request.query}")

        if self.config.log_headers:
            headers = [
                (k, "***" if k.lower() in REDACTED_HEADERS else v)
                for k, v in request.headers
            ]
            log_parts.append(f"headers={headers}")

        if request.remote_addr:
            log_parts.append(f"from={request.remote_addr}")

        logger.info(" ".join(log_parts))
        return None

    def post_request(
        self,
        request: Request,
        response: Response,
    ) -> Optional[Response]:
        """Log outgoing response."""
        if request.context.get("skip_log"):
            return None

        request_id = request.context.get("request_id", "?")
        start_time = request.context.get("start_time", time.perf_counter())
        duration_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            f"[{request_id}] <-- {response.status} "
            f"{len(response.body)}B ({duration_ms:.2f}ms)"
        )
        return None


__all__ = [
    "LoggingConfig",
    "LoggingMiddleware",
]
