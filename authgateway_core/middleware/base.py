"""Middleware Base - Base classes for middleware.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from authgateway_core.gateway.request import Request, Response

logger = logging.getLogger(__name__)


class Middleware(ABC):
    """Abstract middleware base class.

    Middleware can inspect requests before the controller runs and
    responses before they are written to the client.

    Pipeline:
    ┌────────────────────────────────────────────────────────────┐
    │                  Middleware Pipeline                        │
    │                                                             │
    │  Request ──▶ MW1 ──▶ MW2 ──▶ ... ──▶ Controller            │
    │                                          │                  │
    │  Response ◀── MW1 ◀── MW2 ◀── ... ◀──────┘                 │
    └────────────────────────────────────────────────────────────┘
    """

    @abstractmethod
    def pre_request(self, request: Request) -> Optional[Response]:
        """Process request before the controller.

        Args:
            request: Inbound request

        Returns:
            Response to short-circuit, or None to continue
        """
        pass

    @abstractmethod
    def post_request(
        self,
        request: Request,
        response: Response,
    ) -> Optional[Response]:
        """Process response before sending.

        Args:
            request: Original request
            response: Response from the controller

        Returns:
            Replacement response or None
        """
        pass


class MiddlewareChain:
    """Chain of middleware for sequential execution."""

    def __init__(self, middleware: Optional[List[Middleware]] = None):
        self._middleware = list(middleware or [])

    def add(self, middleware: Middleware) -> "MiddlewareChain":
        """Add middleware to chain."""
        self._middleware.append(middleware)
        return self

    def process_request(self, request: Request) -> Tuple[Request, Optional[Response]]:
        """Process request through all middleware.

        Returns:
            Tuple of (request, short_circuit_response)
        """
        for mw in self._middleware:
            result = mw.pre_request(request)
            if result is not None:
                return request, result
        return request, None

    def process_response(self, request: Request, response: Response) -> Response:
        """Process response through all middleware (reverse order)."""
        current_response = response

        for mw in reversed(self._middleware):
            result = mw.post_request(request, current_response)
            if result is not None:
                current_response = result

        return current_response

    def __len__(self) -> int:
        return len(self._middleware)


__all__ = [
    "Middleware",
    "MiddlewareChain",
]
