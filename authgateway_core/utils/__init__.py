"""Utils module - Utility functions.

``authgateway_core.utils.config`` is imported directly; it depends on the
gateway package, which itself uses these helpers.
"""

from authgateway_core.utils.helpers import (
    BackendTarget,
    join_url,
    parse_backend_url,
    request_target,
)

__all__ = [
    "BackendTarget",
    "join_url",
    "parse_backend_url",
    "request_target",
]
