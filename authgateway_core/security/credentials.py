"""Credential stores - username to password lookup.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Union

logger = logging.getLogger(__name__)


class CredentialStore(ABC):
    """Read-only username -> password table.

    Implementations must be safe for concurrent reads from many request
    threads without locking, so they must not change after construction.
    """

    @abstractmethod
    def lookup(self, username: str) -> Optional[str]:
        """Return the stored password for ``username`` or None."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass

    def __contains__(self, username: object) -> bool:
        return isinstance(username, str) and self.lookup(username) is not None


class StaticCredentialStore(CredentialStore):
    """Credential store backed by an immutable in-memory mapping.

    Usernames and passwords are compared exactly; no case folding.
    """

    def __init__(self, users: Optional[Mapping[str, str]] = None):
        table: Dict[str, str] = {}
        for username, password in (users or {}).items():
            if not isinstance(username, str) or not isinstance(password, str):
                raise TypeError("usernames and passwords must be strings")
            if ":" in username:
                raise ValueError(f"username may not contain ':': {username!r}")
            table[username] = password
        self._users: Mapping[str, str] = MappingProxyType(table)

    def lookup(self, username: str) -> Optional[str]:
        return self._users.get(username)

    def __len__(self) -> int:
        return len(self._users)

    def __repr__(self) -> str:
        return f"StaticCredentialStore(users={sorted(self._users)!r})"

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "StaticCredentialStore":
        """Load a ``{"username": "password", ...}`` JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Credential file must hold a JSON object: {path}")
        logger.info(f"Loaded {len(data)} user(s) from {path}")
        return cls(data)


__all__ = [
    "CredentialStore",
    "StaticCredentialStore",
]
