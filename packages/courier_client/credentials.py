"""Credential store contract consumed by the pipeline."""

from __future__ import annotations

import copy
from typing import Any, Protocol


class CredentialStore(Protocol):
    """Persists one auth token; persistence mechanism is the implementer's."""

    def get(self) -> str | None:
        """Return the current token, if any."""

    def set(self, token: str) -> None:
        """Store a new token."""

    def clear(self) -> None:
        """Forget the token and any associated user record."""


class InMemoryCredentialStore:
    """Process-local credential store holding a token and a user record."""

    def __init__(self, token: str | None = None, user: dict[str, Any] | None = None) -> None:
        self._token = token
        self._user = copy.deepcopy(user)

    def get(self) -> str | None:
        return self._token

    def set(self, token: str) -> None:
        if token.strip() == "":
            raise ValueError("token must be non-empty")
        self._token = token

    def clear(self) -> None:
        self._token = None
        self._user = None

    def get_user(self) -> dict[str, Any] | None:
        """Return a copy of the stored user record."""
        return copy.deepcopy(self._user)

    def set_user(self, user: dict[str, Any]) -> None:
        """Store the signed-in user's record."""
        self._user = copy.deepcopy(user)
