"""Explicit session carrying the bearer credential for service calls."""

from __future__ import annotations

from typing import Optional

from .errors import AuthMissingError


class Session:
    """
    Credential holder handed to the service client.

    The authentication collaborator owns the token; the scheduling core only
    reads it through this object and reports when it is missing.
    """

    def __init__(self, token: Optional[str] = None, user_id: Optional[str] = None):
        self._token = token.strip() if token else None
        self.user_id = user_id

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def bearer(self) -> str:
        """Authorization header value; raises AuthMissingError without a token."""
        if not self._token:
            raise AuthMissingError("No credential available. Please log in.")
        return f"Bearer {self._token}"

    def invalidate(self) -> None:
        """Forget the token after the service rejected it."""
        self._token = None

    def __repr__(self) -> str:
        state = "authenticated" if self.is_authenticated else "anonymous"
        return f"Session({state}, user_id={self.user_id!r})"
