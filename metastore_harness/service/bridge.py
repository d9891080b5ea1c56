"""Credentials handed to the service entry point."""

from __future__ import annotations

import secrets
from dataclasses import dataclass

__all__ = ["AuthBridge"]


@dataclass(slots=True, frozen=True)
class AuthBridge:
    """Credentials the embedded service checks on every catalog call.

    A bridge without a token leaves the service open, which is what most
    tests want.
    """

    token: str | None = None

    @classmethod
    def with_random_token(cls) -> AuthBridge:
        return cls(token=secrets.token_urlsafe(24))

    def accepts(self, presented: str | None) -> bool:
        if self.token is None:
            return True
        if presented is None:
            return False
        return secrets.compare_digest(presented, self.token)
