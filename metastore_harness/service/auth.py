"""Bearer-token authentication for the metastore API."""

from __future__ import annotations

from fastapi import HTTPException, Request, status
from fastapi.security import HTTPBearer

from .context import get_app_context

__all__ = ["BearerTokenAuth"]


class BearerTokenAuth:
    """FastAPI dependency that validates bearer tokens against the app's bridge."""

    def __init__(self) -> None:
        self.scheme = HTTPBearer(auto_error=False)

    async def __call__(self, request: Request) -> None:
        bridge = get_app_context(request).auth_bridge
        if bridge.token is None:
            return
        credentials = await self.scheme(request)
        if credentials is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Missing bearer token",
            )
        if not bridge.accepts(credentials.credentials):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid bearer token",
            )
