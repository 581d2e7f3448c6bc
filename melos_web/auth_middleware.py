"""
Auth "middleware" helpers.

Protected routes depend on require_token(), which reads the
Authorization: Bearer <token> header and verifies it before the request
body is validated. The order workflow checks the token again, so the same
rules apply to non-HTTP callers.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from melos.app import MelosApp

security = HTTPBearer(auto_error=False)


def get_melos(request: Request) -> MelosApp:
    """The MelosApp the application factory stored on app.state."""
    return request.app.state.melos


async def bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Raw token from the Authorization header, or None when absent."""
    if credentials is None:
        return None
    return credentials.credentials.strip() or None


async def require_token(
    token: Optional[str] = Depends(bearer_token),
    melos: MelosApp = Depends(get_melos),
) -> str:
    """
    Dependency for protected routes.

    Raises Unauthorized (401) if the token is missing, malformed or expired.
    """
    melos.order_workflow.authenticate(token)
    return token
