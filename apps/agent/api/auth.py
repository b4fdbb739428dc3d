from __future__ import annotations

from typing import Optional

from fastapi import Request

from services.token_guard import TokenGuard


def client_origin(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def require_token(request: Request) -> None:
    """
    Route dependency guarding every protected endpoint.

    Raises an AgentError subclass; the app's exception handler renders it.
    """
    guard: TokenGuard = request.app.state.guard
    guard.authorize(request.headers.get("Authorization"), origin=client_origin(request))
