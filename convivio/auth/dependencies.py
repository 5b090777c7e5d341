from __future__ import annotations

from fastapi import HTTPException, Request

from .users import get_account


def require_user(request: Request) -> dict:
    """Raise 401 unless the session belongs to a known account."""
    session_user = request.session.get("user")
    account = get_account(session_user["username"]) if session_user else None
    if not account:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return account


def require_admin(request: Request) -> dict:
    """Raise 401 if not logged in, 403 if not admin."""
    account = require_user(request)
    if account.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return account
