from __future__ import annotations

from typing import Any

import bcrypt

_users: dict[str, dict[str, Any]] = {}


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def register_user(
    username: str,
    password: str,
    role: str = "user",
    home_location: dict[str, float] | None = None,
) -> None:
    _users[username] = {
        "password_hash": _hash_password(password),
        "role": role,
        "home_location": home_location,
    }


def _seed_users() -> None:
    """Pre-seed demo accounts on import. Only diners carry a home location."""
    register_user("user", "user123", home_location={"latitude": 45.4642, "longitude": 9.1900})
    register_user("giulia", "giulia123", home_location={"latitude": 45.4720, "longitude": 9.1870})
    register_user("admin", "admin123", role="admin")


def get_account(username: str) -> dict[str, Any] | None:
    """Return the public view of an account: ``{user_id, username, role, home_location}``."""
    record = _users.get(username)
    if record is None:
        return None
    return {
        "user_id": username,
        "username": username,
        "role": record["role"],
        "home_location": record["home_location"],
    }


def authenticate(username: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{username, role}`` or ``None``."""
    record = _users.get(username)
    if record and _verify_password(password, record["password_hash"]):
        return {"username": username, "role": record["role"]}
    return None


_seed_users()
