from __future__ import annotations
import hmac
from datetime import datetime, timedelta, timezone
from typing import Any
import jwt
from desafio.config import settings

JWT_ALG = "HS256"
ADMIN_COOKIE = "admin_session"
TOKEN_TYPE = "admin"

def check_admin_password(password: str) -> bool:
    expected = settings.admin_panel_password
    if not expected:
        # An unset password must never open the panel
        return False
    return hmac.compare_digest(password.encode("utf-8"), expected.encode("utf-8"))

def make_admin_token(ttl_min: int | None = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": "admin",
        "type": TOKEN_TYPE,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl_min or settings.admin_session_ttl_min)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALG)

def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALG])

def is_valid_admin_token(token: str | None) -> bool:
    if not token:
        return False
    try:
        data = decode_token(token)
    except jwt.PyJWTError:
        return False
    return data.get("type") == TOKEN_TYPE
