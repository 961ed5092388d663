from __future__ import annotations
from fastapi import Request
from desafio.errors import Unauthorized
from desafio.security import ADMIN_COOKIE, is_valid_admin_token

ADMIN_PAGE_PREFIX = "/admin"
ADMIN_LOGIN_PAGE = "/admin/login"

def is_protected_admin_path(path: str) -> bool:
    if path == ADMIN_LOGIN_PAGE or path.startswith(ADMIN_LOGIN_PAGE + "/"):
        return False
    return path == ADMIN_PAGE_PREFIX or path.startswith(ADMIN_PAGE_PREFIX + "/")

def has_admin_session(request: Request) -> bool:
    return is_valid_admin_token(request.cookies.get(ADMIN_COOKIE))

async def require_admin(request: Request) -> None:
    if not has_admin_session(request):
        raise Unauthorized()
