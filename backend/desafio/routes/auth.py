from __future__ import annotations
from fastapi import APIRouter, Response
import structlog
from desafio.config import settings
from desafio.errors import BadRequest, Unauthorized
from desafio.schemas.auth import LoginRequest, LoginResult
from desafio.security import ADMIN_COOKIE, check_admin_password, make_admin_token

router = APIRouter(prefix="/api/admin", tags=["admin-auth"])
log = structlog.get_logger()

@router.post("/login", response_model=LoginResult)
async def login(payload: LoginRequest, response: Response):
    if not payload.password:
        raise BadRequest("Senha obrigatoria")
    if not check_admin_password(payload.password):
        log.warning("admin_login_failed")
        raise Unauthorized("Senha invalida")
    response.set_cookie(
        ADMIN_COOKIE,
        make_admin_token(),
        max_age=settings.admin_session_ttl_min * 60,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
    log.info("admin_login")
    return LoginResult(ok=True)

@router.post("/logout", response_model=LoginResult)
async def logout(response: Response):
    # Nothing to revoke server-side; the browser drops the cookie
    response.delete_cookie(ADMIN_COOKIE, path="/", httponly=True, samesite="lax", secure=settings.is_production)
    return LoginResult(ok=True)
