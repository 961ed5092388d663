from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from desafio.auth_deps import ADMIN_LOGIN_PAGE, has_admin_session, is_protected_admin_path
from desafio.config import settings
from desafio.db import make_engine, make_sessionmaker
from desafio.errors import AppError, UpstreamError, first_error_message
from desafio.logging_setup import configure_logging
from desafio.routes.system import router as system_router
from desafio.routes.auth import router as auth_router
from desafio.routes.challenges import router as challenges_router, admin_router as admin_challenges_router
from desafio.routes.completions import router as completions_router
from desafio.routes.pages import router as pages_router
from desafio.services.storage import PrintStorage, StorageError
import structlog

configure_logging()
log = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: clients are built once here and handed to handlers through dependencies
    engine = make_engine(settings.database_url)
    app.state.sessionmaker = make_sessionmaker(engine)
    app.state.storage = PrintStorage.from_settings(settings)
    try:
        app.state.storage.ensure_bucket()
    except StorageError as e:
        log.warning("bucket_check_failed", bucket=settings.s3_bucket_prints, error=str(e))
    log.info("startup", env=settings.environment, version=settings.app_version, git_sha=settings.git_sha)
    yield
    # Shutdown
    await engine.dispose()
    log.info("shutdown")

app = FastAPI(
    title=f"{settings.app_display_name} API",
    version=settings.app_version,
    lifespan=lifespan,
    description=f"{settings.app_display_name}: registro de conclusoes de desafios virtuais e painel administrativo",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(system_router)
app.include_router(auth_router)
app.include_router(challenges_router)
app.include_router(admin_challenges_router)
app.include_router(completions_router)
app.include_router(pages_router)

def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        log.error("request_failed", path=request.url.path, error=exc.message)
    return error_response(exc.status_code, exc.message)

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    log.error("database_error", path=request.url.path, error=str(exc))
    return error_response(UpstreamError.status_code, UpstreamError.default_message)

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(400, first_error_message(exc))

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))

@app.middleware("http")
async def admin_gate(request: Request, call_next):
    if is_protected_admin_path(request.url.path) and not has_admin_session(request):
        log.info("admin_redirect_to_login", path=request.url.path)
        return RedirectResponse(ADMIN_LOGIN_PAGE, status_code=307)
    return await call_next(request)

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid)
    response: Response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    structlog.contextvars.clear_contextvars()
    return response
