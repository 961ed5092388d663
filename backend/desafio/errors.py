from __future__ import annotations
from pydantic import ValidationError as PydanticValidationError


class AppError(Exception):
    """Base for errors that are reported to the client as ``{"error": message}``."""

    status_code = 500
    default_message = "Erro inesperado."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(AppError):
    status_code = 400
    default_message = "Requisicao invalida."


class ValidationError(BadRequest):
    default_message = "Dados invalidos."


class Unauthorized(AppError):
    status_code = 401
    default_message = "Nao autorizado."


class NotFound(AppError):
    status_code = 404
    default_message = "Registro nao encontrado."


class Conflict(AppError):
    status_code = 409
    default_message = "Registro duplicado."


class UpstreamError(AppError):
    status_code = 502
    default_message = "Falha ao comunicar com o servico externo."


def first_error_message(exc: PydanticValidationError | object) -> str:
    """Human readable text of the first pydantic error (without the 'Value error, ' prefix)."""
    errors = exc.errors() if hasattr(exc, "errors") else []
    if not errors:
        return ValidationError.default_message
    err = errors[0]
    ctx_error = (err.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))
