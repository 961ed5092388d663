from __future__ import annotations
from pydantic import BaseModel

class LoginRequest(BaseModel):
    password: str | None = None

class LoginResult(BaseModel):
    ok: bool = True
