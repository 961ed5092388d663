from __future__ import annotations
from pydantic import BaseModel, ConfigDict, field_validator
from typing import Literal
from uuid import UUID
from datetime import datetime

from desafio.services.formatting import format_whatsapp, is_valid_whatsapp, normalize_state

CompletionStatus = Literal["active", "archived"]


class CompletionForm(BaseModel):
    """Fields typed by the runner on the public form. Values are normalized the way the form shows them."""

    full_name: str
    state: str
    city: str
    whatsapp: str
    order_number: str

    @field_validator("full_name")
    @classmethod
    def full_name_min_length(cls, v: str):
        v = v.strip()
        if not v:
            raise ValueError("Informe seu nome completo.")
        if len(v) < 3:
            raise ValueError("Digite pelo menos 3 caracteres.")
        return v

    @field_validator("state")
    @classmethod
    def state_code(cls, v: str):
        v = normalize_state(v)
        if not v:
            raise ValueError("Informe o estado (UF).")
        if len(v) != 2:
            raise ValueError("Use a sigla com 2 letras.")
        return v

    @field_validator("city")
    @classmethod
    def city_required(cls, v: str):
        v = v.strip()
        if not v:
            raise ValueError("Informe a cidade.")
        return v

    @field_validator("whatsapp")
    @classmethod
    def whatsapp_pattern(cls, v: str):
        if not v.strip():
            raise ValueError("Informe seu contato de WhatsApp.")
        v = format_whatsapp(v)
        if not is_valid_whatsapp(v):
            raise ValueError("Use o formato (99) 99999-9999.")
        return v

    @field_validator("order_number")
    @classmethod
    def order_number_required(cls, v: str):
        v = v.strip()
        if not v:
            raise ValueError("Informe o numero do pedido.")
        return v


class CompletionPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    challenge_slug: str
    challenge_name: str
    full_name: str
    state: str
    city: str
    whatsapp: str
    order_number: str
    strava_screenshot_url: str
    status: str
    is_confirmed: bool | None = None
    created_at: datetime


class CompletionPatch(BaseModel):
    is_confirmed: bool

    @field_validator("is_confirmed", mode="before")
    @classmethod
    def must_be_boolean(cls, v):
        if not isinstance(v, bool):
            raise ValueError("O campo is_confirmed precisa ser booleano.")
        return v


class CompletionIdBody(BaseModel):
    id: UUID | None = None


class CompletionPage(BaseModel):
    data: list[CompletionPublic]
    total: int
    page: int | None = None
    page_size: int | None = None
