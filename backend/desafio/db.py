from __future__ import annotations
from typing import AsyncGenerator
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

class Base(DeclarativeBase):
    pass

def make_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, future=True, echo=False, pool_pre_ping=True)

def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)

async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    # sessionmaker is attached to app.state by the lifespan handler
    async with request.app.state.sessionmaker() as session:
        yield session
