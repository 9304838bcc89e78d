from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from session_engine.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from session_engine.api.error import ServerError
from session_engine.app.services.session_context import SessionContext
from session_engine.app.services.session_store import SessionStore
from session_engine.app.services.unit_of_work import UnitOfWork
from session_engine.result import Error

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def init_db() -> None:
    """Create the sessions table if missing (no migration tooling)"""
    import session_engine.domain.entities  # noqa: F401 - registers SessionRecord

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


@asynccontextmanager
async def open_unit_of_work() -> AsyncIterator[UnitOfWork]:
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_session_store(request: Request) -> SessionStore:
    """
    The request's SessionStore, created by SessionMiddleware.

    Raises:
        ServerError: if the middleware is not installed
    """
    store = getattr(request.state, "session_store", None)
    if store is None:
        raise ServerError(Error("SESSION_MIDDLEWARE_MISSING", "Session middleware not installed"))
    return store


def get_session_context(request: Request) -> SessionContext:
    """The request's SessionContext, passed explicitly to handlers"""
    ctx = getattr(request.state, "session", None)
    if ctx is None:
        raise ServerError(Error("SESSION_MIDDLEWARE_MISSING", "Session middleware not installed"))
    return ctx


def get_unit_of_work(store: SessionStore = Depends(get_session_store)) -> UnitOfWork:
    """Share the middleware's unit of work so a request uses one DB session"""
    return store.uow


def require_authenticated(
    ctx: SessionContext = Depends(get_session_context),
) -> SessionContext:
    """
    Raises:
        AuthenticationError: 401 if the caller has no authenticated session
    """
    ctx.require_authenticated()
    return ctx


def authorize(*args: Any):
    """
    Dependency factory running ctx.authorize(*args).

    Usage: ctx: SessionContext = Depends(authorize("ADMIN"))
    """

    def dependency(ctx: SessionContext = Depends(get_session_context)) -> SessionContext:
        ctx.authorize(*args)
        return ctx

    return dependency
