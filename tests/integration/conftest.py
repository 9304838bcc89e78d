from contextlib import asynccontextmanager
from typing import Any, Dict

import pytest
import pytest_asyncio
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from session_engine.adapter.repositories.session_repository import SessionRepository
from session_engine.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from session_engine.api.app import create_app
from session_engine.app.services.session_context import SessionContext
from session_engine.depends import authorize, get_session_context
from session_engine.domain.base import utcnow
from session_engine.domain.entities import SessionRecord
from tests.utils.browser import Browser, non_storing_client


class IntegrationConfig(ApplicationConfig):
    ENVIRONMENT = "development"
    SESSION_SECRET_KEY = "integration-test-secret-key-0123456789"
    SESSION_COOKIE_PREFIX = "session"
    SESSION_CSRF_METHOD = "essential"
    SESSION_SECURE_COOKIES = None
    CORS_ORIGINS = []


def add_test_routes(app):
    """Application handlers standing in for a real login and profile API"""
    router = APIRouter(prefix="/test")

    @router.post("/login")
    async def login(payload: Dict[str, Any], ctx: SessionContext = Depends(get_session_context)):
        await ctx.create(payload["public_data"], payload.get("private_data"))
        return {"handle": ctx.handle}

    @router.patch("/public-data")
    async def set_public_data(
        payload: Dict[str, Any], ctx: SessionContext = Depends(get_session_context)
    ):
        await ctx.set_public_data(payload)
        return ctx.public_data

    @router.put("/private-data")
    async def set_private_data(
        payload: Dict[str, Any], ctx: SessionContext = Depends(get_session_context)
    ):
        await ctx.set_private_data(payload)
        return {"ok": True}

    @router.get("/private-data")
    async def get_private_data(ctx: SessionContext = Depends(get_session_context)):
        return await ctx.get_private_data()

    @router.get("/admin-only")
    async def admin_only(ctx: SessionContext = Depends(authorize("ADMIN"))):
        return {"user_id": ctx.user_id}

    app.include_router(router)


def unit_of_work_factory(session_factory):
    @asynccontextmanager
    async def open_unit_of_work():
        async with session_factory() as session:
            yield SqlAlchemyUnitOfWork(session)

    return open_unit_of_work


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def app_factory(session_factory):
    """Build the API with config overrides, e.g. app_factory(SESSION_CSRF_METHOD="advanced")"""

    def build(uow_factory=None, **overrides):
        config = type("Config", (IntegrationConfig,), overrides)
        app = create_app(config, uow_factory=uow_factory or unit_of_work_factory(session_factory))
        add_test_routes(app)
        return app

    return build


@pytest_asyncio.fixture
async def client(app_factory):
    async with non_storing_client(app_factory()) as ac:
        yield ac


@pytest.fixture
def browser(client):
    return Browser(client)


@pytest.fixture
def new_browser(client):
    """Another device talking to the same API"""

    def make():
        return Browser(client)

    return make


@pytest.fixture
def fetch_session(session_factory):
    async def fetch(handle: str):
        async with session_factory() as session:
            return await SessionRepository(session).get_session(handle)

    return fetch


@pytest.fixture
def expire_session(session_factory):
    async def expire(handle: str):
        async with session_factory() as session:
            record = await session.get(SessionRecord, handle)
            record.expires_at = utcnow()
            session.add(record)
            await session.commit()

    return expire
