import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from session_engine.api.middleware.session_middleware import SessionMiddleware, UnitOfWorkFactory
from session_engine.app.services.settings import SessionSettings
from session_engine.app.services.token_codec import ensure_secure_random
from session_engine.domain.errors import SessionError
from .error import ClientError, ServerError, error_response, status_for

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": exc.base_error.code, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error_dict}
    )


async def handle_session_error(request: Request, exc: SessionError):
    status_code = status_for(exc)
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"Session error: {exc.base_error.code}: {exc.base_error.message}")
    else:
        logger.warning(f"Session error: {exc.base_error.code}")
    return error_response(exc.base_error, status_code)


def create_app(
    ApplicationConfig,
    uow_factory: Optional[UnitOfWorkFactory] = None,
    is_authorized: Optional[Callable[..., bool]] = None,
) -> FastAPI:
    """
    Build the API.

    Raises:
        ConfigurationError: missing signing secret in production or no
            secure random source; the process must not start
    """
    settings = SessionSettings.from_config(ApplicationConfig, is_authorized=is_authorized)
    settings.validate_for_startup()
    ensure_secure_random()

    lifespan = None
    if uow_factory is None:
        from session_engine.depends import init_db, open_unit_of_work

        uow_factory = open_unit_of_work

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            await init_db()
            yield

    app = FastAPI(title="Session Engine API", version="0.1.0", lifespan=lifespan)
    app.state.session_settings = settings
    app.state.admin_api_key = ApplicationConfig.ADMIN_API_KEY

    app.add_middleware(
        SessionMiddleware,
        settings=settings,
        uow_factory=uow_factory,
        csrf_exempt_prefixes=("/admin/",),
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "anti-csrf",
            "csrf-error",
            "session-created",
            "session-revoked",
            "public-data-token",
        ],
    )

    from session_engine.api.routes import admin, sessions

    app.include_router(sessions.router, tags=["Sessions"])
    app.include_router(admin.router, tags=["Admin"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(SessionError, handle_session_error)

    return app
