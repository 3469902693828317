"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..app import Application
from ..errors import (
    ConversationClosedError,
    NotFoundError,
    StaleVersionError,
    ValidationError,
)
from .routes import control, conversations, observability


# Global application instance
_app: Application | None = None


def get_app() -> Application:
    """Get the global application instance."""
    global _app
    if not _app:
        _app = Application()
    return _app


def _error_handler(status_code: int):
    async def handle(request: Request, exc: Exception) -> JSONResponse:
        body = {"detail": str(exc)}
        if isinstance(exc, ValidationError):
            body["field"] = exc.field
        return JSONResponse(status_code=status_code, content=body)

    return handle


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    application = application or get_app()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await application.start()
        yield
        await application.stop()

    fastapi_app = FastAPI(
        title="Team Chat API",
        description="Conversations, insights and task drafts",
        version="0.1.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:5174"],  # Vite default
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Domain errors -> HTTP status
    fastapi_app.add_exception_handler(ValidationError, _error_handler(422))
    fastapi_app.add_exception_handler(NotFoundError, _error_handler(404))
    fastapi_app.add_exception_handler(StaleVersionError, _error_handler(409))
    fastapi_app.add_exception_handler(ConversationClosedError, _error_handler(410))

    fastapi_app.include_router(conversations.create_conversations_router(application))
    fastapi_app.include_router(observability.create_observability_router(application))
    fastapi_app.include_router(control.create_control_router(application))

    return fastapi_app
