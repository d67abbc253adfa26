"""Application factory and top-level wiring.

Configuration, logging, middleware, exception handlers and routers are
assembled here; ``app`` is the ASGI entry point for uvicorn.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from . import __version__
from .core.config import settings
from .core.errors import register_exception_handlers
from .core.logging import configure_logging
from .db.session import Base, engine
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware
from .middlewares.request_id import CORRELATION_HEADER

# Registers the tables with ``Base.metadata``.
from . import models as _models  # noqa: F401
from .routers import api_auth, api_projects, api_reports, api_time_entries, api_users

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME, version=__version__)

    # Starlette wraps in reverse order: the request-id middleware is outermost.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER, "Content-Disposition"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(api_users.router)
    app.include_router(api_projects.router)
    app.include_router(api_time_entries.router)
    app.include_router(api_reports.router)
    if settings.MOCK_AUTH_ENABLED:
        app.include_router(api_auth.router)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, bool]:
        return {"ok": True}

    @app.on_event("startup")
    async def _create_tables() -> None:
        Base.metadata.create_all(bind=engine)
        logger.info("startup.complete", extra={"extra_data": {"env": settings.APP_ENV}})

    Instrumentator().instrument(app).expose(app, include_in_schema=False)
    return app


configure_logging(settings.LOG_LEVEL)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("timeforing.main:app", host=settings.HOST, port=settings.PORT)
