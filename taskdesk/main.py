"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers.
No business logic here. See taskdesk.core.lifespan and
taskdesk.core.exception_handlers.

Settings are loaded inside create_app() so that tests can set env (and
optionally clear get_settings cache) before calling create_app().
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from taskdesk.api.v1.router import api_router
from taskdesk.core.config import get_settings
from taskdesk.core.exception_handlers import register_exception_handlers
from taskdesk.core.lifespan import create_lifespan
from taskdesk.core.limiter import limiter
from taskdesk.infrastructure.locking import KeyedLockManager
from taskdesk.middleware import RequestContextMiddleware


def create_app() -> FastAPI:
    """Build and return the FastAPI application. Settings are resolved here (deferred from import)."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # One lock manager per process; every workflow write for a task goes through it.
    app.state.lock_manager = KeyedLockManager()

    register_exception_handlers(app)

    # Last added = outermost: request context wraps CORS so ids reach every log line.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RequestContextMiddleware,
        request_id_header=settings.request_id_header,
        correlation_id_header=settings.correlation_id_header,
    )

    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()
