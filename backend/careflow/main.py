"""
FastAPI application entry point.
Assembles the app with routers, middleware, lifespan handlers, and exception handlers.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from careflow.api.v1.router import api_router
from careflow.core.config import settings
from careflow.core.exceptions import setup_exception_handlers
from careflow.core.logging import setup_logging
from careflow.db.session import init_db, close_db
from careflow.deps import di_container


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    enabled=settings.RATE_LIMIT_ENABLED,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    Initializes logging, the database and the DI container.
    """
    setup_logging()
    await init_db()
    
    container = di_container.Container()
    container.config.from_dict({
        "environment": settings.ENVIRONMENT,
        "notification_poll_interval_seconds": settings.NOTIFICATION_POLL_INTERVAL_SECONDS,
    })
    app.state.container = container
    di_container._container = container
    
    yield
    
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Home-care client lifecycle API",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)
    
    from careflow.api.v1.endpoints.health import get_health
    
    @app.get("/health", response_model=None, include_in_schema=False)
    async def root_health(request: Request):
        """Root-level health check endpoint."""
        return await get_health(request)
    
    setup_exception_handlers(app)
    
    return app


app = create_app()
