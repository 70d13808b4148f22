"""Last Person Standing FastAPI application.

Pick resolution and standings engine for Classic, Turbo, Escalating and Cup
pools.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from lastperson import __version__
from lastperson.api.routes import config, health, picks, standings
from lastperson.config import get_settings

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("starting_lastperson", version=__version__, log_level=settings.log_level)
    yield
    logger.info("shutting_down_lastperson")


# Create FastAPI application
app = FastAPI(
    title="Last Person Standing",
    description="Pick resolution and standings engine for Last Person Standing pools",
    version=__version__,
    debug=settings.debug,
    lifespan=lifespan,
)

# Include API routers
app.include_router(health.router)
app.include_router(config.router)
app.include_router(standings.router)
app.include_router(picks.router)


# Error handlers
@app.exception_handler(500)
async def server_error_handler(request: Request, exc):
    """Custom 500 handler."""
    logger.error("server_error", path=request.url.path, error=str(exc))
    return JSONResponse({"detail": "Internal server error"}, status_code=500)
