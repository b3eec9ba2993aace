import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from subtrack.core.config import settings
from subtrack.core.errors import SubTrackError
from subtrack.core.logging_config import CorrelationIdMiddleware, init_application_logging
from subtrack.web.proxy import StaticContentProxy, build_upstream_client

# Initialize structured logging
init_application_logging()

logger = logging.getLogger("subtrack.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the upstream HTTP client for the lifetime of the app."""
    client = build_upstream_client(settings)
    app.state.proxy = StaticContentProxy(settings, client)
    logger.info(
        "Gateway started",
        extra={"upstream": settings.upstream_origin + settings.upstream_path},
    )
    try:
        yield
    finally:
        await client.aclose()


app = FastAPI(
    title=settings.app_name,
    description="Access-gated sync gateway for SubTrack",
    version=settings.version,
    lifespan=lifespan,
)

app.add_middleware(CorrelationIdMiddleware)


@app.exception_handler(SubTrackError)
async def subtrack_error_handler(request: Request, exc: SubTrackError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Routers are matched in order: API, then login/logout, then the gated catch-all
from subtrack.api import data
from subtrack.web import auth, gateway

app.include_router(data.router, tags=["Data"])
app.include_router(auth.router, tags=["Authentication"])
app.include_router(gateway.router, tags=["Web"])
