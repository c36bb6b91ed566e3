from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from app.config import settings
from app.core.logging import setup_logging
from app.core.exceptions import (
    api_exception_handler, validation_exception_handler, general_exception_handler, APIError
)
from app.core.middleware import session_validation_middleware, request_logging_middleware
from app.database import DatabasePool, init_schema
import logging

# Initialize logging
setup_logging()
logger = logging.getLogger(__name__)

SERVICE_NAME = "FanPass API"
VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown"""
    await init_schema()
    if not settings.spotify_configured:
        logger.warning("Spotify credentials not set; account linking is disabled")

    yield

    await DatabasePool.close_pool()


app = FastAPI(
    title=SERVICE_NAME,
    description="Ticketing backend for music events with streaming account linking",
    version=VERSION,
    debug=settings.debug,
    docs_url="/docs",
    redirect_slashes=True,
    lifespan=lifespan
)


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=SERVICE_NAME,
        version=VERSION,
        description="Ticketing backend for music events with streaming account linking",
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "cookieAuth": {
            "type": "apiKey",
            "in": "cookie",
            "name": "session-token"
        }
    }

    # Endpoints that need a session
    protected_prefixes = ["/dashboard", "/oauth", "/music", "/auth/me"]

    for path in openapi_schema["paths"]:
        if path.endswith("/purchase") or any(path.startswith(prefix) for prefix in protected_prefixes):
            for method in openapi_schema["paths"][path]:
                if method in ["get", "post", "put", "delete", "patch"]:
                    openapi_schema["paths"][path][method]["security"] = [{"cookieAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi

# Exception handlers
app.add_exception_handler(APIError, api_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Custom middleware (first added runs last)
app.middleware("http")(request_logging_middleware)    # runs second
app.middleware("http")(session_validation_middleware) # runs first

from app.routers import auth, oauth, events, dashboard, music

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(oauth.router, prefix="/oauth", tags=["oauth"])
app.include_router(events.router, prefix="/events", tags=["events"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
app.include_router(music.router, prefix="/music", tags=["music"])


@app.get("/")
async def root():
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "environment": settings.app_env
    }


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "spotify": settings.spotify_configured
    }


# Auto-start server if run directly
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
