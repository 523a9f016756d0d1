"""FastAPI main application."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from vidtube import __version__
from vidtube.config import settings
from vidtube.database import init_db
from vidtube.exceptions import ApiError, InternalError
from vidtube.middleware import RequestLoggingMiddleware
from vidtube.routers import comments, health, likes, playlists, subscriptions, tweets, users, videos
from vidtube.services.error_tracking import error_tracker
from vidtube.services.logging_service import app_logger
from vidtube.utils.responses import error_response

API_PREFIX = "/api/v1"

# Create FastAPI application
app = FastAPI(
    title="VidTube API",
    description="Video sharing backend: channels, videos, comments, tweets, playlists, likes and subscriptions",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


# ============================================
# Error envelopes
# ============================================

def _field_errors(errors) -> list:
    return [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "")
        }
        for error in errors
    ]


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        error_tracker.capture_exception(exc, context={"path": request.url.path, "method": request.method})
    return error_response(exc.status_code, exc.message, exc.errors)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return error_response(400, "Invalid request", _field_errors(exc.errors()))


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_handler(request: Request, exc: PydanticValidationError):
    return error_response(400, "Invalid request", _field_errors(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    error_tracker.capture_exception(exc, context={"path": request.url.path, "method": request.method})
    internal = InternalError()
    return error_response(internal.status_code, internal.message)


# ============================================
# Lifecycle
# ============================================

@app.on_event("startup")
async def startup_event():
    """Initialize application on startup."""
    # Initialize database (create tables if they don't exist)
    init_db()
    app_logger.info("Application started", environment=settings.ENVIRONMENT, version=__version__)


# Include routers
app.include_router(health.router, prefix=API_PREFIX, tags=["Health"])
app.include_router(users.router, prefix=f"{API_PREFIX}/users", tags=["Users"])
app.include_router(videos.router, prefix=f"{API_PREFIX}/videos", tags=["Videos"])
app.include_router(comments.router, prefix=f"{API_PREFIX}/comments", tags=["Comments"])
app.include_router(tweets.router, prefix=f"{API_PREFIX}/tweets", tags=["Tweets"])
app.include_router(playlists.router, prefix=f"{API_PREFIX}/playlists", tags=["Playlists"])
app.include_router(likes.router, prefix=f"{API_PREFIX}/likes", tags=["Likes"])
app.include_router(subscriptions.router, prefix=f"{API_PREFIX}/subscriptions", tags=["Subscriptions"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "VidTube API",
        "version": __version__,
        "docs": "/docs"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("vidtube.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
