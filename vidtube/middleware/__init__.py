"""Middleware and request-scoped dependencies."""

from vidtube.middleware.auth import get_current_user
from vidtube.middleware.request_logging import RequestLoggingMiddleware
from vidtube.middleware.uploads import UploadStage, get_upload_stage

__all__ = [
    "get_current_user",
    "RequestLoggingMiddleware",
    "UploadStage",
    "get_upload_stage",
]
