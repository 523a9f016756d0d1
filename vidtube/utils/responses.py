"""Uniform response envelope: {statusCode, data, message, success}."""

from typing import Any, List, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def envelope(data: Any, message: str = "Success", status_code: int = 200) -> dict:
    """Build the response body every endpoint returns."""
    return {
        "statusCode": status_code,
        "data": jsonable_encoder(data),
        "message": message,
        "success": status_code < 400,
    }


def api_response(data: Any, message: str = "Success", status_code: int = 200) -> JSONResponse:
    """Wrap a payload in the envelope with a matching HTTP status."""
    return JSONResponse(status_code=status_code, content=envelope(data, message, status_code))


def error_response(status_code: int, message: str, errors: Optional[List[Any]] = None) -> JSONResponse:
    """Error envelope; data is always null and success always false."""
    return JSONResponse(
        status_code=status_code,
        content={
            "statusCode": status_code,
            "data": None,
            "message": message,
            "success": False,
            "errors": jsonable_encoder(errors or []),
        }
    )
