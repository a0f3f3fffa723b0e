from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def success_response(data: Any, message: Optional[str] = None) -> Dict[str, Any]:
    """Wrap route data in the standard success envelope"""
    body = {"success": True, "data": jsonable_encoder(data)}
    if message:
        body["message"] = message
    body["timestamp"] = _timestamp()
    return body


def error_response(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "message": message,
            "timestamp": _timestamp(),
            "code": status_code,
        },
    )


def api_error(status_code: int, error: str, message: str) -> HTTPException:
    """HTTPException whose detail the error handler renders as the envelope"""
    return HTTPException(status_code=status_code, detail={"error": error, "message": message})


def parse_limit(value: Optional[str], default: int, maximum: int) -> int:
    """Lenient limit: missing, non-numeric or < 1 -> default; above maximum -> maximum."""
    if value is None:
        return default
    try:
        limit = int(value.strip())
    except ValueError:
        return default
    if limit < 1:
        return default
    return min(limit, maximum)
