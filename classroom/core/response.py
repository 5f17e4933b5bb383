# classroom/core/response.py
from typing import Any, Optional, Literal, Dict
from pydantic import BaseModel
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
import traceback
from classroom.core.config import settings
from classroom.core.errors import ClassroomError


class ErrorDetail(BaseModel):
    """Detailed error information for debugging"""
    field: Optional[str] = None
    message: str
    code: Optional[str] = None


class ResponseModel(BaseModel):
    status: Literal["success", "error"]
    msg: str
    data: Optional[Any] = None


class ErrorResponseModel(BaseModel):
    """Error envelope carrying a machine-readable code"""
    status: Literal["error"] = "error"
    msg: str
    error_code: Optional[str] = None
    details: Optional[list[ErrorDetail]] = None
    data: Optional[Any] = None
    # Only include debug info in development
    debug_info: Optional[Dict[str, Any]] = None


def success_response(
    msg: str = "OK", data: Any = None, status_code: int = 200
) -> JSONResponse:
    """Create a success response envelope"""
    payload = ResponseModel(status="success", msg=msg, data=data).model_dump(
        exclude_none=True
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def error_response(
    msg: str,
    data: Any = None,
    status_code: int = 400,
    error_code: Optional[str] = None,
    details: Optional[list[ErrorDetail]] = None
) -> JSONResponse:
    """Error envelope with optional error codes and details"""
    if not details and not error_code:
        payload = ResponseModel(status="error", msg=msg, data=data).model_dump(
            exclude_none=True
        )
    else:
        debug_info = None
        if settings.DEBUG:
            debug_info = {
                "traceback": traceback.format_exc(),
                "environment": settings.ENVIRONMENT
            }

        payload = ErrorResponseModel(
            status="error",
            msg=msg,
            error_code=error_code,
            details=details,
            data=data,
            debug_info=debug_info
        ).model_dump(exclude_none=True)

    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def classroom_error_response(exc: ClassroomError, data: Any = None) -> JSONResponse:
    """Render a ClassroomError with its own status and code."""
    if exc.retryable:
        data = {**jsonable_encoder(data or {}), "retryable": True}
    return error_response(
        exc.message,
        data=data,
        status_code=exc.status_code,
        error_code=exc.error_code,
    )


def validation_error_response(
    errors: list[Dict[str, Any]],
    status_code: int = 422
) -> JSONResponse:
    """Create a standardized validation error response"""
    details = []
    for err in errors:
        loc = err.get("loc", [])
        field = ".".join(str(x) for x in loc if x != "body")
        details.append(ErrorDetail(
            field=field or (str(loc[-1]) if loc else None),
            message=err.get("msg", "Validation error"),
            code="VALIDATION_ERROR"
        ))

    return error_response(
        msg="Invalid request parameters",
        details=details,
        status_code=status_code,
        error_code="VALIDATION_ERROR"
    )
