"""
Response envelopes and API exceptions.

Successful bodies look like ``{"status": "success", "success": true,
"data": ..., "message"?: ..., "meta"?: ...}``; failures carry
``"status": "error"``, ``"success": false`` and an ``error`` object with the
HTTP code, a machine-readable type and optional details.
"""
import logging
from typing import Any, Dict, List, Optional, Union
from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

class APIError(Exception):
    """Error that maps directly onto an HTTP response."""
    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        message: str = "An error occurred",
        error_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.status_code = status_code
        self.message = message
        self.error_type = error_type or "api_error"
        self.details = details or {}
        super().__init__(message)

class ValidationError(APIError):
    """Bad query parameter or request body (400)."""
    def __init__(
        self,
        message: str = "Validation error",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            message=message,
            error_type="validation_error",
            details=details
        )

class NotFoundError(APIError):
    """Unknown row or resource (404)."""
    def __init__(
        self,
        resource: str = "Resource",
        id: Optional[Union[str, int]] = None
    ):
        message = f"{resource} not found" if id is None else f"{resource} with ID {id} not found"
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            message=message,
            error_type="not_found",
            details={"resource": resource, "id": id}
        )

def create_response(
    data: Optional[Any] = None,
    message: Optional[str] = None,
    status_code: int = status.HTTP_200_OK,
    meta: Optional[Dict[str, Any]] = None,
    **kwargs
) -> JSONResponse:
    """Wrap ``data`` in the success envelope.

    Extra keyword arguments become top-level fields (``pagination`` on the
    transaction list, ``partial``/``failed`` on the dashboard).
    """
    body: Dict[str, Any] = {
        "status": "success" if status_code < 400 else "error",
        "success": status_code < 400,
    }
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    if meta:
        body["meta"] = meta
    body.update(kwargs)

    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))

def create_error_response(
    message: str,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    error_type: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> JSONResponse:
    error: Dict[str, Any] = {
        "code": status_code,
        "message": message,
        "type": error_type or "api_error",
    }
    if details:
        error["details"] = details

    body = {"status": "error", "success": False, "message": message, "error": error}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))

def _field_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    return [
        {"field": ".".join(str(loc) for loc in e.get("loc", ()) if loc != "body"), "msg": e.get("msg", "")}
        for e in errors
    ]

def handle_exception(exception: Exception) -> JSONResponse:
    """Turn any exception raised by a handler into an error envelope.

    Request validation failures become 400 with per-field messages.
    Anything unexpected is logged and reported as a generic 500 so internal
    details never reach the client.
    """
    if isinstance(exception, APIError):
        if exception.status_code >= 500:
            logger.error(f"API error: {exception.message}", exc_info=exception)
        return create_error_response(
            message=exception.message,
            status_code=exception.status_code,
            error_type=exception.error_type,
            details=exception.details
        )

    if isinstance(exception, RequestValidationError):
        return create_error_response(
            message="Invalid request data",
            status_code=status.HTTP_400_BAD_REQUEST,
            error_type="validation_error",
            details={"errors": _field_errors(exception.errors())}
        )

    if isinstance(exception, StarletteHTTPException):
        return create_error_response(
            message=str(exception.detail),
            status_code=exception.status_code,
            error_type="not_found" if exception.status_code == 404 else "http_error"
        )

    logger.error(f"Unhandled exception: {str(exception)}", exc_info=exception)
    return create_error_response(
        message="An unexpected error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_type="server_error"
    )

def parse_customer_id(value: Optional[str]) -> Optional[int]:
    """Parse the ``customerId`` query parameter; empty means all customers."""
    if value is None or not value.strip():
        return None
    try:
        customer_id = int(value)
    except ValueError:
        raise ValidationError("Invalid customer ID", details={"customerId": value})
    if customer_id <= 0:
        raise ValidationError("Invalid customer ID", details={"customerId": value})
    return customer_id
