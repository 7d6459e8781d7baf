"""
Exception handlers registered on the app in ``main.py``.

Every error leaves the API in the same envelope the routers use for success:
``{"status": "error", "message": ..., "errors": ...}``.
"""
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from solardesk.core.logging import get_logger

logger = get_logger("exceptions")

# Check constraint names from the models -> user-facing messages
CONSTRAINT_MESSAGES = {
    "check_payment_amount_positive": "Payment amount must be greater than zero.",
    "check_payment_mode": "Invalid payment mode.",
    "check_project_proposal_amount": "Proposal amount cannot be negative.",
    "check_project_advance_payment": "Advance payment cannot be negative.",
    "check_project_loan_amount": "Loan amount cannot be negative.",
    "check_project_kwh": "Capacity (kWh) cannot be negative.",
}


def error_response(
    status_code: int,
    message: str,
    errors: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content = {"status": "error", "message": message}
    if errors is not None:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def http_exception_handler(request: Request, exc: StarletteHTTPException):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"HTTP {exc.status_code} on {request.method} {request.url.path}: {exc.detail}")

    headers = getattr(exc, "headers", None)
    if isinstance(exc.detail, dict):
        content = {"status": "error", **exc.detail}
        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)
    return error_response(exc.status_code, str(exc.detail), headers=headers)


def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    logger.warning(f"Request validation failed on {request.url.path}: {errors}")
    return error_response(422, "Validation error", errors)


def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}", exc_info=True)
    return error_response(500, "Internal server error", str(exc))


def integrity_error_handler(request: Request, exc: IntegrityError):
    """Constraint violations that slipped past service validation."""
    error_msg = str(getattr(exc, "orig", exc))
    logger.error(f"Integrity Error: {error_msg}")

    for constraint, message in CONSTRAINT_MESSAGES.items():
        if constraint in error_msg:
            return error_response(422, message, error_msg)
    if "FOREIGN KEY" in error_msg or "foreign key" in error_msg:
        return error_response(409, "Referenced record does not exist.", error_msg)
    return error_response(409, "Data integrity violation.", error_msg)


def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"SQLAlchemy Error: {str(exc)}", exc_info=True)
    return error_response(500, "Database error occurred.", str(exc))
