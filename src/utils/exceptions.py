import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

def log_db_exception(db: Session, exc: Exception, action: str) -> None:
    """
    Roll back the transaction and log the failure without raising.
    Used where storage errors must not change the response sent to the caller.
    """
    try:
        db.rollback()
    except SQLAlchemyError:
        logger.exception("Rollback failed after error while trying to %s", action)

    if isinstance(exc, SQLAlchemyError):
        logger.error("Database error while trying to %s: %s", action, exc, exc_info=exc)
    else:
        logger.error("Unexpected error while trying to %s: %s", action, exc, exc_info=exc)

async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    A `request` field FastAPI cannot read as text (e.g. sent as a file part) is a
    malformed submission like any other: 400, never 422.
    """
    errors = exc.errors()
    reason = errors[0].get("msg", "invalid value") if errors else "invalid value"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": f"Missing or malformed request form field: {reason}"},
    )
