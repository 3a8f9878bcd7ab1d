import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from src.config import Settings
from src.database.models import AttendanceRecord
from src.registration.schemas import SubmissionRequest
from src.utils.dispatcher import NotificationDispatcher
from src.utils.email import NotificationMessage
from src.utils.exceptions import log_db_exception

logger = logging.getLogger(__name__)

CONFIRMATION_BODY = (
    "Dear student {name},\n"
    "\n"
    "This email confirms that your presence at the course\n"
    "Privacy and Identity has been registered at: {when}\n"
    "\n"
    "With best regards,\n"
    "Koning and Jacobs\n"
)


def parse_submission(raw: Optional[str]) -> SubmissionRequest:
    """
    Decode the `request` form field. Raises HTTP 400 with the decoder's
    diagnostic when the field is missing or is not a valid submission.
    """
    try:
        return SubmissionRequest.model_validate_json(raw or "")
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing or malformed request form field: {exc.errors(include_url=False)[0]['msg']}",
        )


def build_record(request: SubmissionRequest, now: Optional[datetime] = None) -> AttendanceRecord:
    # Values are stored verbatim, no trimming or address checks
    return AttendanceRecord(
        timestamp=now or datetime.now(timezone.utc),
        name=request.name,
        external_id=request.external_id,
        email=request.email,
    )


def store_record(db: Session, record: AttendanceRecord) -> bool:
    """Insert the record. Failures are logged and reported as False, never raised."""
    try:
        db.add(record)
        db.commit()
        db.refresh(record)
    except Exception as exc:
        log_db_exception(db, exc, "store attendance record")
        return False
    return True


def format_timestamp(when: datetime) -> str:
    return when.strftime("%Y-%m-%d %H:%M:%S %Z").rstrip()


def build_notification(record: AttendanceRecord, settings: Settings) -> NotificationMessage:
    return NotificationMessage(
        sender=settings.mail_from,
        to=record.email,
        subject=settings.mail_subject,
        body=CONFIRMATION_BODY.format(name=record.name, when=format_timestamp(record.timestamp)),
    )


def process_submission(
    db: Session,
    dispatcher: NotificationDispatcher,
    settings: Settings,
    raw: Optional[str],
) -> AttendanceRecord:
    """
    Register one attendance submission.

    Steps:
    1. Parse the payload (HTTP 400 on failure, nothing stored or sent).
    2. Build the confirmation while the record is still a plain object.
    3. Store the record; a storage failure is logged but not reported.
    4. Queue the confirmation e-mail without waiting for delivery.
    """
    request = parse_submission(raw)
    record = build_record(request)
    # After a failed commit/refresh the record's attributes may be expired,
    # reading them again would hit the broken database
    message = build_notification(record, settings)

    if not store_record(db, record):
        logger.warning("Attendance of %r was not stored, sending confirmation anyway", request.external_id)

    dispatcher.submit(message)
    return record
