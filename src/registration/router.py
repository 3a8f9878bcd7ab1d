from typing import Optional

from fastapi import APIRouter, Depends, Form, Query, Response, status
from sqlalchemy.orm import Session

from src.context import AppContext, get_context
from src.database.core import make_session
from src.registration.service import process_submission
from src.utils.authorization import verify_authorization

router = APIRouter()

@router.api_route("/", methods=["GET", "POST"], status_code=status.HTTP_200_OK)
def register_attendance(
    _auth: None = Depends(verify_authorization),
    form_request: Optional[str] = Form(default=None, alias="request"),
    query_request: Optional[str] = Query(default=None, alias="request"),
    db: Session = Depends(make_session),
    context: AppContext = Depends(get_context),
) -> Response:
    """
    Register one attendance and queue its confirmation e-mail.
    Authentication is enforced using the Authorization header:
        Authorization: Basic <token>
    The `request` form field (or query parameter) holds the JSON submission.
    """
    raw = form_request if form_request is not None else query_request
    process_submission(db, context.dispatcher, context.settings, raw)
    return Response(status_code=status.HTTP_200_OK)
