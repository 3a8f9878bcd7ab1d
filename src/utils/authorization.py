import enum
import hmac
from typing import Optional, Sequence, Tuple

from fastapi import Depends, Header, HTTPException, status

from src.context import AppContext, get_context

AUTH_SCHEME = "Basic"


class AuthDecision(enum.Enum):
    ALLOWED = "allowed"
    MALFORMED = "malformed"
    DENIED = "denied"


def wire_bytes(header_text: str) -> bytes:
    """
    Recover the raw header bytes. Starlette decodes headers as latin-1, so a
    UTF-8 token arrives as mojibake and only re-encoding as latin-1 restores it.
    """
    try:
        return header_text.encode("latin-1")
    except UnicodeEncodeError:
        # Not from the wire (latin-1 can't hold it), take the text as-is
        return header_text.encode("utf-8")


class AuthGate:
    """
    Check an Authorization header against a fixed allow-list of tokens.

    Expects:
        Authorization: Basic <token>
    An empty allow-list lets every request through.
    """

    def __init__(self, allowed_tokens: Sequence[str]):
        # Encoded once, compare_digest wants bytes for non-ASCII tokens
        self._allowed: Tuple[bytes, ...] = tuple(t.encode("utf-8") for t in allowed_tokens)

    @property
    def open_access(self) -> bool:
        return not self._allowed

    def authorize(self, header_value: Optional[str]) -> AuthDecision:
        if self.open_access:
            return AuthDecision.ALLOWED

        # Split on the first space only, the token itself may contain spaces
        parts = (header_value or "").split(" ", 1)
        if len(parts) != 2 or parts[0] != AUTH_SCHEME:
            return AuthDecision.MALFORMED

        token = wire_bytes(parts[1])
        matched = False
        # Every candidate is compared, no early exit on a match
        for candidate in self._allowed:
            matched |= hmac.compare_digest(token, candidate)
        return AuthDecision.ALLOWED if matched else AuthDecision.DENIED


def verify_authorization(
    authorization: Optional[str] = Header(default=None),
    context: AppContext = Depends(get_context),
) -> None:
    """
    Reject the request before any parsing or storage happens.
    Malformed header -> 400, unknown token -> 401.
    """
    decision = context.auth_gate.authorize(authorization)

    if decision is AuthDecision.MALFORMED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Bad or missing Authorization header",
        )

    if decision is AuthDecision.DENIED:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied",
        )
