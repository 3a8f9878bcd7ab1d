from dataclasses import dataclass
from typing import TYPE_CHECKING

from fastapi import Request
from sqlalchemy.orm import sessionmaker

from src.config import Settings

if TYPE_CHECKING:
    from src.utils.authorization import AuthGate
    from src.utils.dispatcher import NotificationDispatcher


@dataclass(frozen=True)
class AppContext:
    """
    Process-wide collaborators, built once in the app lifespan and read-only afterwards.
    Request handlers receive it through Depends(get_context), never through module globals.
    """
    settings: Settings
    auth_gate: "AuthGate"
    session_factory: sessionmaker
    dispatcher: "NotificationDispatcher"


def get_context(request: Request) -> AppContext:
    return request.app.state.context
