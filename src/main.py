import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from src.api import api_router
from src.config import Settings
from src.context import AppContext
from src.database.core import init_database, make_engine, make_session_factory
from src.utils.authorization import AuthGate
from src.utils.dispatcher import NotificationDispatcher
from src.utils.email import MailTransport, build_transport
from src.utils.exceptions import request_validation_handler

logger = logging.getLogger(__name__)

def create_app(settings: Optional[Settings] = None, transport: Optional[MailTransport] = None) -> FastAPI:
    """
    Build the application. `transport` replaces the configured mail transport,
    tests pass a stub here.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # startup operations
        logger.info("Opening database %s ...", settings.db_path)
        engine = make_engine(settings.db_path)
        init_database(engine)

        dispatcher = NotificationDispatcher(
            transport or build_transport(settings),
            max_queue_size=settings.notification_queue_size,
            workers=settings.notification_workers,
        )
        dispatcher.start()

        if settings.open_access:
            logger.warning("'allowedauthorizationtokens' is empty! Accepting data from anyone")

        app.state.context = AppContext(
            settings=settings,
            auth_gate=AuthGate(settings.allowed_authorization_tokens),
            session_factory=make_session_factory(engine),
            dispatcher=dispatcher,
        )
        yield
        # on-shutdown operations
        dispatcher.shutdown()
        engine.dispose()

    if settings.app_env == "production":
        # In production: disable Swagger UI and /docs endpoints
        app = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)
    else:
        # In development: keep docs enabled
        app = FastAPI(lifespan=lifespan)

    # Browsers send the token cross-origin, so credentials and the header must be allowed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization"],
        expose_headers=["Authorization"],
    )

    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(api_router)
    return app

app = create_app()
