import logging
from typing import Iterator

from fastapi import Depends
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.context import AppContext, get_context

logger = logging.getLogger(__name__)

# Note: A single Base holds the Metadata for every model, keep it out of models.py
# so the engine helpers can create tables without importing them twice
class Base(DeclarativeBase):
    pass

def make_engine(db_path: str) -> Engine:
    """
    SQLite engine usable from the request threadpool.
    SQLite serializes writes itself, concurrent requests simply wait on the file lock.
    """
    connect_args = {"check_same_thread": False}
    if db_path == ":memory:":
        # One shared connection, otherwise every session sees an empty database
        return create_engine("sqlite://", connect_args=connect_args, poolclass=StaticPool)
    return create_engine(f"sqlite:///{db_path}", connect_args=connect_args)

def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

def init_database(engine: Engine) -> None:
    """Create any missing tables, existing ones are left untouched"""
    # Import registers the models on Base.metadata
    from src.database import models  # noqa: F401

    logger.info("Auto-migration (if necessary) ...")
    Base.metadata.create_all(engine)
    logger.info("Auto-migration ok")

def make_session(context: AppContext = Depends(get_context)) -> Iterator[Session]:
    new_session = context.session_factory()
    try:
        yield new_session
    finally:
        new_session.close()
