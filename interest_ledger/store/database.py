"""
Database bootstrap: engine, session factory and declarative Base.
"""
import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def make_engine(database_url: str, **kwargs) -> Engine:
    """
    Create an engine for ``database_url``. For file-backed SQLite the parent
    directory is created and cross-thread use is allowed (reconciliation may
    run on a background thread).
    """
    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        _, sep, path = database_url.partition(":///")
        if sep and path and not path.startswith(":memory:"):
            directory = os.path.dirname(path)
            if directory:
                os.makedirs(directory, exist_ok=True)
    else:
        kwargs.setdefault("pool_pre_ping", True)
    return create_engine(database_url, **kwargs)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine):
    """
    Create all tables if they do not exist.
    Safe to call multiple times.
    """
    from . import models  # noqa: F401  registers the tables on Base
    Base.metadata.create_all(bind=engine)
