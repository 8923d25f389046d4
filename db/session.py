"""
Database engine and session helpers.
"""
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db.models import Base
from utils.config import DATABASE_URL, DATABASE_ECHO

logger = logging.getLogger(__name__)


def make_engine(url=None, echo=None):
    """Create an engine; in-memory SQLite shares one connection across threads."""
    url = url or DATABASE_URL
    kwargs = {'echo': DATABASE_ECHO if echo is None else echo}
    if url.startswith('sqlite'):
        kwargs['connect_args'] = {'check_same_thread': False}
        if url in ('sqlite://', 'sqlite:///:memory:'):
            kwargs['poolclass'] = StaticPool
    return create_engine(url, **kwargs)


engine = make_engine()
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


def init_db(bind=None):
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind or engine)
    logger.info("Database tables ensured")


def drop_db(bind=None):
    Base.metadata.drop_all(bind or engine)


def get_session():
    """FastAPI dependency: one session per request, always closed."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def atomic(session):
    """Commit everything done in the block, or roll all of it back."""
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise

