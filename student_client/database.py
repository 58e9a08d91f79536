"""
Database engine and session factory for the credential store. SQLite by default.
"""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from student_client.config import CREDENTIAL_DB_URL
from student_client.models import Base


def make_engine(url: str = CREDENTIAL_DB_URL) -> Engine:
    """Build an engine; in-memory SQLite needs StaticPool so all connections share the same DB."""
    if url.startswith("sqlite:///:memory:"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    connect_args = {"check_same_thread": False} if "sqlite" in url else {}
    return create_engine(url, connect_args=connect_args)


def make_session_factory(engine: Engine) -> sessionmaker:
    """Create tables if needed and return a session factory bound to the engine."""
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
