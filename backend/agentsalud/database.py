# backend/agentsalud/database.py

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from .config import settings


def make_engine(url: str):
    # check_same_thread=False: sessions are opened from worker threads (asyncio.to_thread)
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


engine = make_engine(settings.resolved_database_url)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Dependency for handlers that open one session per concurrent query
def get_session_factory() -> sessionmaker[Session]:
    return SessionLocal
