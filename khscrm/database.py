from __future__ import annotations
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.engine.url import make_url

from .config import settings


def _is_sqlite(url: str) -> bool:
    try:
        return make_url(url).drivername.startswith("sqlite")
    except Exception:
        return url.startswith("sqlite")

def make_engine(url: str):
    connect_args = {"check_same_thread": False} if _is_sqlite(url) else {}
    eng = create_engine(url, pool_pre_ping=True, connect_args=connect_args)
    if _is_sqlite(url):
        # SQLite ships with FK enforcement off; turn it on per connection
        @event.listens_for(eng, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    return eng

engine = make_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

class Base(DeclarativeBase):
    pass

def init_db(bind=None) -> None:
    """Create any missing tables. Existing tables are left untouched."""
    from . import models  # noqa: F401  (register mappers on Base.metadata)
    Base.metadata.create_all(bind=bind or engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
