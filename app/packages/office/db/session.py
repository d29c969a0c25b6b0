"""Database engine and session factory configuration."""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.packages.office.core.config import get_settings

settings = get_settings()


def _connect_args(url: str) -> dict:
    # SQLite connections are shared across the threads of the test client.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


# ``pool_pre_ping`` keeps the connection pool healthy; ``echo`` mirrors SQL logs
# when enabled in settings for easier debugging.
engine = create_engine(
    settings.sql_database_url,
    pool_pre_ping=True,
    echo=settings.database_echo,
    connect_args=_connect_args(settings.sql_database_url),
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Run a block of writes as one transaction: commit on success, rollback on any error."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
