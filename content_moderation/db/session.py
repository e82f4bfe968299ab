from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from content_moderation.core.config import settings


def _connect_args(database_url: str) -> dict:
    # SQLite connections are shared with the threadpool running sync dependencies
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    future=True,
    echo=settings.database_echo,
    connect_args=_connect_args(settings.database_url),
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ping(db: Session) -> None:
    """Round-trip a trivial query; raises if the database is unreachable."""
    db.execute(text("SELECT 1"))
