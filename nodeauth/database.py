from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from nodeauth.config import settings


def _connect_args(database_url: str) -> dict:
    # SQLite connections are shared with the scheduler thread
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    connect_args=_connect_args(settings.database_url),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def init_db(bind=None) -> None:
    """Create the login phrase and session tables if they do not exist."""
    # Registers the mapped classes on Base.metadata
    import nodeauth.models.logged_user  # noqa: F401
    import nodeauth.models.login_phrase  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """Dependency for FastAPI endpoints to get a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
