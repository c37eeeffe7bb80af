from sqlmodel import SQLModel, create_engine, Session
from francopath.core.config import settings
import logging

logger = logging.getLogger(__name__)


def normalize_database_url(url: str) -> str:
    """SQLAlchemy prefers postgresql:// over postgres://"""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


db_url = normalize_database_url(settings.database_url)

logger.info(f"Connecting to database: {db_url[:20]}...")  # Log partial URL for debugging

if db_url.startswith("sqlite"):
    # SQLite connections are shared across FastAPI's threadpool
    engine = create_engine(
        db_url,
        echo=False,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        db_url,
        echo=False,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=5,
        max_overflow=10,
    )


def get_session():
    """Dependency for getting database sessions."""
    with Session(engine) as session:
        yield session


def init_db():
    """Initialize database tables."""
    # Import models to register them with SQLModel metadata
    from francopath.models import models  # noqa: F401

    SQLModel.metadata.create_all(engine)
