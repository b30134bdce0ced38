from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from flapframes.core.config import settings
from flapframes.core.logging_config import get_logger

logger = get_logger(__name__)


def build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        # Repository calls hop between worker threads
        return create_engine(database_url, echo=False, connect_args={"check_same_thread": False})
    return create_engine(
        database_url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=300,
    )


engine = build_engine(settings.DATABASE_URL)


def create_db_and_tables(bind: Engine | None = None) -> None:
    # Import models so their tables are registered on the metadata
    from flapframes import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
    logger.info("database tables ensured", url=str((bind or engine).url).split("@")[-1])
