from pathlib import Path

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def get_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    # SQLite will not create the parent directory of its file on its own
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(database_url)


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    import techtask_radar.models  # noqa: F401  registers the mapped classes

    Base.metadata.create_all(engine)
    logger.info(f"Database initialized at {engine.url}")
