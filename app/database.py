from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from app.core.config import get_settings

settings = get_settings()

# ---------------------------------------------------------
# Durable storage for carts.
#
# - SQLite file by default; any SQLAlchemy URL works.
# - check_same_thread=False: FastAPI runs sync routes in a threadpool.
# - In-memory SQLite needs a StaticPool, otherwise every connection
#   gets its own empty database.
# ---------------------------------------------------------


def build_engine(db_url: str):
    """
    Create an engine for the given URL with SQLite-friendly options.
    """
    if db_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in db_url or db_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(db_url, echo=False, **kwargs)

    return create_engine(db_url, echo=False, pool_pre_ping=True)


engine = build_engine(settings.DATABASE_URL)


def create_db_and_tables() -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def get_engine():
    """
    FastAPI dependency returning the storage engine.

    Tests override it with an in-memory engine.
    """
    return engine

