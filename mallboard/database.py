"""MallBoard — Database Engine & Session Factory.

SQLite locally, PostgreSQL when ``DATABASE_URL`` points at one. Every table
is declared in ``mallboard.models``; ``init_db`` creates what is missing and
``table_counts`` backs the ``/debug/db`` endpoint.
"""

from typing import Dict

from sqlalchemy import func, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError
from sqlmodel import SQLModel, Session, create_engine, select

from mallboard.config import settings
from mallboard.core.logging import get_logger

logger = get_logger("database")

db_url = settings.effective_database_url


def backend_name(url: str) -> str:
    return "sqlite" if url.startswith("sqlite") else "postgresql"


def mask_url(url: str) -> str:
    """The URL with its password replaced, for logs and the debug endpoint."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return url.split("@", 1)[-1] if "@" in url else url


def _engine_kwargs(url: str) -> dict:
    if backend_name(url) == "sqlite":
        return {"echo": False, "connect_args": {"check_same_thread": False}}
    return {
        "echo": False,
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 300,
    }


logger.info(f"Database backend: {backend_name(db_url)} ({mask_url(db_url)})")
engine = create_engine(db_url, **_engine_kwargs(db_url))


def _import_models() -> None:
    # Table classes register themselves on SQLModel.metadata at import
    import mallboard.models.sales_models  # noqa: F401
    import mallboard.models.catalog_models  # noqa: F401


def test_connection() -> bool:
    """SELECT 1 against the engine; False (logged) when it fails."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("✅ Database connection test: SUCCESS")
        return True
    except Exception as e:
        logger.error(f"❌ Database connection test: FAILED: {e}")
        return False


def init_db() -> None:
    """Create every MallBoard table that does not exist yet."""
    _import_models()
    SQLModel.metadata.create_all(engine)
    logger.info(f"✅ Database tables ready: {', '.join(sorted(SQLModel.metadata.tables))}")


def table_counts(session: Session) -> Dict[str, int]:
    """Row count of each MallBoard table, keyed by table name."""
    _import_models()
    counts: Dict[str, int] = {}
    for name, table in sorted(SQLModel.metadata.tables.items()):
        counts[name] = session.exec(select(func.count()).select_from(table)).one()
    return counts


def get_session():
    """Dependency — yields a DB session."""
    with Session(engine) as session:
        yield session
