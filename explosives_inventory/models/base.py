"""
Database engine, session management, and base model.

Every model inherits from Base. Every request gets a session
from get_db().
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from explosives_inventory.config import get_settings

settings = get_settings()


def enable_sqlite_write_locking(engine: Engine) -> Engine:
    """
    Make every SQLite transaction start with BEGIN IMMEDIATE.

    SQLite ignores SELECT ... FOR UPDATE, and pysqlite only opens
    a transaction at the first write. Taking the database write
    lock at BEGIN means a stock or capacity check and the ledger
    insert that follows run as one serialized unit, the same
    guarantee the magazine row locks give on PostgreSQL.
    """
    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


# --- Engine ---
# pool_pre_ping=True tests connections before using them, which
# handles a database restart or a stale connection between requests.
engine = enable_sqlite_write_locking(create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
))

# --- Session Factory ---
# autocommit=False: the API layer decides when a ledger write is
# committed, so a rejected operation never leaves partial rows.
# autoflush=False: SQL is only sent on an explicit flush or commit.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The try/finally guarantees the session is closed even when
    the endpoint raises, so connections are never leaked from
    the pool.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
