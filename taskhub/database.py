"""
Database Configuration and Session Management

SQLAlchemy setup with connection pooling. PostgreSQL is the production
target; SQLite is supported for development and the test suite.

NOTE: Authorization decisions are recomputed from the grant tables on every
request, so nothing here caches rows beyond a single session.
"""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from taskhub.config import get_settings
import logging

logger = logging.getLogger(__name__)

settings = get_settings()


def _engine_options(database_url: str) -> dict:
    """Pool and driver options for the configured backend."""
    if database_url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}, "echo": settings.DEBUG}
        # In-memory databases live on a single connection
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options

    return {
        "poolclass": QueuePool,
        "pool_size": settings.DATABASE_POOL_SIZE,
        "max_overflow": settings.DATABASE_MAX_OVERFLOW,
        "pool_pre_ping": True,  # Verify connections before using (handles stale connections)
        "echo": settings.DEBUG,  # Log SQL in debug mode
    }


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# expire_on_commit=False lets handlers read attributes after commit without
# another round trip. Stale data is possible if an object outlives its request.
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False
)

# Base class for all models
Base = declarative_base()


@event.listens_for(engine, "connect")
def set_connection_options(dbapi_connection, connection_record):
    """Set connection-level configuration on new connections."""
    if engine.dialect.name == "sqlite":
        # Let SQLAlchemy own transaction boundaries so SAVEPOINT works,
        # and turn on FK enforcement (off by default in SQLite).
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
    elif engine.dialect.name == "postgresql":
        cursor = dbapi_connection.cursor()
        cursor.execute("SET TIME ZONE 'UTC'")
        cursor.close()
    logger.debug("New database connection established")


@event.listens_for(engine, "begin")
def begin_sqlite_transaction(conn):
    """Emit BEGIN ourselves since the sqlite driver no longer does."""
    if conn.dialect.name == "sqlite":
        conn.exec_driver_sql("BEGIN")


def get_db() -> Session:
    """
    Dependency function that provides a database session.

    The session is closed after the request completes. Handlers commit
    explicitly, once, so grant cascades and the resource writes they belong
    to land in the same transaction.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Create tables and seed the role catalog.

    In production, you'd use migrations instead. This is here for dev/testing
    convenience.
    """
    import taskhub.models  # noqa: F401  (registers tables on Base.metadata)
    from taskhub.core.roles import seed_roles

    logger.warning("init_db() called - use migrations in production!")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed_roles(db)
        db.commit()
    finally:
        db.close()
