from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from tryout_app.infrastructure.config import DATABASE_URL, SQL_ECHO
from .base import Base  # noqa: F401

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(DATABASE_URL, echo=SQL_ECHO, connect_args=connect_args)


def enable_sqlite_foreign_keys(target_engine):
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""
    if target_engine.dialect.name != "sqlite":
        return

    @event.listens_for(target_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


enable_sqlite_foreign_keys(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
