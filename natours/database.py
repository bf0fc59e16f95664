from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from natours.core import config


def enable_sqlite_foreign_keys(engine) -> None:
    # SQLite ignores ON DELETE CASCADE unless each connection opts in.
    @event.listens_for(engine, "connect")
    def set_foreign_keys_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


if config.DATABASE_URL.startswith("sqlite"):
    engine = create_engine(config.DATABASE_URL, connect_args={"check_same_thread": False})
    enable_sqlite_foreign_keys(engine)
else:
    engine = create_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


def init_db() -> None:
    # Models register themselves on Base.metadata when imported.
    from natours.models import review, tour, user  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
