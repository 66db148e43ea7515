# verkcli/database.py
"""
Index database connection, schema creation and session helpers.
Uses SQLAlchemy on an embedded SQLite file, one file per tenant
(see utils/paths.py). All models are imported in ensure_schema() so
create_all() creates every table in one call; the FTS5 shadow table is
not expressible as a mapped table and is created with raw DDL.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool

from verkcli.utils.logger import get_logger

logger = get_logger(__name__)

Base = declarative_base()

# Bumped only on incompatible layout changes.
SCHEMA_VERSION = 1

# Applied on every new connection; old or restricted SQLite builds may refuse them.
_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
)

CAMERAS_FTS_DDL = """
CREATE VIRTUAL TABLE IF NOT EXISTS cameras_fts USING fts5(
    camera_id UNINDEXED,
    name,
    site,
    label,
    model,
    serial,
    status,
    timezone,
    tokenize = 'unicode61'
)
"""


def _apply_pragmas(dbapi_connection, connection_record):
    for pragma in _PRAGMAS:
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute(pragma)
        except sqlite3.Error as e:
            logger.debug(f"Ignoring failed pragma '{pragma}': {e}")
        finally:
            cursor.close()


def create_index_engine(path: Union[str, Path]) -> Engine:
    """
    Engine bound to one index file. NullPool: every operation opens and
    closes its own connection, nothing is held between CLI steps.
    """
    engine = create_engine(
        f"sqlite:///{path}",
        poolclass=NullPool,
        echo=False,          # Set True to log all SQL statements (debug only)
    )
    event.listen(engine, "connect", _apply_pragmas)
    return engine


def ensure_schema(engine: Engine):
    """
    Creates all index tables if absent. Safe to call on every open.
    """
    from verkcli.models.meta import Meta          # noqa
    from verkcli.models.camera import Camera      # noqa
    from verkcli.models.label import Label        # noqa

    Base.metadata.create_all(bind=engine)
    with engine.begin() as conn:
        conn.execute(text(CAMERAS_FTS_DDL))


@contextmanager
def open_index(path: Union[str, Path]) -> Iterator[Engine]:
    """Open an index file, make sure its schema exists, dispose on exit."""
    engine = create_index_engine(path)
    try:
        ensure_schema(engine)
        yield engine
    finally:
        engine.dispose()


def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
