"""SQLite connections for the document store.

Every store call opens its own short-lived connection. FastAPI runs sync
handlers on a thread pool, so writers may briefly contend for the file lock;
BUSY_TIMEOUT_SECONDS bounds how long a call waits before sqlite raises.
"""

import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from stellix.config import Config

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.sql"
BUSY_TIMEOUT_SECONDS = 10.0


def _resolve_path(db_path: Path | str | None) -> Path:
    return Path(db_path) if db_path else Path(Config.DATABASE_PATH)


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """Open a connection with rows addressable by column name.

    Args:
        db_path: sqlite file; Config.DATABASE_PATH when omitted
    """
    conn = sqlite3.connect(_resolve_path(db_path), timeout=BUSY_TIMEOUT_SECONDS)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_db(db_path: Path | str | None = None) -> Generator[sqlite3.Connection, None, None]:
    """One transaction: commit on success, roll back on any exception.

    Usage:
        with get_db() as conn:
            conn.execute("SELECT body FROM documents WHERE collection = ?", ("curated_channels",))
    """
    conn = get_connection(db_path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: Path | str | None = None) -> None:
    """Create the data directory and the documents table. Idempotent."""
    path = _resolve_path(db_path)
    created = not path.exists()
    path.parent.mkdir(parents=True, exist_ok=True)

    with get_db(path) as conn:
        conn.executescript(SCHEMA_PATH.read_text())

    if created:
        logger.info("[STORE] Created document database at %s", path)
