"""
Newsdesk Database Connection Management
=======================================

Pooled SQLite connections shared by the repositories, the API server and
the CLI. Connections are opened lazily and up to ``pool_size`` idle ones
are kept for reuse; extra connections needed under load are closed when
they are handed back.
"""

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from ..utils.logging import get_logger_for_component

logger = get_logger_for_component("database")

PRAGMAS = (
    "PRAGMA foreign_keys = ON",
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA busy_timeout = 30000",
)


class DatabaseConnection:
    """Thread-safe pool of SQLite connections to one database file."""

    def __init__(self, db_path: str = "data/newsdesk.db", pool_size: int = 5):
        self.db_path = Path(db_path)
        self.pool_size = pool_size
        self._idle: List[sqlite3.Connection] = []
        self._lock = threading.Lock()
        self._opened = 0

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _open(self) -> sqlite3.Connection:
        # FastAPI runs sync handlers on worker threads, so connections move between threads
        conn = sqlite3.connect(self.db_path, check_same_thread=False, timeout=30.0)
        conn.row_factory = sqlite3.Row
        for pragma in PRAGMAS:
            conn.execute(pragma)

        with self._lock:
            self._opened += 1
            opened = self._opened
        logger.debug(f"Opened SQLite connection #{opened} to {self.db_path}")
        return conn

    def _checkout(self) -> sqlite3.Connection:
        with self._lock:
            if self._idle:
                return self._idle.pop()
        return self._open()

    def _checkin(self, conn: sqlite3.Connection) -> None:
        with self._lock:
            if len(self._idle) < self.pool_size:
                self._idle.append(conn)
                return
            self._opened -= 1
        conn.close()

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        """Borrow a pooled connection for the duration of the block.

        Uncommitted changes are rolled back if the block raises.
        """
        conn = self._checkout()
        try:
            yield conn
        except Exception:
            if conn.in_transaction:
                conn.rollback()
            raise
        finally:
            self._checkin(conn)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the block in a write transaction, committed on success.

        Example:
            with db.transaction() as conn:
                conn.execute("UPDATE news SET ...")
                conn.execute("INSERT INTO social_media_posts ...")
        """
        with self.get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except Exception as e:
                conn.rollback()
                logger.warning(f"Transaction rolled back: {e}")
                raise
            conn.commit()

    def execute_query(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        with self.get_connection() as conn:
            return conn.execute(query, params).fetchall()

    def execute_one(self, query: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        with self.get_connection() as conn:
            return conn.execute(query, params).fetchone()

    def execute_update(self, query: str, params: tuple = ()) -> int:
        """Run a write statement, commit, and return the affected row count."""
        with self.get_connection() as conn:
            rowcount = conn.execute(query, params).rowcount
            conn.commit()
            return rowcount

    def get_database_info(self) -> Dict[str, Any]:
        """Row count per table plus file size, for /health and ``init-db``."""
        from .schema import TABLES

        with self.get_connection() as conn:
            existing = {
                row["name"]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            }
            table_counts = {
                table: conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0] if table in existing else 0
                for table in TABLES
            }

        size = self.db_path.stat().st_size if self.db_path.exists() else 0
        with self._lock:
            idle, opened = len(self._idle), self._opened

        return {
            "database_size_mb": round(size / (1024 * 1024), 3),
            "table_counts": table_counts,
            "idle_connections": idle,
            "open_connections": opened,
        }

    def close_all_connections(self) -> None:
        """Close idle connections; borrowed ones close when returned past capacity."""
        with self._lock:
            idle, self._idle = self._idle, []
            self._opened -= len(idle)

        for conn in idle:
            conn.close()
        logger.debug(f"Closed {len(idle)} idle SQLite connections")


_db_manager: Optional[DatabaseConnection] = None


def get_db_manager(db_path: Optional[str] = None) -> DatabaseConnection:
    """Process-wide connection pool, created on first use.

    Uses the configured database path and pool size unless ``db_path``
    is given on that first call.
    """
    global _db_manager

    if _db_manager is None:
        if db_path is not None:
            _db_manager = DatabaseConnection(db_path)
        else:
            from ..config.settings import get_settings

            database = get_settings().database
            _db_manager = DatabaseConnection(database.path, database.pool_size)

    return _db_manager
