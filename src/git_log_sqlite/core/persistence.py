"""SQLite persistence for extracted repository histories.

Schema:
    repositories(id, name, url)
    logs(commit_hash PK, author_name, author_email, message, commit_datetime,
         insertions, deletions, repository_id, parent_hash)
    changed_files(id, commit_hash, file_path)

``logs`` is keyed by the bare commit hash with no repository qualifier, so a
commit shared by two repositories (a fork and its upstream, for instance) is
stored once, under whichever repository was written first.
"""

import logging
import queue
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from git_log_sqlite.core.errors import PersistenceError
from git_log_sqlite.core.repository import AnalyzedRepository

logger = logging.getLogger(__name__)

BUSY_TIMEOUT_SECONDS = 60.0

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS repositories (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        url TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS logs (
        commit_hash TEXT PRIMARY KEY,
        author_name TEXT NOT NULL,
        author_email TEXT NOT NULL,
        message TEXT,
        commit_datetime DATETIME NOT NULL,
        insertions INTEGER,
        deletions INTEGER,
        repository_id INTEGER,
        parent_hash TEXT,
        FOREIGN KEY (repository_id) REFERENCES repositories (id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS changed_files (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        commit_hash TEXT NOT NULL,
        file_path TEXT,
        FOREIGN KEY (commit_hash) REFERENCES logs (commit_hash)
    )
    """,
)

CLEAR_STATEMENTS = (
    "DELETE FROM repositories",
    "DELETE FROM logs",
    "DELETE FROM changed_files",
)

# First writer for a name wins; SQLite runs the statement under its write lock.
INSERT_REPOSITORY = """
    INSERT INTO repositories (name, url)
    SELECT ?, ?
    WHERE NOT EXISTS (SELECT 1 FROM repositories WHERE name = ?)
"""

INSERT_LOG = """
    INSERT OR IGNORE INTO logs (
        commit_hash, author_name, author_email, message, commit_datetime,
        insertions, deletions, repository_id, parent_hash
    )
    VALUES (?, ?, ?, ?, ?, ?, ?, (SELECT id FROM repositories WHERE name = ? ORDER BY id LIMIT 1), ?)
"""

INSERT_CHANGED_FILE = "INSERT INTO changed_files (commit_hash, file_path) VALUES (?, ?)"


class ConnectionPool:
    """Fixed number of SQLite connections shared between worker threads.

    Connections run in autocommit mode; callers issue ``BEGIN``/``COMMIT``
    themselves. A connection is only ever used by one thread at a time.
    """

    def __init__(self, database: Union[str, Path], size: int):
        if size < 1:
            raise ValueError("Pool size must be at least 1")
        self.database = str(database)
        self.size = size
        self._idle: "queue.Queue[sqlite3.Connection]" = queue.Queue(maxsize=size)
        for _ in range(size):
            self._idle.put(self._connect())

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(
            self.database,
            timeout=BUSY_TIMEOUT_SECONDS,
            isolation_level=None,
            check_same_thread=False,
        )

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Borrow a connection, blocking until one is free."""
        conn = self._idle.get()
        try:
            yield conn
        finally:
            self._idle.put(conn)

    def close(self) -> None:
        while True:
            try:
                conn = self._idle.get_nowait()
            except queue.Empty:
                break
            conn.close()


class PersistenceGateway:
    """Schema management and per-repository transactional writes."""

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    @classmethod
    def open(
        cls, database: Union[str, Path], *, pool_size: int, clear: bool = False
    ) -> "PersistenceGateway":
        """Create the pool and make sure the schema exists.

        Raises PersistenceError if the database cannot be opened or prepared.
        """
        try:
            gateway = cls(ConnectionPool(database, pool_size))
        except sqlite3.Error as e:
            raise PersistenceError(database, f"cannot open database ({e})") from e
        try:
            gateway.ensure_schema(clear=clear)
        except PersistenceError:
            gateway.close()
            raise
        return gateway

    def close(self) -> None:
        self.pool.close()

    def __enter__(self) -> "PersistenceGateway":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def ensure_schema(self, clear: bool = False) -> None:
        """Create missing tables; with ``clear`` also delete every row."""
        with self.pool.connection() as conn:
            try:
                conn.execute("BEGIN IMMEDIATE")
                for statement in SCHEMA_STATEMENTS:
                    conn.execute(statement)
                if clear:
                    for statement in CLEAR_STATEMENTS:
                        conn.execute(statement)
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                _rollback(conn)
                raise PersistenceError(self.pool.database, f"cannot prepare schema ({e})") from e
        if clear:
            logger.info("Cleared all tables in %s", self.pool.database)

    def store(self, analyzed: AnalyzedRepository) -> int:
        """Write one repository's history in a single transaction.

        Returns the number of commit records handled. Logs that already exist
        are left untouched, and so are their changed files.
        """
        identity = analyzed.identity
        with self.pool.connection() as conn:
            try:
                conn.execute(
                    INSERT_REPOSITORY, (identity.name, analyzed.remote_url, identity.name)
                )
            except Exception as e:
                raise PersistenceError(
                    identity.canonical_path, f"cannot register repository ({e})"
                ) from e

            try:
                conn.execute("BEGIN IMMEDIATE")
                inserted = 0
                for record in analyzed.commits:
                    cursor = conn.execute(
                        INSERT_LOG,
                        (
                            record.commit_id,
                            record.author_name,
                            record.author_email,
                            record.summary,
                            record.commit_time,
                            record.insertions,
                            record.deletions,
                            identity.name,
                            record.parent_id,
                        ),
                    )
                    if cursor.rowcount != 1:
                        continue
                    inserted += 1
                    conn.executemany(
                        INSERT_CHANGED_FILE,
                        [(record.commit_id, path) for path in record.changed_files],
                    )
                conn.execute("COMMIT")
            except Exception as e:
                # the connection goes back to the pool, never with an open transaction
                _rollback(conn)
                raise PersistenceError(
                    identity.canonical_path, f"transaction rolled back ({e})"
                ) from e

        logger.debug(
            "Stored %s: %d new of %d commits", identity.name, inserted, analyzed.commit_count
        )
        return analyzed.commit_count


def _rollback(conn: sqlite3.Connection) -> None:
    if conn.in_transaction:
        conn.execute("ROLLBACK")
