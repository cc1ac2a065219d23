"""
SQLite Store - Document-store adapter over a single SQLite database.

Three tables back the three logical collections: hosts, pages (URL records)
and structured_data. Processes of every role may share one database file;
the only cross-process coordination is the IMMEDIATE transaction used to
claim a fetched page.
"""

import json
import logging
import os
import sqlite3
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..core.models import Host, HostStatus, UrlRecord, UrlStatus
from .base import HostStore, PageStore, StoreError, StructuredDataStore


@dataclass
class StorageConfig:
    """Configuration for the SQLite store."""
    database_path: str = "data/trawler.db"
    timeout_seconds: float = 30.0  # Wait this long for a locked database
    journal_mode: str = "wal"  # WAL lets readers proceed while a writer commits
    create_indexes: bool = True


class Database:
    """Owns SQLite connections and the schema shared by all stores."""

    def __init__(self, config: StorageConfig):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)

        # Thread-local connections
        self.local = threading.local()

        self._init_database()

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if not hasattr(self.local, 'conn'):
            try:
                conn = sqlite3.connect(
                    self.config.database_path,
                    timeout=self.config.timeout_seconds,
                    isolation_level=None,
                    check_same_thread=False
                )
            except sqlite3.Error as e:
                raise StoreError(f"Cannot open database {self.config.database_path}: {e}") from e
            conn.row_factory = sqlite3.Row
            self.local.conn = conn
        return self.local.conn

    def _init_database(self):
        """Initialize database schema."""
        directory = os.path.dirname(self.config.database_path)
        if directory and self.config.database_path != ':memory:':
            os.makedirs(directory, exist_ok=True)

        with self.transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS hosts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    hostname TEXT UNIQUE NOT NULL,
                    status TEXT,
                    robots_txt TEXT,
                    last_fetched_at REAL,
                    last_updated_at REAL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS pages (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    url TEXT UNIQUE NOT NULL,
                    host TEXT NOT NULL,
                    status TEXT,
                    content BLOB
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS structured_data (
                    digest TEXT PRIMARY KEY,
                    url TEXT,
                    types TEXT,
                    document TEXT NOT NULL,
                    updated_at REAL
                )
            """)

            if self.config.create_indexes:
                conn.execute("CREATE INDEX IF NOT EXISTS idx_hosts_due ON hosts(status, last_fetched_at)")
                conn.execute("CREATE INDEX IF NOT EXISTS idx_hosts_updated ON hosts(last_updated_at)")
                conn.execute("CREATE INDEX IF NOT EXISTS idx_pages_host_status ON pages(host, status)")
                conn.execute("CREATE INDEX IF NOT EXISTS idx_pages_status ON pages(status)")
                conn.execute("CREATE INDEX IF NOT EXISTS idx_structured_types ON structured_data(types)")

        if self.config.journal_mode:
            self.execute(f"PRAGMA journal_mode={self.config.journal_mode}")

        self.logger.info(f"Database initialized at {self.config.database_path}")

    @contextmanager
    def transaction(self, immediate: bool = False) -> Iterator[sqlite3.Connection]:
        """
        Run statements in one transaction.

        ``immediate`` takes the write lock up front, which makes a
        read-then-update sequence atomic across processes.
        """
        conn = self._get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
            yield conn
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            self._rollback(conn)
            raise StoreError(f"Database error: {e}") from e
        except BaseException:
            self._rollback(conn)
            raise

    def _rollback(self, conn: sqlite3.Connection):
        if conn.in_transaction:
            conn.execute("ROLLBACK")

    def execute(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        try:
            return self._get_connection().execute(sql, params)
        except sqlite3.Error as e:
            raise StoreError(f"Database error: {e}") from e

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        return self.execute(sql, params).fetchall()

    def best_effort(self, sql: str, rows: Sequence[Sequence[Any]]) -> int:
        """
        Apply one statement to many rows without failing on conflicts.

        Conflicting rows are logged and skipped. Connectivity failures still
        raise StoreError.

        Returns:
            Number of rows changed
        """
        if not rows:
            return 0
        conn = self._get_connection()
        try:
            conn.execute("BEGIN")
            cursor = conn.executemany(sql, rows)
            conn.execute("COMMIT")
            return cursor.rowcount
        except sqlite3.IntegrityError as e:
            self._rollback(conn)
            self.logger.warning(f"Best-effort write of {len(rows)} rows skipped: {e}")
            return 0
        except sqlite3.Error as e:
            self._rollback(conn)
            raise StoreError(f"Database error: {e}") from e

    def close(self):
        """Close database connection."""
        if hasattr(self.local, 'conn'):
            self.local.conn.close()
            del self.local.conn


def _row_to_host(row: sqlite3.Row) -> Host:
    return Host(
        hostname=row['hostname'],
        status=HostStatus(row['status']) if row['status'] else None,
        robots_txt=row['robots_txt'],
        last_fetched_at=row['last_fetched_at'],
        last_updated_at=row['last_updated_at'],
    )


class SQLiteHostStore(HostStore):
    """Host records in the ``hosts`` table."""

    def __init__(self, database: Database):
        self.db = database
        self.logger = logging.getLogger(self.__class__.__name__)

    def find_due_hosts(self, cutoff: float, limit: int) -> List[Host]:
        rows = self.db.query("""
            SELECT * FROM hosts
            WHERE status = ? AND (last_fetched_at IS NULL OR last_fetched_at < ?)
            ORDER BY last_fetched_at ASC, id ASC
            LIMIT ?
        """, (HostStatus.OK.value, cutoff, limit))
        return [_row_to_host(row) for row in rows]

    def stamp_fetched(self, hostnames: Sequence[str], when: float) -> None:
        self.db.best_effort(
            "UPDATE hosts SET last_fetched_at = ? WHERE hostname = ?",
            [(when, hostname) for hostname in hostnames]
        )

    def insert_host(self, hostname: str, status: HostStatus) -> bool:
        cursor = self.db.execute(
            "INSERT OR IGNORE INTO hosts (hostname, status) VALUES (?, ?)",
            (hostname, status.value)
        )
        return cursor.rowcount == 1

    def find_host_to_update(self, cutoff: float) -> Optional[Host]:
        rows = self.db.query("""
            SELECT * FROM hosts
            WHERE (status IS NULL OR status != ?)
              AND (last_updated_at IS NULL OR last_updated_at < ?)
            ORDER BY last_updated_at ASC, id ASC
            LIMIT 1
        """, (HostStatus.EXCLUDED.value, cutoff))
        return _row_to_host(rows[0]) if rows else None

    def update_host(self, host: Host, when: float) -> bool:
        cursor = self.db.execute("""
            UPDATE hosts SET robots_txt = ?, status = ?, last_updated_at = ?
            WHERE hostname = ?
        """, (host.robots_txt, host.status.value if host.status else None, when, host.hostname))
        return cursor.rowcount == 1

    def set_status(self, hostname: str, status: HostStatus, when: float) -> bool:
        cursor = self.db.execute(
            "UPDATE hosts SET status = ?, last_updated_at = ? WHERE hostname = ?",
            (status.value, when, hostname)
        )
        return cursor.rowcount == 1

    def find_host(self, hostname: str) -> Optional[Host]:
        rows = self.db.query("SELECT * FROM hosts WHERE hostname = ?", (hostname,))
        return _row_to_host(rows[0]) if rows else None

    def status_counts(self) -> List[Tuple[Optional[str], int]]:
        rows = self.db.query(
            "SELECT status, COUNT(*) AS count FROM hosts GROUP BY status ORDER BY status"
        )
        return [(row['status'], row['count']) for row in rows]


class SQLitePageStore(PageStore):
    """URL records in the ``pages`` table. A NULL status means new."""

    def __init__(self, database: Database):
        self.db = database
        self.logger = logging.getLogger(self.__class__.__name__)

    def insert_urls(self, records: Iterable[Tuple[str, str]]) -> None:
        rows = list(records)
        inserted = self.db.best_effort(
            "INSERT OR IGNORE INTO pages (url, host) VALUES (?, ?)", rows
        )
        self.logger.debug(f"Wrote {len(rows)} URLs ({inserted} new)")

    def find_new_urls(self, host: str, limit: int) -> List[str]:
        rows = self.db.query("""
            SELECT url FROM pages
            WHERE host = ? AND status IS NULL
            ORDER BY id ASC
            LIMIT ?
        """, (host, limit))
        return [row['url'] for row in rows]

    def set_urls_status(self, urls: Sequence[str], status: UrlStatus,
                        from_status: UrlStatus) -> None:
        if from_status is UrlStatus.NEW:
            sql = "UPDATE pages SET status = ? WHERE url = ? AND status IS NULL"
            rows = [(status.to_stored(), url) for url in urls]
        else:
            sql = "UPDATE pages SET status = ? WHERE url = ? AND status = ?"
            rows = [(status.to_stored(), url, from_status.to_stored()) for url in urls]
        self.db.best_effort(sql, rows)

    def store_content(self, url: str, content: bytes) -> bool:
        cursor = self.db.execute("""
            UPDATE pages SET status = ?, content = ?
            WHERE url = ? AND status = ?
        """, (UrlStatus.FETCHED.value, sqlite3.Binary(content), url, UrlStatus.FETCHING.value))
        return cursor.rowcount == 1

    def claim_fetched(self) -> Optional[UrlRecord]:
        with self.db.transaction(immediate=True) as conn:
            row = conn.execute("""
                SELECT id, url, host, content FROM pages
                WHERE status = ?
                ORDER BY id ASC
                LIMIT 1
            """, (UrlStatus.FETCHED.value,)).fetchone()
            if row is None:
                return None
            conn.execute(
                "UPDATE pages SET status = ? WHERE id = ? AND status = ?",
                (UrlStatus.SCRAPING.value, row['id'], UrlStatus.FETCHED.value)
            )
        return UrlRecord(
            url=row['url'],
            host=row['host'],
            status=UrlStatus.SCRAPING,
            content=bytes(row['content']) if row['content'] is not None else None,
        )

    def finish_scraping(self, url: str) -> None:
        self.db.best_effort("""
            UPDATE pages SET status = ?, content = NULL
            WHERE url = ? AND status = ?
        """, [(UrlStatus.SCRAPED.value, url, UrlStatus.SCRAPING.value)])

    def reset_status(self, from_status: UrlStatus, to_status: UrlStatus) -> int:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE pages SET status = ? WHERE status = ?",
                (to_status.to_stored(), from_status.to_stored())
            )
            return cursor.rowcount

    def sample_urls(self, limit: int) -> List[str]:
        rows = self.db.query("SELECT url FROM pages ORDER BY id ASC LIMIT ?", (limit,))
        return [row['url'] for row in rows]

    def find_record(self, url: str) -> Optional[UrlRecord]:
        rows = self.db.query("SELECT * FROM pages WHERE url = ?", (url,))
        if not rows:
            return None
        row = rows[0]
        return UrlRecord(
            url=row['url'],
            host=row['host'],
            status=UrlStatus.from_stored(row['status']),
            content=bytes(row['content']) if row['content'] is not None else None,
        )

    def status_counts(self) -> List[Tuple[Optional[str], int]]:
        rows = self.db.query(
            "SELECT status, COUNT(*) AS count FROM pages GROUP BY status ORDER BY status"
        )
        return [(row['status'], row['count']) for row in rows]


class SQLiteStructuredDataStore(StructuredDataStore):
    """Structured-data documents in the ``structured_data`` table, keyed by digest."""

    def __init__(self, database: Database):
        self.db = database
        self.logger = logging.getLogger(self.__class__.__name__)

    def upsert_documents(self, url: str, documents: Sequence[Dict[str, Any]]) -> int:
        now = time.time()
        rows = []
        for document in documents:
            types = json.dumps(document.get('type') or [], sort_keys=True)
            rows.append((
                document['_digest'],
                url,
                types,
                json.dumps(document, sort_keys=True, ensure_ascii=False),
                now,
            ))
        if not rows:
            return 0

        with self.db.transaction() as conn:
            conn.executemany("""
                INSERT INTO structured_data (digest, url, types, document, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(digest) DO UPDATE SET
                    url = excluded.url,
                    updated_at = excluded.updated_at
            """, rows)
        return len(rows)

    def item_type_counts(self) -> List[Tuple[str, int]]:
        rows = self.db.query("""
            SELECT types, COUNT(*) AS count FROM structured_data
            GROUP BY types ORDER BY count DESC, types ASC
        """)
        counts = []
        for row in rows:
            types = json.loads(row['types']) if row['types'] else []
            counts.append((', '.join(types) or '(untyped)', row['count']))
        return counts

    def find_document(self, digest: str) -> Optional[Dict[str, Any]]:
        rows = self.db.query("SELECT document FROM structured_data WHERE digest = ?", (digest,))
        return json.loads(rows[0]['document']) if rows else None
