# embeddable_actions/infrastructure/persistence/sqlite_base.py
import logging
import sqlite3
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class SQLiteConfig:
    """Shared configuration for SQLite-based repositories"""
    def __init__(self, config: Mapping[str, Any]):
        self.db_path = Path(config.get('db_path', 'runtime/bindings.db'))
        self.enable_wal_mode = config.get('enable_wal_mode', True)
        self.timeout = config.get('timeout', 30.0)
        self.retry_attempts = config.get('retry_attempts', 3)
        self.retry_delay = config.get('retry_delay', 0.1)
        self.pool_size = config.get('pool_size', 5)
        self.synchronous = config.get('synchronous', 'NORMAL')


class SQLiteBaseRepository(ABC):
    """
    Base class for SQLite-based repositories with:
    - Connection pooling
    - Retry logic on "database is locked"
    - Explicit transactions
    - Thread safety (connections are used from worker threads)
    """

    def __init__(self, config: Mapping[str, Any]):
        self.config = SQLiteConfig(config)
        self.operation_count = 0
        self._lock = Lock()

        self._conn_pool: List[sqlite3.Connection] = []
        self._pool_lock = Lock()

        self._ensure_database_exists()
        self._init_database_schema()

        logger.info(f'{self.__class__.__name__} initialized with db: {self.config.db_path}')

    def _ensure_database_exists(self) -> None:
        self.config.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection from pool or create new one"""
        conn = None
        try:
            with self._pool_lock:
                if self._conn_pool:
                    conn = self._conn_pool.pop()

            if conn is None:
                conn = self._create_connection()

            yield conn

        finally:
            if conn:
                with self._pool_lock:
                    if len(self._conn_pool) < self.config.pool_size:
                        self._conn_pool.append(conn)
                    else:
                        conn.close()

    def _create_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.config.db_path,
            timeout=self.config.timeout,
            check_same_thread=False,
            isolation_level=None,  # transactions are opened explicitly
        )

        if self.config.enable_wal_mode:
            conn.execute('PRAGMA journal_mode=WAL')

        conn.execute('PRAGMA foreign_keys=ON')
        conn.execute(f'PRAGMA synchronous={self.config.synchronous}')

        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """BEGIN IMMEDIATE ... COMMIT, rolled back on any exception."""
        with self._get_connection() as conn:
            conn.execute('BEGIN IMMEDIATE')
            try:
                yield conn
            except BaseException:
                if conn.in_transaction:
                    conn.execute('ROLLBACK')
                raise
            else:
                conn.execute('COMMIT')

    def _execute_with_retry(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        last_error: Optional[sqlite3.OperationalError] = None
        for attempt in range(self.config.retry_attempts):
            try:
                return func(*args, **kwargs)
            except sqlite3.OperationalError as e:
                last_error = e
                if "database is locked" in str(e) and attempt < self.config.retry_attempts - 1:
                    logger.debug('Database locked, retrying (attempt %d)', attempt + 1)
                    time.sleep(self.config.retry_delay * (attempt + 1))
                    continue
                raise
        raise last_error

    def _increment_operation_count(self, count: int = 1) -> None:
        with self._lock:
            self.operation_count += count

    @abstractmethod
    def _init_database_schema(self) -> None:
        """Initialize database schema - must be implemented by subclasses"""
        pass

    def execute_query(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        def _execute() -> List[sqlite3.Row]:
            with self._get_connection() as conn:
                return conn.execute(query, params).fetchall()

        return self._execute_with_retry(_execute)

    def execute_write(self, query: str, params: tuple = ()) -> int:
        """Single statement in its own transaction; returns the affected row count."""
        def _execute() -> int:
            with self.transaction() as conn:
                return conn.execute(query, params).rowcount

        rowcount = self._execute_with_retry(_execute)
        self._increment_operation_count()
        return rowcount

    def get_database_stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = {
            'operation_count': self.operation_count,
            'database_path': str(self.config.db_path),
            'pool_size': len(self._conn_pool),
            'wal_mode_enabled': self.config.enable_wal_mode,
        }
        if self.config.db_path.exists():
            stats['database_size_bytes'] = self.config.db_path.stat().st_size
        return stats

    def close(self) -> None:
        with self._pool_lock:
            for conn in self._conn_pool:
                conn.close()
            self._conn_pool.clear()

        logger.info(f'{self.__class__.__name__} closed')
