# embeddable_actions/infrastructure/persistence/sqlite_binding_store.py

import asyncio
import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Tuple, TypeVar

from embeddable_actions.core.exceptions import DeletionFailedError, PersistenceError, UnknownActionError
from embeddable_actions.core.registry import ActionFactoryRegistry, TriggerRegistry
from embeddable_actions.domain.actions import Action
from embeddable_actions.domain.models import Binding, BindingScope

from .sqlite_base import SQLiteBaseRepository
from .store_support import BindingStoreSupport

logger = logging.getLogger(__name__)

_NO_SCOPE = ''

T = TypeVar('T')


class SQLiteBindingStore(BindingStoreSupport, SQLiteBaseRepository):
    """
    Durable binding store.

    Actions are persisted as their JSON record and rehydrated through the
    owning factory's ``from_saved_object``. Deleting an action removes its
    mappings and the action row in one transaction.
    """

    def __init__(self, config: Mapping[str, Any], trigger_registry: TriggerRegistry, factory_registry: ActionFactoryRegistry):
        BindingStoreSupport.__init__(self, trigger_registry, factory_registry)
        SQLiteBaseRepository.__init__(self, config)
        self._write_lock = asyncio.Lock()

    def _init_database_schema(self) -> None:
        with self._get_connection() as conn:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS actions (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    action_id TEXT NOT NULL UNIQUE,
                    action_type TEXT NOT NULL,
                    title TEXT NOT NULL,
                    embeddable_id TEXT,
                    embeddable_type TEXT,
                    payload TEXT NOT NULL,  -- JSON record
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            ''')
            conn.execute('''
                CREATE TABLE IF NOT EXISTS trigger_action_mappings (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    trigger_id TEXT NOT NULL,
                    action_id TEXT NOT NULL,
                    scope_id TEXT NOT NULL DEFAULT '',
                    scope_type TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL,
                    UNIQUE (trigger_id, action_id, scope_id, scope_type),
                    FOREIGN KEY (action_id) REFERENCES actions(action_id)
                )
            ''')
            conn.execute('CREATE INDEX IF NOT EXISTS idx_mappings_trigger_scope ON trigger_action_mappings(trigger_id, scope_id, scope_type, id)')
            conn.execute('CREATE INDEX IF NOT EXISTS idx_mappings_action ON trigger_action_mappings(action_id)')

    # ------------------------------------------------------------------ #
    # Async surface
    # ------------------------------------------------------------------ #
    async def save(self, action: Action) -> Action:
        self._validate_for_save(action)
        async with self._write_lock:
            stored = await self._in_thread('save', action.id, self._execute_with_retry, self._save_sync, action)
        self._increment_operation_count()
        return stored

    async def get_action(self, action_id: str) -> Action:
        rows = await self._in_thread(
            'get_action', action_id,
            self.execute_query, 'SELECT action_type, payload FROM actions WHERE action_id = ?', (action_id,)
        )
        if not rows:
            raise UnknownActionError(action_id)
        return self._row_to_action(rows[0])

    async def list_actions(self) -> List[Action]:
        rows = await self._in_thread('list_actions', None, self.execute_query, 'SELECT action_type, payload FROM actions ORDER BY seq')
        return [self._row_to_action(r) for r in rows]

    async def delete(self, action_id: str) -> None:
        async with self._write_lock:
            try:
                removed = await asyncio.to_thread(self._execute_with_retry, self._delete_sync, action_id)
            except UnknownActionError:
                raise
            except Exception as exc:
                logger.exception("Deletion of action '%s' failed, transaction rolled back: %s", action_id, exc)
                raise DeletionFailedError(action_id, exc) from exc
        self._increment_operation_count()
        logger.info("Deleted action '%s' and %d binding(s)", action_id, removed)

    async def add_mapping(self, trigger_id: str, action_id: str, scope: Optional[BindingScope] = None) -> Binding:
        self._require_trigger(trigger_id)
        async with self._write_lock:
            binding = await self._in_thread(
                'add_mapping', action_id, self._execute_with_retry, self._add_mapping_sync, trigger_id, action_id, scope
            )
        self._increment_operation_count()
        return binding

    async def remove_mapping(self, trigger_id: str, action_id: str, scope: Optional[BindingScope] = None) -> None:
        if scope is None:
            query = 'DELETE FROM trigger_action_mappings WHERE trigger_id = ? AND action_id = ?'
            params: Tuple[Any, ...] = (trigger_id, action_id)
        else:
            query = ('DELETE FROM trigger_action_mappings '
                     'WHERE trigger_id = ? AND action_id = ? AND scope_id = ? AND scope_type = ?')
            params = (trigger_id, action_id, *self._scope_columns(scope))
        async with self._write_lock:
            removed = await self._in_thread('remove_mapping', action_id, self.execute_write, query, params)
        if removed:
            logger.info("Removed %d mapping(s) %s -> %s", removed, trigger_id, action_id)
        else:
            logger.debug("No mapping %s -> %s to remove", trigger_id, action_id)

    async def get_bindings(self, trigger_id: str, scope: Optional[BindingScope]) -> List[Binding]:
        rows = await self._in_thread(
            'get_bindings', None, self.execute_query,
            'SELECT * FROM trigger_action_mappings WHERE trigger_id = ? AND scope_id = ? AND scope_type = ? ORDER BY id',
            (trigger_id, *self._scope_columns(scope)),
        )
        return [self._row_to_binding(r) for r in rows]

    async def get_bindings_for_action(self, action_id: str) -> List[Binding]:
        rows = await self._in_thread(
            'get_bindings_for_action', action_id, self.execute_query,
            'SELECT * FROM trigger_action_mappings WHERE action_id = ? ORDER BY id',
            (action_id,),
        )
        return [self._row_to_binding(r) for r in rows]

    async def _in_thread(self, operation: str, action_id: Optional[str], func: Callable[..., T], *args: Any) -> T:
        """Run a blocking call in a worker thread; SQLite failures surface as PersistenceError."""
        try:
            return await asyncio.to_thread(func, *args)
        except sqlite3.Error as exc:
            logger.exception("Binding store %s failed (action=%s): %s", operation, action_id, exc)
            raise PersistenceError(operation, action_id, exc) from exc

    # ------------------------------------------------------------------ #
    # Sync workers (run in a thread)
    # ------------------------------------------------------------------ #
    def _save_sync(self, action: Action) -> Action:
        stored = action.model_copy(deep=True)
        if not stored.id:
            stored.id = self._new_action_id()
        now = datetime.now(timezone.utc).isoformat()
        with self.transaction() as conn:
            conn.execute('''
                INSERT INTO actions (action_id, action_type, title, embeddable_id, embeddable_type, payload, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(action_id) DO UPDATE SET
                    action_type = excluded.action_type,
                    title = excluded.title,
                    embeddable_id = excluded.embeddable_id,
                    embeddable_type = excluded.embeddable_type,
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
            ''', (
                stored.id, stored.action_type, stored.title, stored.embeddable_id, stored.embeddable_type,
                json.dumps(stored.to_record()), now, now,
            ))
        logger.info("Saved action '%s' (%s)", stored.id, stored.action_type)
        return stored

    def _delete_sync(self, action_id: str) -> int:
        with self.transaction() as conn:
            if conn.execute('SELECT 1 FROM actions WHERE action_id = ?', (action_id,)).fetchone() is None:
                raise UnknownActionError(action_id)
            removed = self._delete_mapping_rows(conn, action_id)
            self._delete_action_row(conn, action_id)
        return removed

    def _delete_mapping_rows(self, conn: sqlite3.Connection, action_id: str) -> int:
        return conn.execute('DELETE FROM trigger_action_mappings WHERE action_id = ?', (action_id,)).rowcount

    def _delete_action_row(self, conn: sqlite3.Connection, action_id: str) -> None:
        conn.execute('DELETE FROM actions WHERE action_id = ?', (action_id,))

    def _add_mapping_sync(self, trigger_id: str, action_id: str, scope: Optional[BindingScope]) -> Binding:
        with self.transaction() as conn:
            row = conn.execute('SELECT action_type, payload FROM actions WHERE action_id = ?', (action_id,)).fetchone()
            if row is None:
                raise UnknownActionError(action_id)
            action = self._row_to_action(row)
            scope = self._effective_scope(action, scope)
            scope_id, scope_type = self._scope_columns(scope)

            existing = conn.execute(
                'SELECT * FROM trigger_action_mappings WHERE trigger_id = ? AND action_id = ? AND scope_id = ? AND scope_type = ?',
                (trigger_id, action_id, scope_id, scope_type),
            ).fetchone()
            if existing is not None:
                logger.debug("Mapping %s -> %s [%s] already present", trigger_id, action_id, scope)
                return self._row_to_binding(existing)

            bound = [r['trigger_id'] for r in conn.execute(
                'SELECT trigger_id FROM trigger_action_mappings WHERE action_id = ?', (action_id,)
            )]
            self._check_trigger_cardinality(action, trigger_id, bound)

            cursor = conn.execute(
                'INSERT INTO trigger_action_mappings (trigger_id, action_id, scope_id, scope_type, created_at) VALUES (?, ?, ?, ?, ?)',
                (trigger_id, action_id, scope_id, scope_type, datetime.now(timezone.utc).isoformat()),
            )
        logger.info("Mapped trigger '%s' -> action '%s' [%s]", trigger_id, action_id, scope or 'global')
        return Binding(trigger_id=trigger_id, action_id=action_id, scope=scope, seq=cursor.lastrowid)

    # ------------------------------------------------------------------ #
    @staticmethod
    def _scope_columns(scope: Optional[BindingScope]) -> Tuple[str, str]:
        if scope is None:
            return (_NO_SCOPE, _NO_SCOPE)
        return (scope.embeddable_id, scope.embeddable_type)

    @staticmethod
    def _row_to_binding(row: sqlite3.Row) -> Binding:
        scope = None
        if row['scope_id'] != _NO_SCOPE:
            scope = BindingScope(embeddable_id=row['scope_id'], embeddable_type=row['scope_type'])
        return Binding(trigger_id=row['trigger_id'], action_id=row['action_id'], scope=scope, seq=row['id'])

    def _row_to_action(self, row: sqlite3.Row) -> Action:
        # raises UnknownFactoryError when the action type is no longer registered
        factory = self.factory_registry.get_factory_by_id(row['action_type'])
        return factory.from_saved_object(json.loads(row['payload']))
