import asyncio
import sqlite3
from typing import Any, Callable, Optional, TypeVar

from fetchjobs.core.config import DB_PATH

T = TypeVar("T")


def init_db(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        create table if not exists jobs (
          job_id integer primary key autoincrement,
          verb text not null,
          url text not null,
          params_json text,
          status text not null,
          attempts integer not null default 0,
          created_at text not null,
          updated_at text not null
        );
        """
    )
    conn.execute(
        """
        create table if not exists outcomes (
          job_id integer primary key,
          state text not null,
          body blob,
          content_type text,
          status_code integer,
          error text,
          created_at text not null
        );
        """
    )
    conn.execute(
        """
        create index if not exists idx_jobs_status
        on jobs (status, job_id);
        """
    )
    conn.commit()


class Database:
    """One SQLite connection shared by the queue and the result store.

    Calls are serialized on an asyncio lock and the blocking work runs in a
    thread, so the event loop keeps serving requests and fetches meanwhile.
    """

    def __init__(self, path: str = DB_PATH) -> None:
        self.path = path
        self._lock = asyncio.Lock()
        self._conn: sqlite3.Connection | None = None

    async def connect(self) -> None:
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        init_db(self._conn)

    async def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def _ensure_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("database not initialized")
        return self._conn

    async def execute(self, query: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        async with self._lock:
            return await asyncio.to_thread(self._execute_sync, query, params)

    def _execute_sync(self, query: str, params: tuple[Any, ...]) -> sqlite3.Cursor:
        conn = self._ensure_conn()
        cur = conn.execute(query, params)
        conn.commit()
        return cur

    async def transaction(self, work: Callable[[sqlite3.Connection], T]) -> T:
        """Run `work` under the lock as one transaction; rolled back if it raises."""
        async with self._lock:
            return await asyncio.to_thread(self._transaction_sync, work)

    def _transaction_sync(self, work: Callable[[sqlite3.Connection], T]) -> T:
        conn = self._ensure_conn()
        with conn:
            conn.execute("begin")
            return work(conn)

    async def fetchone(
        self, query: str, params: tuple[Any, ...] = ()
    ) -> Optional[sqlite3.Row]:
        async with self._lock:
            return await asyncio.to_thread(self._fetchone_sync, query, params)

    def _fetchone_sync(
        self, query: str, params: tuple[Any, ...]
    ) -> Optional[sqlite3.Row]:
        conn = self._ensure_conn()
        cur = conn.execute(query, params)
        return cur.fetchone()

    async def fetchall(
        self, query: str, params: tuple[Any, ...] = ()
    ) -> list[sqlite3.Row]:
        async with self._lock:
            return await asyncio.to_thread(self._fetchall_sync, query, params)

    def _fetchall_sync(
        self, query: str, params: tuple[Any, ...]
    ) -> list[sqlite3.Row]:
        conn = self._ensure_conn()
        cur = conn.execute(query, params)
        return cur.fetchall()
