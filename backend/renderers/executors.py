from __future__ import annotations

import asyncio
from typing import Any

import duckdb

from common.config import duckdb_threads
from renderers.types import QueryResult


class DuckDBQueryExecutor:
    """
    Query execution backed by DuckDB.

    A connection is opened per query and closed afterwards; the blocking call runs in a
    worker thread so concurrent tile renders don't stall the event loop.
    """

    def __init__(self, database: str = ":memory:", *, threads: int | None = None, setup_sql: list[str] | None = None):
        self.database = database
        self.threads = threads or duckdb_threads()
        # Statements run on every fresh connection (e.g. INSTALL/LOAD spatial, fixtures).
        self.setup_sql = list(setup_sql or [])

    async def execute(self, query: str) -> QueryResult:
        return await asyncio.to_thread(self._execute_sync, query)

    def _execute_sync(self, query: str) -> QueryResult:
        conn = duckdb.connect(
            database=self.database,
            read_only=False,
            config={"threads": int(self.threads)},
        )
        try:
            for stmt in self.setup_sql:
                conn.execute(stmt)
            cur = conn.execute(query)
            cols = [str(d[0]) for d in (cur.description or [])]
            rows: list[dict[str, Any]] = [dict(zip(cols, r)) for r in cur.fetchall()]
            return QueryResult(rows=rows)
        finally:
            try:
                conn.close()
            except Exception:
                pass
