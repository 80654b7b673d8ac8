"""Database helpers: connection pool, single-row upserts, run tracking."""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Optional

import psycopg2
import psycopg2.extras
import psycopg2.pool

from scripts.opsync.config import DatabaseConfig

logger = logging.getLogger("opsync.db")

SCHEMA_PATH = Path(__file__).with_name("schema.sql")


class Database:
    """Thin wrapper around a ThreadedConnectionPool with upsert helpers."""

    def __init__(self, config: DatabaseConfig) -> None:
        self._pool = psycopg2.pool.ThreadedConnectionPool(
            minconn=config.min_connections,
            maxconn=config.max_connections,
            dsn=config.url,
        )

    def close(self) -> None:
        self._pool.closeall()

    @contextmanager
    def connection(self) -> Generator:
        conn = self._pool.getconn()
        try:
            yield conn
        finally:
            self._pool.putconn(conn)

    @contextmanager
    def transaction(self) -> Generator:
        """Yield a dict-row cursor inside an auto-commit/rollback transaction."""
        with self.connection() as conn:
            try:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                    yield cur
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def apply_schema(self, path: Path = SCHEMA_PATH) -> None:
        """Create the tables the sync jobs write to, if missing."""
        sql = path.read_text()
        with self.transaction() as cur:
            cur.execute(sql)
        logger.info("Applied schema from %s", path)

    def upsert_returning(
        self,
        cur,
        table: str,
        values: dict[str, Any],
        conflict_columns: list[str],
        update_columns: list[str],
    ) -> dict[str, Any]:
        """Insert one row, or update ``update_columns`` on conflict.

        Returns the stored row.
        """
        columns = list(values)
        col_list = ", ".join(columns)
        placeholders = ", ".join(["%s"] * len(columns))
        conflict_list = ", ".join(conflict_columns)
        set_clauses = ", ".join(f"{c} = EXCLUDED.{c}" for c in update_columns)
        # Always refresh timestamps on update
        set_clauses += ", updated_at = NOW(), last_synced_at = NOW()"

        sql = (
            f"INSERT INTO {table} ({col_list}) VALUES ({placeholders}) "
            f"ON CONFLICT ({conflict_list}) DO UPDATE SET {set_clauses} "
            f"RETURNING *"
        )
        cur.execute(sql, [values[c] for c in columns])
        return cur.fetchone()

    # ------------------------------------------------------------------
    # Sync run tracking
    # ------------------------------------------------------------------

    def record_run_start(self, job: str, metadata: Optional[dict] = None) -> str:
        """Insert a new sync_runs row with status RUNNING. Returns the run id."""
        run_id = str(uuid.uuid4())
        with self.transaction() as cur:
            cur.execute(
                """INSERT INTO sync_runs (id, job, status, run_metadata)
                   VALUES (%s, %s, 'RUNNING', %s)""",
                (run_id, job, psycopg2.extras.Json(metadata or {})),
            )
        return run_id

    def record_run_end(
        self,
        run_id: str,
        status: str,
        records_upserted: int = 0,
        error_message: Optional[str] = None,
        error_detail: Optional[dict] = None,
    ) -> None:
        """Finalise a sync_runs row."""
        with self.transaction() as cur:
            cur.execute(
                """UPDATE sync_runs
                   SET status = %s,
                       finished_at = NOW(),
                       records_upserted = %s,
                       error_message = %s,
                       error_detail = %s
                   WHERE id = %s""",
                (
                    status,
                    records_upserted,
                    error_message,
                    psycopg2.extras.Json(error_detail) if error_detail else None,
                    run_id,
                ),
            )

    def get_recent_runs(self, job: Optional[str] = None, limit: int = 10) -> list[dict[str, Any]]:
        """Fetch recent sync runs for status display."""
        sql = (
            "SELECT id, job, status, started_at, finished_at, "
            "records_upserted, error_message FROM sync_runs"
        )
        params: list[Any] = []
        if job:
            sql += " WHERE job = %s"
            params.append(job)
        sql += " ORDER BY started_at DESC LIMIT %s"
        params.append(limit)
        with self.transaction() as cur:
            cur.execute(sql, params)
            return [dict(row) for row in cur.fetchall()]
