import json
import sqlite3
from typing import Any, Dict, List, Optional

from fetchjobs.db.connection import Database
from fetchjobs.schemas.jobs import JobRecord
from fetchjobs.utils.time import utc_now


def _row_to_job(row: Any) -> JobRecord:
    return JobRecord(
        job_id=row["job_id"],
        verb=row["verb"],
        url=row["url"],
        params=json.loads(row["params_json"]) if row["params_json"] else {},
        status=row["status"],
        attempts=row["attempts"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class JobsRepo:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def create_job(
        self, verb: str, url: str, params: Optional[Dict[str, str]]
    ) -> int:
        now = utc_now()
        cur = await self._db.execute(
            """
            insert into jobs (
              verb, url, params_json, status, attempts, created_at, updated_at
            )
            values (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                verb,
                url,
                json.dumps(params) if params else None,
                "queued",
                0,
                now,
                now,
            ),
        )
        return int(cur.lastrowid)

    async def update_job(self, job_id: int, **fields: Any) -> None:
        if not fields:
            return
        fields["updated_at"] = utc_now()
        columns = []
        values: List[Any] = []
        for key, value in fields.items():
            columns.append(f"{key} = ?")
            values.append(value)
        values.append(job_id)
        await self._db.execute(
            f"update jobs set {', '.join(columns)} where job_id = ?",
            tuple(values),
        )

    async def claim_job(self, job_id: int) -> bool:
        """Move a queued job to running; False if it was not queued."""
        cur = await self._db.execute(
            """
            update jobs
            set status = 'running', attempts = attempts + 1, updated_at = ?
            where job_id = ? and status = 'queued'
            """,
            (utc_now(), job_id),
        )
        return cur.rowcount == 1

    async def requeue_unfinished(self) -> List[int]:
        now = utc_now()

        def _requeue(conn: sqlite3.Connection) -> List[int]:
            rows = conn.execute(
                """
                select job_id from jobs
                where status in ('queued', 'running')
                order by job_id
                """
            ).fetchall()
            conn.execute(
                "update jobs set status = 'queued', updated_at = ? where status = 'running'",
                (now,),
            )
            return [row["job_id"] for row in rows]

        return await self._db.transaction(_requeue)

    async def fetch_job(self, job_id: int) -> Optional[JobRecord]:
        row = await self._db.fetchone("select * from jobs where job_id = ?", (job_id,))
        if row is None:
            return None
        return _row_to_job(row)

    async def fetch_jobs(self, limit: int = 200) -> List[JobRecord]:
        rows = await self._db.fetchall(
            "select * from jobs order by job_id desc limit ?", (limit,)
        )
        return [_row_to_job(row) for row in rows]
