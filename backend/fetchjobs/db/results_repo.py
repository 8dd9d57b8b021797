from typing import Any

from fetchjobs.db.connection import Database
from fetchjobs.schemas.jobs import Outcome
from fetchjobs.utils.time import utc_now


def _row_to_outcome(row: Any) -> Outcome:
    if row["state"] == "success":
        return Outcome.success(bytes(row["body"] or b""), row["content_type"])
    return Outcome.failure(row["status_code"], row["error"] or "")


class ResultStore:
    """Terminal outcomes keyed by job id."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def write(self, job_id: int, outcome: Outcome) -> None:
        if not outcome.is_terminal:
            raise ValueError("pending is not a storable outcome")
        await self._db.execute(
            """
            insert or replace into outcomes (
              job_id, state, body, content_type, status_code, error, created_at
            )
            values (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                job_id,
                outcome.state,
                outcome.body,
                outcome.content_type,
                outcome.status_code,
                outcome.error,
                utc_now(),
            ),
        )

    async def read(self, job_id: int) -> Outcome:
        row = await self._db.fetchone(
            "select * from outcomes where job_id = ?", (job_id,)
        )
        if row is None:
            return Outcome.pending()
        return _row_to_outcome(row)

    async def exists(self, job_id: int) -> bool:
        row = await self._db.fetchone(
            "select 1 from outcomes where job_id = ?", (job_id,)
        )
        return row is not None
