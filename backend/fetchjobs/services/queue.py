import asyncio
from typing import Dict, List, Optional

from fetchjobs.db.jobs_repo import JobsRepo
from fetchjobs.schemas.jobs import JobRecord


class JobQueue:
    """FIFO job queue persisted in the ``jobs`` table.

    Ids come from the table's autoincrement key, so they are assigned inside
    the insert and never reused. The in-process ``asyncio.Queue`` only holds
    ids; a job belongs to whichever consumer wins ``claim_job``. Jobs left
    unfinished by a previous process are put back by ``recover``, which makes
    delivery at-least-once.
    """

    def __init__(self, jobs_repo: JobsRepo) -> None:
        self.jobs_repo = jobs_repo
        self._pending: asyncio.Queue[int] = asyncio.Queue()

    async def enqueue(
        self, verb: str, url: str, params: Optional[Dict[str, str]] = None
    ) -> int:
        job_id = await self.jobs_repo.create_job(verb, url, params)
        await self._pending.put(job_id)
        return job_id

    async def dequeue(self) -> JobRecord:
        while True:
            job_id = await self._pending.get()
            try:
                job = await self.jobs_repo.fetch_job(job_id)
                claimed = job is not None and await self.jobs_repo.claim_job(job_id)
            except Exception:
                # The claim is the only write, so the row is still queued; hand the id back.
                self._pending.put_nowait(job_id)
                self._pending.task_done()
                raise
            if claimed:
                return job.model_copy(
                    update={"status": "running", "attempts": job.attempts + 1}
                )
            self._pending.task_done()

    def task_done(self) -> None:
        self._pending.task_done()

    async def join(self) -> None:
        await self._pending.join()

    def qsize(self) -> int:
        return self._pending.qsize()

    async def recover(self) -> List[int]:
        job_ids = await self.jobs_repo.requeue_unfinished()
        for job_id in job_ids:
            await self._pending.put(job_id)
        return job_ids

    async def mark(self, job_id: int, status: str) -> None:
        await self.jobs_repo.update_job(job_id, status=status)

    async def fetch_job(self, job_id: int) -> Optional[JobRecord]:
        return await self.jobs_repo.fetch_job(job_id)

    async def fetch_jobs(self, limit: int = 200) -> List[JobRecord]:
        return await self.jobs_repo.fetch_jobs(limit)
