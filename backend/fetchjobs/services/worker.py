import asyncio
import sqlite3
import time
from typing import Any, Dict, List

from fetchjobs.core.config import FETCH_WORKERS
from fetchjobs.core.logging import logger
from fetchjobs.db.results_repo import ResultStore
from fetchjobs.schemas.jobs import JobRecord, Outcome
from fetchjobs.services.fetcher import HttpFetcher
from fetchjobs.services.queue import JobQueue
from fetchjobs.websocket.manager import manager

DEQUEUE_RETRY_SEC = 0.5


class FetchWorker:
    """Runs one job to a stored outcome; never raises for execution errors."""

    def __init__(self, queue: JobQueue, store: ResultStore, fetcher: HttpFetcher) -> None:
        self.queue = queue
        self.store = store
        self.fetcher = fetcher

    async def process(self, job: JobRecord) -> Outcome:
        try:
            existing = await self.store.read(job.job_id)
        except sqlite3.Error as exc:
            return await self._record_store_failure(job, exc)
        if existing.is_terminal:
            # Redelivered after a restart; the first run already finished it.
            await self._finish(job, existing)
            return existing

        try:
            outcome = await self.fetcher.fetch(job)
        except Exception as exc:
            logger.exception("fetch crashed on job %s", job.job_id)
            outcome = Outcome.failure(None, f"fetch failed: {exc}")
        try:
            await self.store.write(job.job_id, outcome)
        except sqlite3.Error as exc:
            return await self._record_store_failure(job, exc)
        await self._finish(job, outcome)
        return outcome

    async def _finish(self, job: JobRecord, outcome: Outcome) -> None:
        status = "completed" if outcome.state == "success" else "failed"
        try:
            await self.queue.mark(job.job_id, status)
        except sqlite3.Error as exc:
            logger.error("could not mark job %s %s: %s", job.job_id, status, exc)
        if status == "completed":
            await manager.emit_log("info", f"job {job.job_id} completed")
        else:
            await manager.emit_log("warn", f"job {job.job_id} failed: {outcome.error}")
        await manager.job_status(job.job_id, status, outcome.status_code)

    async def _record_store_failure(self, job: JobRecord, exc: Exception) -> Outcome:
        await manager.emit_log("error", f"job {job.job_id} store failure: {exc}")
        fallback = Outcome.failure(None, f"store failure: {exc}")
        try:
            await self.store.write(job.job_id, fallback)
        except sqlite3.Error as retry_exc:
            await manager.emit_log(
                "error", f"job {job.job_id} lost, error record not written: {retry_exc}"
            )
            return Outcome.pending()
        await self._finish(job, fallback)
        return fallback


class WorkerPool:
    def __init__(
        self,
        queue: JobQueue,
        worker: FetchWorker,
        count: int = FETCH_WORKERS,
        retry_delay_sec: float = DEQUEUE_RETRY_SEC,
    ) -> None:
        self.queue = queue
        self.worker = worker
        self.count = count
        self.retry_delay_sec = retry_delay_sec
        self.active_jobs: set[int] = set()
        self.started_at = time.time()
        self._tasks: List[asyncio.Task] = []

    async def start(self) -> None:
        for worker_id in range(self.count):
            self._tasks.append(asyncio.create_task(self.worker_loop(worker_id)))

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

    async def worker_loop(self, worker_id: int) -> None:
        await manager.emit_log("info", f"worker {worker_id} ready")
        while True:
            try:
                job = await self.queue.dequeue()
            except Exception as exc:
                await manager.emit_log("error", f"worker {worker_id} dequeue failed: {exc}")
                await asyncio.sleep(self.retry_delay_sec)
                continue
            self.active_jobs.add(job.job_id)
            try:
                await self.worker.process(job)
            except Exception:
                logger.exception("worker %s crashed on job %s", worker_id, job.job_id)
            finally:
                self.active_jobs.discard(job.job_id)
                self.queue.task_done()

    def snapshot(self) -> Dict[str, Any]:
        return {
            "uptime_sec": int(time.time() - self.started_at),
            "queue_depth": self.queue.qsize(),
            "workers": {
                "active": len(self.active_jobs),
                "idle": max(self.count - len(self.active_jobs), 0),
            },
        }
