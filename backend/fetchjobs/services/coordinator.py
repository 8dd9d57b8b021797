from typing import Dict, List, Optional

from fetchjobs.db.results_repo import ResultStore
from fetchjobs.schemas.jobs import JobRecord, Outcome
from fetchjobs.services.queue import JobQueue
from fetchjobs.websocket.manager import manager

SUPPORTED_VERBS = {"get", "post"}


class JobValidationError(ValueError):
    """A submission rejected before anything was enqueued."""


class JobCoordinator:
    """Submit and lookup entry points shared by every front end.

    ``submit`` returns as soon as the job row exists and the id is queued;
    ``lookup`` only reads whatever outcome is stored at call time.
    """

    def __init__(self, queue: JobQueue, store: ResultStore) -> None:
        self.queue = queue
        self.store = store

    async def submit(
        self, verb: str, url: str, params: Optional[Dict[str, str]] = None
    ) -> int:
        verb = (verb or "").strip().lower()
        url = (url or "").strip()
        if verb not in SUPPORTED_VERBS:
            raise JobValidationError(f"unsupported method '{verb}', expected get or post")
        if not url:
            raise JobValidationError("a url is required")
        if verb == "post" and not params:
            raise JobValidationError("A post request must include a params object.")

        job_id = await self.queue.enqueue(verb, url, params or None)
        await manager.emit_log("info", f"job queued {job_id} ({verb} {url})")
        return job_id

    async def lookup(self, job_id: int) -> Outcome:
        return await self.store.read(job_id)

    async def describe(self, job_id: int) -> Optional[JobRecord]:
        return await self.queue.fetch_job(job_id)

    async def list_jobs(self, limit: int = 200) -> List[JobRecord]:
        return await self.queue.fetch_jobs(limit)

    async def drain(self) -> None:
        await self.queue.join()
