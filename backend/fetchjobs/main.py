from typing import Optional

import httpx
from fastapi import FastAPI

from fetchjobs.api import events, health, jobs, status
from fetchjobs.core.config import (
    BACKEND_HOST,
    BACKEND_PORT,
    DB_PATH,
    FETCH_WORKERS,
    ensure_dirs,
)
from fetchjobs.core.logging import configure_logging, logger
from fetchjobs.db.connection import Database
from fetchjobs.db.jobs_repo import JobsRepo
from fetchjobs.db.results_repo import ResultStore
from fetchjobs.services.coordinator import JobCoordinator
from fetchjobs.services.fetcher import HttpFetcher
from fetchjobs.services.queue import JobQueue
from fetchjobs.services.worker import FetchWorker, WorkerPool


def create_app(
    db_path: Optional[str] = None,
    workers: int = FETCH_WORKERS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    app = FastAPI(title="fetchjobs", version="0.1.0")

    @app.on_event("startup")
    async def on_startup() -> None:
        if db_path is None:
            ensure_dirs()
        configure_logging()
        db = Database(db_path or DB_PATH)
        await db.connect()

        queue = JobQueue(JobsRepo(db))
        store = ResultStore(db)
        fetcher = HttpFetcher(transport=transport)
        pool = WorkerPool(queue, FetchWorker(queue, store, fetcher), count=workers)

        recovered = await queue.recover()
        if recovered:
            logger.info("requeued %d unfinished jobs", len(recovered))
        await pool.start()

        app.state.db = db
        app.state.fetcher = fetcher
        app.state.pool = pool
        app.state.coordinator = JobCoordinator(queue, store)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await app.state.pool.stop()
        await app.state.fetcher.aclose()
        await app.state.db.close()

    app.include_router(health.router)
    app.include_router(status.router)
    app.include_router(jobs.router)
    app.include_router(events.router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(
        "fetchjobs.main:app",
        host=BACKEND_HOST,
        port=BACKEND_PORT,
        log_level="info",
    )


if __name__ == "__main__":
    run()
