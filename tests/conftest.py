"""Shared test fixtures."""

from __future__ import annotations

import httpx
import pytest

from fetchjobs.db.connection import Database
from fetchjobs.db.jobs_repo import JobsRepo
from fetchjobs.db.results_repo import ResultStore
from fetchjobs.services.coordinator import JobCoordinator
from fetchjobs.services.fetcher import HttpFetcher
from fetchjobs.services.queue import JobQueue
from fetchjobs.services.worker import FetchWorker


def upstream(request: httpx.Request) -> httpx.Response:
    """Fake remote server used in place of the network."""
    if request.url.host == "unreachable.test":
        raise httpx.ConnectError("name resolution failed", request=request)

    path = request.url.path
    if path == "/ok":
        return httpx.Response(200, content=b"hello", headers={"content-type": "text/plain"})
    if path == "/empty":
        return httpx.Response(200, content=b"", headers={"content-type": "text/plain"})
    if path == "/html":
        return httpx.Response(200, content=b"<!DOCTYPE html><html><body>hi</body></html>")
    if path == "/bare":
        return httpx.Response(200, content=b"\x00\x01")
    if path == "/created":
        return httpx.Response(
            201, content=b'{"id": 1}', headers={"content-type": "application/json"}
        )
    if path == "/echo":
        body = request.url.query if request.method == "GET" else request.content
        return httpx.Response(
            200,
            content=body,
            headers={
                "content-type": "text/plain",
                "x-method": request.method,
                "x-request-type": request.headers.get("content-type", ""),
            },
        )
    if path == "/slow":
        raise httpx.ReadTimeout("timed out", request=request)
    if path.startswith("/item/"):
        return httpx.Response(
            200, content=path.encode(), headers={"content-type": "text/plain"}
        )
    return httpx.Response(404, content=b"not found", headers={"content-type": "text/plain"})


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def transport() -> httpx.MockTransport:
    return httpx.MockTransport(upstream)


@pytest.fixture
async def database(anyio_backend, tmp_path):
    db = Database(str(tmp_path / "jobs.db"))
    await db.connect()
    yield db
    await db.close()


@pytest.fixture
async def fetcher(anyio_backend, transport):
    client = HttpFetcher(transport=transport)
    yield client
    await client.aclose()


@pytest.fixture
def jobs_repo(database) -> JobsRepo:
    return JobsRepo(database)


@pytest.fixture
def queue(jobs_repo) -> JobQueue:
    return JobQueue(jobs_repo)


@pytest.fixture
def store(database) -> ResultStore:
    return ResultStore(database)


@pytest.fixture
def worker(queue, store, fetcher) -> FetchWorker:
    return FetchWorker(queue, store, fetcher)


@pytest.fixture
def coordinator(queue, store) -> JobCoordinator:
    return JobCoordinator(queue, store)
