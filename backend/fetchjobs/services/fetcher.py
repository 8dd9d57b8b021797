"""Outbound HTTP for fetch jobs."""

from typing import Optional

import httpx

from fetchjobs.core.config import (
    FETCH_CONNECT_TIMEOUT_SEC,
    FETCH_TIMEOUT_SEC,
    FETCH_USER_AGENT,
)
from fetchjobs.core.logging import logger
from fetchjobs.schemas.jobs import JobRecord, Outcome

SUCCESS_STATUSES = {
    "get": {200},
    "post": {200, 201},
}
FALLBACK_CONTENT_TYPE = "application/octet-stream"


def resolve_content_type(header: Optional[str], body: bytes) -> str:
    """Use the response header, or sniff HTML when the server sent none."""
    if header:
        return header
    if b"<!doctype" in body[:1024].lower():
        return "text/html"
    return FALLBACK_CONTENT_TYPE


class HttpFetcher:
    """Performs a job's single HTTP attempt and classifies what came back."""

    def __init__(
        self,
        *,
        timeout_seconds: float = FETCH_TIMEOUT_SEC,
        connect_timeout_seconds: float = FETCH_CONNECT_TIMEOUT_SEC,
        user_agent: str = FETCH_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds, connect=connect_timeout_seconds),
            headers={"User-Agent": user_agent},
            transport=transport,
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send(self, job: JobRecord) -> httpx.Response:
        if job.verb == "post":
            return await self._client.post(job.url, data=job.params)
        # Params are stored for GET jobs but never sent, not even as a query string.
        return await self._client.get(job.url)

    async def fetch(self, job: JobRecord) -> Outcome:
        try:
            response = await self._send(job)
        except httpx.TimeoutException as exc:
            logger.warning("Timeout fetching %s for job %s", job.url, job.job_id)
            return Outcome.failure(None, f"transport failure: timeout ({type(exc).__name__})")
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            # Covers connection and protocol errors, redirect loops and undecodable bodies.
            logger.warning("Transport error fetching %s for job %s: %s", job.url, job.job_id, exc)
            return Outcome.failure(None, f"transport failure: {exc}")

        if response.status_code not in SUCCESS_STATUSES.get(job.verb, {200}):
            return Outcome.failure(
                response.status_code,
                f"upstream returned status {response.status_code}",
            )
        body = response.content
        return Outcome.success(
            body, resolve_content_type(response.headers.get("content-type"), body)
        )
