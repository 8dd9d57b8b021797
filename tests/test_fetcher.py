from __future__ import annotations

import httpx
import pytest

from fetchjobs.schemas.jobs import JobRecord
from fetchjobs.services.fetcher import HttpFetcher, resolve_content_type


def make_job(verb: str, url: str, params: dict | None = None) -> JobRecord:
    return JobRecord(
        job_id=1,
        verb=verb,
        url=url,
        params=params or {},
        status="running",
        attempts=1,
        created_at="2026-01-01T00:00:00Z",
        updated_at="2026-01-01T00:00:00Z",
    )


class TestResolveContentType:
    def test_header_wins(self):
        assert resolve_content_type("application/json", b"<!doctype html>") == "application/json"

    def test_sniffs_html(self):
        assert resolve_content_type(None, b"<!DOCTYPE html><html></html>") == "text/html"

    def test_fallback(self):
        assert resolve_content_type("", b"{}") == "application/octet-stream"


@pytest.mark.anyio
async def test_get_success(fetcher):
    outcome = await fetcher.fetch(make_job("get", "http://example.test/ok"))
    assert outcome.state == "success"
    assert outcome.body == b"hello"
    assert outcome.content_type == "text/plain"


@pytest.mark.anyio
async def test_get_empty_body_is_success(fetcher):
    outcome = await fetcher.fetch(make_job("get", "http://example.test/empty"))
    assert outcome.state == "success"
    assert outcome.body == b""


@pytest.mark.anyio
async def test_get_does_not_forward_params(fetcher):
    outcome = await fetcher.fetch(make_job("get", "http://example.test/echo", {"a": "1"}))
    assert outcome.state == "success"
    assert outcome.body == b""


@pytest.mark.anyio
async def test_post_sends_form_body():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, content=b"made", headers={"content-type": "text/plain"})

    fetcher = HttpFetcher(transport=httpx.MockTransport(handler))
    try:
        outcome = await fetcher.fetch(
            make_job("post", "http://example.test/form", {"first": "one", "second": "two"})
        )
    finally:
        await fetcher.aclose()

    assert outcome.state == "success"
    assert outcome.body == b"made"
    assert seen[0].method == "POST"
    assert seen[0].headers["content-type"] == "application/x-www-form-urlencoded"
    assert seen[0].content == b"first=one&second=two"


@pytest.mark.anyio
async def test_created_counts_only_for_post(fetcher):
    post = await fetcher.fetch(make_job("post", "http://example.test/created", {"a": "1"}))
    get = await fetcher.fetch(make_job("get", "http://example.test/created"))
    assert post.state == "success"
    assert post.content_type == "application/json"
    assert get.state == "error"
    assert get.status_code == 201


@pytest.mark.anyio
async def test_not_found_is_upstream_error(fetcher):
    outcome = await fetcher.fetch(make_job("get", "http://example.test/missing"))
    assert outcome.state == "error"
    assert outcome.status_code == 404
    assert outcome.body is None
    assert outcome.error == "upstream returned status 404"


@pytest.mark.anyio
async def test_unreachable_host_is_transport_failure(fetcher):
    outcome = await fetcher.fetch(make_job("get", "http://unreachable.test/ok"))
    assert outcome.state == "error"
    assert outcome.status_code is None
    assert outcome.error.startswith("transport failure")


@pytest.mark.anyio
async def test_timeout_is_transport_failure(fetcher):
    outcome = await fetcher.fetch(make_job("get", "http://example.test/slow"))
    assert outcome.state == "error"
    assert outcome.status_code is None
    assert "timeout" in outcome.error


@pytest.mark.anyio
async def test_missing_content_type_is_sniffed(fetcher):
    html = await fetcher.fetch(make_job("get", "http://example.test/html"))
    raw = await fetcher.fetch(make_job("get", "http://example.test/bare"))
    assert html.content_type == "text/html"
    assert raw.content_type == "application/octet-stream"


@pytest.mark.anyio
async def test_redirect_loop_is_transport_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"location": str(request.url)})

    fetcher = HttpFetcher(transport=httpx.MockTransport(handler))
    try:
        outcome = await fetcher.fetch(make_job("get", "http://example.test/loop"))
    finally:
        await fetcher.aclose()

    assert outcome.state == "error"
    assert outcome.status_code is None
    assert outcome.error.startswith("transport failure")


@pytest.mark.anyio
async def test_undecodable_body_is_transport_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.DecodingError("bad gzip stream", request=request)

    fetcher = HttpFetcher(transport=httpx.MockTransport(handler))
    try:
        outcome = await fetcher.fetch(make_job("get", "http://example.test/gz"))
    finally:
        await fetcher.aclose()

    assert outcome.state == "error"
    assert outcome.status_code is None
