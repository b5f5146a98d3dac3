"""Tests for upstream fetching and the analysis pool."""

from __future__ import annotations

import asyncio
import threading

import httpx
import pytest

from coronascope.config import Settings
from coronascope.errors import UpstreamFetchError
from coronascope.imaging.pool import AnalysisPool
from coronascope.upstream import SourceFetcher, build_source_url


class TestBuildSourceUrl:
    def test_default_date(self) -> None:
        settings = Settings()
        assert build_source_url(settings) == "https://suntoday.lmsal.com/sdomedia/SunInTime/2025/12/11/f0193.jpg"

    def test_explicit_date_and_template(self) -> None:
        settings = Settings(source_url_template="https://mirror.test/{date}/latest.png")
        assert build_source_url(settings, "2024/02/29") == "https://mirror.test/2024/02/29/latest.png"


class TestSourceFetcher:
    async def test_returns_content_and_sends_user_agent(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"jpeg-bytes")

        fetcher = SourceFetcher(Settings(user_agent="test-agent/1.0"), transport=httpx.MockTransport(handler))
        try:
            fetched = await fetcher.fetch("https://archive.test/a.jpg")
        finally:
            await fetcher.aclose()

        assert fetched.content == b"jpeg-bytes"
        assert fetched.url == "https://archive.test/a.jpg"
        assert seen[0].headers["user-agent"] == "test-agent/1.0"

    async def test_follows_redirects(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "archive.test":
                return httpx.Response(302, headers={"Location": "https://cdn.archive.test/a.jpg"})
            return httpx.Response(200, content=b"moved")

        fetcher = SourceFetcher(Settings(), transport=httpx.MockTransport(handler))
        try:
            fetched = await fetcher.fetch("https://archive.test/a.jpg")
        finally:
            await fetcher.aclose()

        assert fetched.url == "https://cdn.archive.test/a.jpg"
        assert fetched.content == b"moved"

    async def test_non_success_status_raises(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(503)

        fetcher = SourceFetcher(Settings(), transport=httpx.MockTransport(handler))
        try:
            with pytest.raises(UpstreamFetchError) as exc_info:
                await fetcher.fetch("https://archive.test/a.jpg")
        finally:
            await fetcher.aclose()

        err = exc_info.value
        assert err.upstream_status == 503
        assert err.reason == "Service Unavailable"
        assert err.url == "https://archive.test/a.jpg"
        assert err.status_code == 502
        assert calls == 1

    async def test_transport_failure_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = SourceFetcher(Settings(), transport=httpx.MockTransport(handler))
        try:
            with pytest.raises(UpstreamFetchError) as exc_info:
                await fetcher.fetch("https://archive.test/a.jpg")
        finally:
            await fetcher.aclose()

        assert exc_info.value.upstream_status is None
        assert "connection refused" in exc_info.value.reason
        assert exc_info.value.to_payload()["upstream_status"] is None


class TestAnalysisPool:
    async def test_runs_function_in_thread(self) -> None:
        pool = AnalysisPool(Settings(max_concurrent=1))
        try:
            name = await pool.run(lambda: threading.current_thread().name)
        finally:
            pool.shutdown()
        assert name.startswith("coronal-analysis")

    async def test_times_out_when_saturated(self) -> None:
        pool = AnalysisPool(Settings(max_concurrent=1), queue_timeout=0.05)
        release = threading.Event()
        try:
            busy = asyncio.create_task(pool.run(release.wait, 5.0))
            for _ in range(100):
                if pool.active_count:
                    break
                await asyncio.sleep(0.01)
            assert pool.active_count == 1

            with pytest.raises(TimeoutError):
                await pool.run(int, "1")
            assert pool.queue_depth == 0

            release.set()
            assert await busy is True
        finally:
            release.set()
            pool.shutdown()
        assert pool.active_count == 0

    async def test_failed_run_frees_its_slot(self) -> None:
        pool = AnalysisPool(Settings(max_concurrent=1), queue_timeout=0.5)
        try:
            with pytest.raises(ValueError, match="invalid literal"):
                await pool.run(int, "not a number")
            assert pool.active_count == 0
            assert pool.queue_depth == 0
            assert await pool.run(int, "7") == 7
        finally:
            pool.shutdown()
