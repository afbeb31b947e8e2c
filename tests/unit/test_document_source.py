"""Tests for the retrying eligibility document downloader."""

from __future__ import annotations

import httpx
import pytest

from copay_autofill.core.config import FetchConfig
from copay_autofill.documents import pdf_text
from copay_autofill.documents.source import DocumentTextSource, cache_bust, to_base36
from copay_autofill.exceptions import (
    DocumentFetchExhausted,
    DocumentFetchTimeout,
    DocumentFormatUnavailable,
)
from tests.fakes.pdf_factory import make_pdf

URL = "https://portal.example.test/doc.pdf?id=7"
PDF = make_pdf([["PCP[IN NETWORK]:$20.00"]])


class _Sleeps:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def _source(responses, **config):
    """Serve *responses* in order; each is bytes, an int status or an exception."""
    queue = list(responses)
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        if isinstance(item, int):
            return httpx.Response(item)
        return httpx.Response(200, content=item)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    sleeps = _Sleeps()
    source = DocumentTextSource(FetchConfig(**config), client=client, sleep=sleeps)
    return source, requests, sleeps


class TestCacheBust:
    def test_base36(self):
        assert to_base36(0) == "0"
        assert to_base36(35) == "z"
        assert to_base36(36) == "10"

    def test_adds_tm_param_and_keeps_query(self):
        busted = httpx.URL(cache_bust(URL, now_ms=36))
        assert busted.params["_tm"] == "10"
        assert busted.params["id"] == "7"


class TestFetchAndExtract:
    @pytest.mark.asyncio
    async def test_first_attempt_success(self):
        source, requests, sleeps = _source([PDF])
        text = await source.fetch_and_extract_text(URL)
        assert text == "PCP[IN NETWORK]:$20.00"
        assert len(requests) == 1
        assert "_tm" in requests[0].url.params
        assert sleeps.delays == []

    @pytest.mark.asyncio
    async def test_retries_until_pdf_is_ready(self):
        source, requests, sleeps = _source([b"<html>building</html>", 503, PDF])
        text = await source.fetch_and_extract_text(URL)
        assert "PCP" in text
        assert len(requests) == 3
        assert sleeps.delays == pytest.approx([0.5, 0.8])

    @pytest.mark.asyncio
    async def test_cache_bust_can_be_disabled(self):
        source, requests, _ = _source([PDF], cache_bust=False)
        await source.fetch_and_extract_text(URL)
        assert str(requests[0].url) == URL

    @pytest.mark.asyncio
    async def test_format_unavailable_after_budget(self):
        source, requests, sleeps = _source([b"<html>still building</html>"], attempts=3)
        with pytest.raises(DocumentFormatUnavailable) as excinfo:
            await source.fetch_and_extract_text(URL)
        assert excinfo.value.attempts == 3
        assert excinfo.value.head.startswith(b"<html>")
        assert len(requests) == 3
        assert len(sleeps.delays) == 2

    @pytest.mark.asyncio
    async def test_timeout_on_last_attempt(self):
        timeout = httpx.ReadTimeout("slow portal")
        source, _, _ = _source([timeout], attempts=2)
        with pytest.raises(DocumentFetchTimeout):
            await source.fetch_and_extract_text(URL)

    @pytest.mark.asyncio
    async def test_http_errors_exhaust(self):
        source, requests, _ = _source([500], attempts=4)
        with pytest.raises(DocumentFetchExhausted) as excinfo:
            await source.fetch_and_extract_text(URL)
        assert not isinstance(excinfo.value, DocumentFetchTimeout)
        assert len(requests) == 4

    @pytest.mark.asyncio
    async def test_corrupt_pdf_is_exhausted_not_format(self):
        source, _, _ = _source([b"%PDF-1.4\n%broken"], attempts=2)
        with pytest.raises(DocumentFetchExhausted):
            await source.fetch_and_extract_text(URL)

    @pytest.mark.asyncio
    async def test_unexpected_decode_error_is_retried(self, monkeypatch):
        real_reader = pdf_text.PdfReader
        failures = [AttributeError("dangling object reference")]

        def flaky_reader(stream):
            if failures:
                raise failures.pop()
            return real_reader(stream)

        monkeypatch.setattr(pdf_text, "PdfReader", flaky_reader)
        source, requests, sleeps = _source([PDF])
        text = await source.fetch_and_extract_text(URL)
        assert text == "PCP[IN NETWORK]:$20.00"
        assert len(requests) == 2
        assert len(sleeps.delays) == 1

    @pytest.mark.asyncio
    async def test_owned_client_closed_on_exit(self):
        async with DocumentTextSource(FetchConfig()) as source:
            assert not source._client.is_closed
        assert source._client.is_closed
