"""Download an eligibility PDF with retries and decode it to text.

The insurer portal often answers the first requests for a freshly generated
document with an HTML placeholder or an error; every failure short of the
final attempt is treated as "not ready yet".

Usage::

    async with DocumentTextSource(settings.fetch) as source:
        text = await source.fetch_and_extract_text(url)
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

import httpx

from copay_autofill.core.config import FetchConfig
from copay_autofill.documents.pdf_text import decode_pdf_text, is_pdf_bytes
from copay_autofill.exceptions import (
    DocumentFetchExhausted,
    DocumentFetchTimeout,
    DocumentFormatUnavailable,
)

log = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def cache_bust(url: str, now_ms: Optional[int] = None) -> str:
    """Set ``_tm=<base36 epoch ms>`` on *url* so proxies never serve a stale copy."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return str(httpx.URL(url).copy_set_param("_tm", to_base36(stamp)))


class DocumentTextSource:
    """Fetch eligibility PDFs over HTTP and return their text.

    Args:
        config: Retry budget and timeouts.
        client: Optional shared ``httpx.AsyncClient``. When omitted the source
            creates and owns one.
        sleep: Awaitable used between attempts (injectable for tests).
    """

    def __init__(
        self,
        config: Optional[FetchConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._config = config or FetchConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True)
        self._sleep = sleep

    async def __aenter__(self) -> DocumentTextSource:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_and_extract_text(self, url: str) -> str:
        """Fetch *url* until it yields a decodable PDF, then return its text.

        Raises:
            DocumentFormatUnavailable: The last attempt returned non-PDF bytes.
            DocumentFetchTimeout: The last attempt timed out.
            DocumentFetchExhausted: The last attempt failed any other way.
        """
        cfg = self._config
        delay = cfg.initial_delay_seconds
        last_error: Exception | None = None

        for attempt in range(1, cfg.attempts + 1):
            target = cache_bust(url) if cfg.cache_bust else url
            try:
                data = await self._get_bytes(target)
                if not is_pdf_bytes(data):
                    raise DocumentFormatUnavailable(
                        "Response is not a PDF yet", attempts=attempt, head=data[:16]
                    )
                text = decode_pdf_text(data)
                log.info("Fetched eligibility PDF on attempt %d/%d", attempt, cfg.attempts)
                return text
            except (httpx.HTTPError, asyncio.TimeoutError, DocumentFormatUnavailable) as e:
                last_error = e
                log.warning(
                    "Document fetch retry %d/%d: %s (wait=%.2fs)",
                    attempt,
                    cfg.attempts,
                    str(e) or type(e).__name__,
                    delay if attempt < cfg.attempts else 0.0,
                )
                if attempt < cfg.attempts:
                    await self._sleep(delay)
                    delay *= cfg.backoff

        raise self._exhausted(last_error) from last_error

    async def _get_bytes(self, url: str) -> bytes:
        timeout = self._config.timeout_per_attempt_seconds
        response = await asyncio.wait_for(
            self._client.get(url, timeout=httpx.Timeout(timeout)), timeout=timeout
        )
        response.raise_for_status()
        return response.content

    def _exhausted(self, last_error: Exception | None) -> Exception:
        attempts = self._config.attempts
        if isinstance(last_error, DocumentFormatUnavailable) and not is_pdf_bytes(last_error.head):
            return DocumentFormatUnavailable(
                f"No valid PDF after {attempts} attempts: {last_error}",
                attempts=attempts,
                head=last_error.head,
            )
        if isinstance(last_error, (httpx.TimeoutException, asyncio.TimeoutError)):
            return DocumentFetchTimeout(
                f"Document fetch timed out after {attempts} attempts", attempts=attempts
            )
        return DocumentFetchExhausted(
            f"Document fetch failed after {attempts} attempts: {last_error}", attempts=attempts
        )
