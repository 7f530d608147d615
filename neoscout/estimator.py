# File: neoscout/estimator.py
"""neoscout.estimator: site size estimation from metadata-only (HEAD) probes."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Dict, Iterable, Optional, Set, Tuple

from neoscout.aggregator import SizeReport
from neoscout.config import DEFAULT_SIZE
from neoscout.crawler.fetcher import Fetcher, FetchError
from neoscout.crawler.models import UrlRecord
from neoscout.logger import logger

__all__ = ["SizeEstimator", "DEFAULT_SIZE"]

PROGRESS_EVERY = 10


class SizeEstimator:
    """Resolves the byte length of every URL without downloading bodies.

    A URL whose server reports no Content-Length, or whose probe fails or
    times out, is counted with ``default_size``. That is an approximation
    the report exposes through ``SizeReport.defaulted``.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        concurrency: int = 8,
        default_size: int = DEFAULT_SIZE,
        timeout: Optional[float] = None,
    ) -> None:
        self.fetcher = fetcher
        self.default_size = default_size
        self.timeout = timeout
        self.semaphore = asyncio.Semaphore(concurrency)
        self._done = 0

    async def probe(self, url: str) -> Tuple[int, bool]:
        """Return ``(size, defaulted)`` for *url*; never raises on network errors."""
        async with self.semaphore:
            try:
                result = await asyncio.wait_for(self.fetcher.head(url), timeout=self.timeout)
            except (FetchError, asyncio.TimeoutError) as exc:
                logger.debug("Probe failed for %s: %s", url, exc)
                return self.default_size, True
        length = result.content_length
        if length is None or length < 0:
            return self.default_size, True
        return length, False

    async def estimate(self, records: Iterable[UrlRecord], *, low_confidence: bool = False) -> SizeReport:
        """Probe all *records* concurrently and build the SizeReport."""
        by_url = {r.url: r for r in records}
        urls = sorted(by_url)
        total = len(urls)
        sizes: Dict[str, int] = {}
        defaulted: Set[str] = set()
        self._done = 0
        logger.info("Calculating site size (checking %d files)", total)

        async def _unit(url: str) -> None:
            size, was_defaulted = await self.probe(url)
            sizes[url] = size
            if was_defaulted:
                defaulted.add(url)
            self._done += 1
            if self._done % PROGRESS_EVERY == 0 or self._done == total:
                logger.info("Progress: %d/%d URLs processed (%d%%)", self._done, total, self._done * 100 // total)

        await asyncio.gather(*(_unit(url) for url in urls))

        if defaulted:
            logger.info("%d URLs reported no size; %d bytes assumed for each", len(defaulted), self.default_size)
        return SizeReport(
            sizes=dict(sizes),
            records=tuple(replace(by_url[url], size=sizes[url]) for url in urls),
            defaulted=frozenset(defaulted),
            default_size=self.default_size,
            low_confidence=low_confidence,
        )
