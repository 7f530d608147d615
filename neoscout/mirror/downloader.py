# neoscout/mirror/downloader.py
"""
Fetch pipeline: downloads URL bodies into the mirror directory with bounded concurrency.
"""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, Iterable

from neoscout.crawler.fetcher import Fetcher, FetchError
from neoscout.crawler.models import FetchOutcome
from neoscout.logger import logger
from neoscout.utils import url_to_local_path

__all__ = ("Downloader",)


class Downloader:
    """Writes each URL to ``url_to_local_path(url, output_dir)``.

    Every URL ends with a :class:`FetchOutcome`; network and write errors are
    recorded on that URL and never stop the rest of the batch.
    """

    def __init__(self, fetcher: Fetcher, output_dir: Path, concurrency: int = 8) -> None:
        self.fetcher = fetcher
        self.concurrency = concurrency
        self.output_dir = Path(output_dir)
        self.semaphore = asyncio.Semaphore(concurrency)

    def local_path(self, url: str) -> Path:
        return url_to_local_path(url, self.output_dir)

    async def download(self, url: str) -> FetchOutcome:
        """Fetch one URL and write its body; return the outcome."""
        async with self.semaphore:
            try:
                result = await self.fetcher.fetch(url)
            except FetchError as exc:
                logger.warning("Failed %s: %s", url, exc)
                return FetchOutcome.failed(url, str(exc))

        target = self.local_path(url)
        try:
            await asyncio.to_thread(_write, target, result.body)
        except OSError as exc:
            logger.error("Cannot write %s: %s", target, exc)
            return FetchOutcome.failed(url, f"write error: {exc}")
        logger.debug("Saved %s -> %s (%d bytes)", url, target, len(result.body))
        return FetchOutcome.fetched(url, target, len(result.body), final_url=result.url)

    async def download_all(self, urls: Iterable[str]) -> Dict[str, FetchOutcome]:
        """Download every URL concurrently; results are keyed by URL."""
        unique = sorted(set(urls))
        if not unique:
            return {}
        logger.info("Downloading %d files with %d parallel workers", len(unique), self.concurrency)
        outcomes = await asyncio.gather(*(self.download(url) for url in unique))
        return {outcome.url: outcome for outcome in outcomes}


def _write(target: Path, body: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(body)
