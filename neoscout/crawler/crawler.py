# === FILE: neoscout/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import time
from typing import List, Optional, Set, Tuple

from neoscout.config import ScoutConfig
from neoscout.crawler.classifier import is_page
from neoscout.crawler.fetcher import Fetcher, FetchError
from neoscout.crawler.link_extractor import extract_links
from neoscout.crawler.models import DiscoveredSet, PageData
from neoscout.logger import logger
from neoscout.utils import normalize_url

__all__ = ("BoundedCrawler",)


class BoundedCrawler:
    """Breadth-first crawl of one origin, limited by depth and page count.

    The homepage is depth 0. A page at depth ``d`` is fetched and its links
    merged only while ``d < crawl_depth``; only page-class links are followed.
    A URL seen once is never queued again, so link cycles cannot loop.
    """

    def __init__(self, config: ScoutConfig, fetcher: Fetcher, discovered: DiscoveredSet) -> None:
        self.config = config
        self.fetcher = fetcher
        self.discovered = discovered
        self.origin = discovered.origin
        self.concurrency: int = config.concurrency
        self.visited: Set[str] = set()
        self.fetched: List[str] = []
        self.failed: List[str] = []
        self._merge_lock = asyncio.Lock()

    async def crawl(self, seed: Optional[PageData] = None) -> int:
        """Run the crawl; return how many new URLs it merged.

        *seed* is the already fetched homepage; when given it is not fetched again.
        """
        if self.config.crawl_depth == 0:
            return 0
        logger.info("Crawling %s (depth %d)", self.origin, self.config.crawl_depth)
        start = time.monotonic()
        before = len(self.discovered)

        queue: asyncio.Queue[Tuple[str, int]] = asyncio.Queue()
        root = normalize_url(self.origin.homepage, self.origin)
        self.visited.add(root)
        if seed is not None:
            self.fetched.append(root)
            await self._follow(seed, 0, queue)
        else:
            await queue.put((root, 0))

        workers = [asyncio.create_task(self._worker(queue)) for _ in range(self.concurrency)]
        await queue.join()
        for w in workers:
            w.cancel()
        await asyncio.gather(*workers, return_exceptions=True)

        added = len(self.discovered) - before
        duration = time.monotonic() - start
        logger.info(
            "Crawl finished: %d pages fetched, %d new URLs in %.2f s",
            len(self.fetched),
            added,
            duration,
        )
        return added

    async def _worker(self, queue: asyncio.Queue[Tuple[str, int]]) -> None:
        while True:
            try:
                url, depth = await queue.get()
            except asyncio.CancelledError:
                break
            try:
                if len(self.fetched) >= self.config.max_pages:
                    continue
                page = await self._fetch(url)
                if page is not None:
                    await self._follow(page, depth, queue)
            finally:
                queue.task_done()

    async def _fetch(self, url: str) -> Optional[PageData]:
        self.fetched.append(url)
        try:
            result = await self.fetcher.fetch(url)
        except FetchError as exc:
            self.failed.append(url)
            logger.debug("Crawl skipped %s: %s", url, exc)
            return None
        if not result.is_html:
            return None
        return PageData(result.url, result.text())

    async def _follow(self, page: PageData, depth: int, queue: asyncio.Queue[Tuple[str, int]]) -> None:
        content = page.content if isinstance(page.content, str) else page.content.decode("utf-8", "replace")
        links = extract_links(content, self.origin, base_url=page.url)
        async with self._merge_lock:
            self.discovered.merge(links, source="crawl")
            for link in sorted(links):
                if link in self.visited:
                    continue
                self.visited.add(link)
                if depth + 1 < self.config.crawl_depth and is_page(link):
                    await queue.put((link, depth + 1))
