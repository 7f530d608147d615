# File: neoscout/discovery.py
"""neoscout.discovery: merges sitemap, homepage and crawl results into one DiscoveredSet."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from neoscout.config import ScoutConfig
from neoscout.crawler.crawler import BoundedCrawler
from neoscout.crawler.fetcher import Fetcher, FetchError
from neoscout.crawler.link_extractor import extract_links
from neoscout.crawler.models import DiscoveredSet, Origin, PageData
from neoscout.logger import logger
from neoscout.parser.sitemap_parser import read_sitemap

__all__ = ["DiscoveryEngine", "DiscoveryResult", "fallback_urls"]

SITEMAP_PATH = "sitemap.xml"
FALLBACK_PATH = "index.html"


@dataclass(slots=True)
class DiscoveryResult:
    """Outcome of a discovery run.

    ``low_confidence`` is set when no source produced anything and the set
    holds only the synthesized fallback URLs.
    """

    discovered: DiscoveredSet
    low_confidence: bool = False
    sources: Dict[str, int] = field(default_factory=dict)
    homepage: Optional[PageData] = None


def fallback_urls(origin: Origin) -> list[str]:
    """Minimal URL set used when every discovery source came back empty."""
    return [origin.homepage, origin.url_for(FALLBACK_PATH)]


class DiscoveryEngine:
    """Builds the canonical DiscoveredSet of a site from several partial sources."""

    def __init__(self, config: ScoutConfig, fetcher: Fetcher) -> None:
        self.config = config
        self.fetcher = fetcher
        self.origin = config.origin

    async def discover(self) -> DiscoveryResult:
        """Sitemap, then homepage, then bounded crawl; fallback if all are empty."""
        logger.info("Discovering site structure of %s", self.origin)
        discovered = DiscoveredSet(self.origin)

        await self.read_sitemap(discovered)
        homepage = await self.read_homepage(discovered)
        await self.crawl(discovered, homepage)

        low_confidence = False
        if not len(discovered):
            logger.warning("No URLs discovered for %s, falling back to the homepage", self.origin)
            discovered.merge(fallback_urls(self.origin), source="fallback")
            low_confidence = True

        logger.info(
            "Found %d unique URLs: %d pages, %d assets",
            len(discovered),
            len(discovered.pages()),
            len(discovered.assets()),
        )
        return DiscoveryResult(
            discovered=discovered,
            low_confidence=low_confidence,
            sources=dict(discovered.source_counts),
            homepage=homepage,
        )

    async def read_sitemap(self, discovered: DiscoveredSet) -> int:
        """Merge URLs from /sitemap.xml and, one level deep, from a sitemap index."""
        sitemap_url = self.origin.url_for(SITEMAP_PATH)
        body = await self._get_optional(sitemap_url, "sitemap")
        if body is None:
            return 0
        sitemap = read_sitemap(body)
        added = discovered.merge(sitemap.urls, source="sitemap")
        for nested_url in sorted(sitemap.sitemaps):
            if not self.origin.owns(nested_url):
                continue
            nested = await self._get_optional(nested_url, "nested sitemap")
            if nested is not None:
                added += discovered.merge(read_sitemap(nested).urls, source="sitemap")
        if added:
            logger.info("Found sitemap.xml with %d URLs", added)
        return added

    async def read_homepage(self, discovered: DiscoveredSet) -> Optional[PageData]:
        """Fetch the homepage, merge it and every link it references."""
        try:
            result = await self.fetcher.fetch(self.origin.homepage)
        except FetchError as exc:
            logger.warning("Homepage unavailable: %s", exc)
            return None
        page = PageData(result.url, result.text())
        discovered.add(self.origin.homepage, source="homepage")
        added = discovered.merge(extract_links(page.content, self.origin, base_url=page.url), source="homepage")
        logger.debug("Homepage contributed %d URLs", added)
        return page

    async def crawl(self, discovered: DiscoveredSet, homepage: Optional[PageData] = None) -> int:
        """Bounded crawl from the homepage; failures only reduce what is found."""
        crawler = BoundedCrawler(self.config, self.fetcher, discovered)
        return await crawler.crawl(seed=homepage)

    async def _get_optional(self, url: str, label: str) -> Optional[bytes]:
        try:
            result = await self.fetcher.fetch(url)
        except FetchError as exc:
            logger.info("No %s at %s (%s)", label, url, exc.kind)
            return None
        return result.body or None
