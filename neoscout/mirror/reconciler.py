# neoscout/mirror/reconciler.py
"""
Mirror reconciliation: finds files the first download pass missed.

Stage A sweeps the downloaded HTML for assets only referenced from inner
pages. Stage B compares the live homepage's links with what is on disk.
Each stage runs once.
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Mapping, Optional, Set

from neoscout.aggregator import MirrorReport
from neoscout.crawler.fetcher import Fetcher, FetchError
from neoscout.crawler.link_extractor import extract_asset_links, extract_links
from neoscout.crawler.models import Origin
from neoscout.logger import logger
from neoscout.mirror.downloader import Downloader
from neoscout.utils import HTML_SUFFIXES, local_path_to_url, url_to_local_path

__all__ = ("MirrorReconciler",)


class MirrorReconciler:
    """Two single-pass sweeps over a finished mirror directory."""

    def __init__(self, origin: Origin, output_dir: Path) -> None:
        self.origin = origin
        self.output_dir = Path(output_dir)

    def html_files(self) -> Iterator[Path]:
        for path in sorted(self.output_dir.rglob("*")):
            if path.is_file() and path.suffix.lower() in HTML_SUFFIXES:
                yield path

    def find_deep_assets(self, already: Iterable[str], page_urls: Optional[Mapping[Path, str]] = None) -> Set[str]:
        """Stage A: asset URLs referenced by local HTML files and not in *already*.

        *page_urls* maps a saved file to the URL that served it; relative links
        resolve against that URL. Files missing from it (or all files, when it
        is not given) use the URL their path maps back to.
        """
        known = set(already)
        page_urls = page_urls or {}
        found: Set[str] = set()
        for path in self.html_files():
            try:
                content = path.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                logger.warning("Cannot read %s: %s", path, exc)
                continue
            base = page_urls.get(path) or local_path_to_url(path, self.origin, self.output_dir)
            found |= extract_asset_links(content, self.origin, base_url=base)
        return found - known

    def find_missing(self, homepage_html: str, base_url: Optional[str] = None) -> Set[str]:
        """Stage B: homepage links whose local file does not exist."""
        return {
            url
            for url in extract_links(homepage_html, self.origin, base_url=base_url)
            if not url_to_local_path(url, self.output_dir).exists()
        }

    async def reconcile(self, fetcher: Fetcher, downloader: Downloader, report: MirrorReport) -> None:
        """Run Stage A then Stage B, recording every new outcome in *report*."""
        logger.info("Checking for additional assets in downloaded pages")
        page_urls = {o.local_path: o.final_url for o in report.fetched() if o.local_path is not None}
        deep = self.find_deep_assets(report.outcomes, page_urls)
        report.deep_assets = sorted(deep)
        if deep:
            logger.info("Downloading %d additional assets found in HTML", len(deep))
            for outcome in (await downloader.download_all(deep)).values():
                report.record(outcome)

        logger.info("Performing final check for missing files")
        try:
            homepage = await fetcher.fetch(self.origin.homepage)
        except FetchError as exc:
            logger.warning("Final check skipped, homepage unavailable: %s", exc)
            return
        missing = self.find_missing(homepage.text(), base_url=homepage.url)
        report.final_missing = sorted(missing)
        for url in report.final_missing:
            logger.info("Downloading missing file: %s", url)
            report.record(await downloader.download(url))
