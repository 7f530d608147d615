# File: neoscout/engine.py
"""neoscout.engine: orchestration of discovery, size audit and mirroring runs."""

from __future__ import annotations

from neoscout.aggregator import MirrorReport, SizeReport
from neoscout.config import ScoutConfig
from neoscout.crawler.classifier import ContentClass, partition
from neoscout.crawler.fetcher import Fetcher
from neoscout.discovery import DiscoveryEngine, DiscoveryResult
from neoscout.estimator import SizeEstimator
from neoscout.logger import logger
from neoscout.mirror.downloader import Downloader
from neoscout.mirror.reconciler import MirrorReconciler

__all__ = ["discover_site", "audit_site", "mirror_site"]


async def discover_site(config: ScoutConfig) -> DiscoveryResult:
    """Run discovery only and return the DiscoveredSet with its provenance."""
    async with Fetcher(config) as fetcher:
        return await DiscoveryEngine(config, fetcher).discover()


async def audit_site(config: ScoutConfig) -> SizeReport:
    """Discover the site, then probe every URL for its size."""
    logger.info("Analyzing site: %s", config.origin)
    async with Fetcher(config) as fetcher:
        result = await DiscoveryEngine(config, fetcher).discover()
        estimator = SizeEstimator(
            fetcher,
            concurrency=config.concurrency,
            default_size=config.default_size,
            timeout=config.timeout,
        )
        report = await estimator.estimate(result.discovered, low_confidence=result.low_confidence)
    logger.info("Analysis complete: %d files", report.file_count)
    return report


async def mirror_site(config: ScoutConfig) -> MirrorReport:
    """Discover the site, download pages then assets, and reconcile the mirror.

    Failing to create the output directory is fatal and propagates.
    """
    output_dir = config.mirror_dir
    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Mirroring %s into %s", config.origin, output_dir)

    async with Fetcher(config) as fetcher:
        result = await DiscoveryEngine(config, fetcher).discover()
        report = MirrorReport(output_dir=output_dir, low_confidence=result.low_confidence)
        downloader = Downloader(fetcher, output_dir, concurrency=config.concurrency)

        groups = partition(result.discovered.urls())
        assets = groups[ContentClass.ASSET]
        # unknown-class URLs go with the pages
        pages = groups[ContentClass.PAGE] + groups[ContentClass.UNKNOWN]
        logger.info("Found %d pages and %d assets to download", len(pages), len(assets))
        for outcome in (await downloader.download_all(pages)).values():
            report.record(outcome)
        for outcome in (await downloader.download_all(assets)).values():
            report.record(outcome)

        await MirrorReconciler(config.origin, output_dir).reconcile(fetcher, downloader, report)

    logger.info(
        "Download complete: %d files (%d failed) saved to %s",
        len(report.fetched()),
        len(report.failed()),
        output_dir,
    )
    return report
