# File: neoscout/aggregator.py
"""neoscout.aggregator: result containers for size audits and mirror runs."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, TypedDict

from neoscout.crawler.models import FetchOutcome, FetchStatus, UrlRecord
from neoscout.utils import format_size


class RankedFile(TypedDict):
    """One line of the largest-files ranking."""

    url: str
    name: str
    size: int
    human: str
    defaulted: bool


def _file_name(url: str) -> str:
    name = url.rstrip("/").rsplit("/", 1)[-1]
    return name or url


@dataclass(frozen=True)
class SizeReport:
    """Byte size of every discovered URL, probed or defaulted.

    Built once by the size estimator; ``total`` is always the sum of ``sizes``.
    """

    sizes: Mapping[str, int]
    defaulted: FrozenSet[str] = frozenset()
    default_size: int = 1024
    low_confidence: bool = False
    records: Tuple[UrlRecord, ...] = ()

    @property
    def total(self) -> int:
        return sum(self.sizes.values())

    @property
    def file_count(self) -> int:
        return len(self.sizes)

    def ranked(self) -> List[Tuple[str, int]]:
        """All (url, size) pairs, largest first; ties broken by URL."""
        return sorted(self.sizes.items(), key=lambda item: (-item[1], item[0]))

    def top(self, n: int = 10) -> List[RankedFile]:
        return [
            {
                "url": url,
                "name": _file_name(url),
                "size": size,
                "human": format_size(size),
                "defaulted": url in self.defaulted,
            }
            for url, size in self.ranked()[:n]
        ]

    def to_dict(self, top_n: int = 10) -> Dict[str, Any]:
        return {
            "total_files": self.file_count,
            "total_size": self.total,
            "total_size_human": format_size(self.total),
            "default_size": self.default_size,
            "defaulted": sorted(self.defaulted),
            "low_confidence": self.low_confidence,
            "top": self.top(top_n),
            "sizes": dict(sorted(self.sizes.items())),
        }

    def json(self, *, pretty: bool = False, top_n: int = 10) -> str:
        return json.dumps(self.to_dict(top_n), ensure_ascii=False, indent=2 if pretty else None)


@dataclass(slots=True)
class MirrorReport:
    """Per-URL fetch outcomes of a mirror run plus reconciliation findings."""

    output_dir: Path
    outcomes: Dict[str, FetchOutcome] = field(default_factory=dict)
    deep_assets: List[str] = field(default_factory=list)
    final_missing: List[str] = field(default_factory=list)
    low_confidence: bool = False

    def record(self, outcome: FetchOutcome) -> None:
        self.outcomes[outcome.url] = outcome

    def fetched(self) -> List[FetchOutcome]:
        return [o for o in self.outcomes.values() if o.status is FetchStatus.FETCHED]

    def failed(self) -> List[FetchOutcome]:
        return [o for o in self.outcomes.values() if o.status is FetchStatus.FAILED]

    @property
    def total_bytes(self) -> int:
        return sum(o.size for o in self.fetched())

    def to_dict(self) -> Dict[str, Any]:
        def _outcome(o: FetchOutcome) -> Dict[str, Optional[Any]]:
            return {
                "status": o.status.value,
                "local_path": str(o.local_path) if o.local_path else None,
                "size": o.size,
                "reason": o.reason or None,
            }

        return {
            "output_dir": str(self.output_dir),
            "fetched": len(self.fetched()),
            "failed": len(self.failed()),
            "total_bytes": self.total_bytes,
            "total_size_human": format_size(self.total_bytes),
            "low_confidence": self.low_confidence,
            "deep_assets": sorted(self.deep_assets),
            "final_missing": sorted(self.final_missing),
            "outcomes": {url: _outcome(o) for url, o in sorted(self.outcomes.items())},
        }

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)
