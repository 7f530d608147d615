# neoscout/crawler/models.py
"""
Data models for NeoScout: site origin, URL records, the discovered set and fetch outcomes.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Union
from urllib.parse import urlparse

from neoscout.crawler.classifier import ContentClass, classify
from neoscout.utils import normalize_url, split_host

NEOCITIES_DOMAIN = "neocities.org"

_USERNAME_RE = re.compile(r"^[a-z0-9][a-z0-9_-]*$", re.IGNORECASE)
_HOST_RE = re.compile(r"^(\[[0-9a-f:.]+\]|[a-z0-9]([a-z0-9.-]*[a-z0-9])?)(:\d+)?$", re.IGNORECASE)


class OriginError(ValueError):
    """The site identifier cannot be resolved to an http(s) origin."""


@dataclass(frozen=True, slots=True)
class Origin:
    """Scheme + host of the site being scanned. Immutable."""

    scheme: str
    host: str

    @classmethod
    def from_identifier(cls, identifier: str) -> Origin:
        """Resolve a Neocities username, a host name or a URL into an Origin."""
        text = (identifier or "").strip()
        if not text or any(ch.isspace() for ch in text):
            raise OriginError(f"Cannot resolve site origin from {identifier!r}")

        if "://" in text:
            parsed = urlparse(text)
            scheme = parsed.scheme.lower()
            if scheme not in ("http", "https") or not parsed.netloc:
                raise OriginError(f"Unsupported site URL: {identifier!r}")
            host = split_host(scheme, parsed.netloc)
        elif "." in text or ":" in text:
            scheme = "https"
            host = split_host(scheme, urlparse(f"{scheme}://{text}").netloc)
        elif _USERNAME_RE.match(text):
            scheme = "https"
            host = f"{text.lower()}.{NEOCITIES_DOMAIN}"
        else:
            raise OriginError(f"Cannot resolve site origin from {identifier!r}")

        if not _HOST_RE.match(host):
            raise OriginError(f"Invalid host in {identifier!r}")
        return cls(scheme=scheme, host=host)

    @property
    def base(self) -> str:
        return f"{self.scheme}://{self.host}"

    @property
    def homepage(self) -> str:
        return f"{self.base}/"

    def url_for(self, path: str) -> str:
        """Absolute URL of *path* on this origin."""
        return f"{self.base}/{path.lstrip('/')}"

    def owns(self, url: str) -> bool:
        """True if *url* is an http(s) URL on this origin's host."""
        try:
            parsed = urlparse(url)
        except ValueError:
            return False
        scheme = parsed.scheme.lower()
        return scheme in ("http", "https") and split_host(scheme, parsed.netloc) == self.host

    def __str__(self) -> str:
        return self.base


@dataclass(frozen=True, slots=True)
class UrlRecord:
    """Normalized absolute URL with its content class and (once probed) byte size."""

    url: str
    content_class: ContentClass
    size: Optional[int] = None


@dataclass(slots=True)
class PageData:
    """Holds URL and content of a fetched page (text or binary)."""

    url: str
    content: Union[str, bytes]


class DiscoveredSet:
    """Deduplicated URL records of one origin.

    Records are keyed by normalized URL; URLs outside the origin are rejected.
    The set only grows: there is no way to remove a record.
    """

    def __init__(self, origin: Origin) -> None:
        self.origin = origin
        self._records: Dict[str, UrlRecord] = {}
        self.source_counts: Dict[str, int] = {}

    def add(self, url: str, source: str = "manual") -> bool:
        """Insert *url*; return True if it was not known yet."""
        if not self.origin.owns(url):
            return False
        key = normalize_url(url, self.origin)
        if key in self._records:
            return False
        self._records[key] = UrlRecord(url=key, content_class=classify(key))
        self.source_counts[source] = self.source_counts.get(source, 0) + 1
        return True

    def merge(self, urls: Iterable[str], source: str = "manual") -> int:
        """Insert every URL of *urls*; return how many were new."""
        return sum(1 for url in urls if self.add(url, source))

    def get(self, url: str) -> Optional[UrlRecord]:
        return self._records.get(normalize_url(url, self.origin))

    def __contains__(self, url: object) -> bool:
        return isinstance(url, str) and normalize_url(url, self.origin) in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[UrlRecord]:
        return iter(list(self._records.values()))

    def urls(self) -> List[str]:
        return sorted(self._records)

    def by_class(self, content_class: ContentClass) -> List[UrlRecord]:
        return sorted(
            (r for r in self._records.values() if r.content_class is content_class),
            key=lambda r: r.url,
        )

    def pages(self) -> List[UrlRecord]:
        return self.by_class(ContentClass.PAGE)

    def assets(self) -> List[UrlRecord]:
        return self.by_class(ContentClass.ASSET)

    def __repr__(self) -> str:
        return f"<DiscoveredSet origin={self.origin} urls={len(self)}>"


class FetchStatus(str, Enum):
    # only the FetchOutcome default; the pipeline records finished fetches
    NOT_ATTEMPTED = "not_attempted"
    FETCHED = "fetched"
    FAILED = "failed"


@dataclass(slots=True)
class FetchOutcome:
    """What happened to one URL in the mirroring pipeline.

    ``final_url`` is where the server answered after redirects (``/blog`` may
    be served from ``/blog/``); relative links in the saved file belong to it.
    """

    url: str
    status: FetchStatus = FetchStatus.NOT_ATTEMPTED
    local_path: Optional[Path] = None
    size: int = 0
    reason: str = ""
    final_url: Optional[str] = None

    @classmethod
    def fetched(cls, url: str, local_path: Path, size: int, final_url: Optional[str] = None) -> FetchOutcome:
        return cls(url=url, status=FetchStatus.FETCHED, local_path=local_path, size=size, final_url=final_url or url)

    @classmethod
    def failed(cls, url: str, reason: str) -> FetchOutcome:
        return cls(url=url, status=FetchStatus.FAILED, reason=reason)
