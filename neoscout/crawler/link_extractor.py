# neoscout/crawler/link_extractor.py
"""
Link extraction for NeoScout.

This is a textual scan for ``href``/``src`` attributes rather than a full HTML
parse: broken markup never raises, it only hides the references it mangles.
"""
from __future__ import annotations

import html
import re
from typing import Iterable, Optional, Set
from urllib.parse import urljoin, urlparse

from neoscout.crawler.classifier import is_asset
from neoscout.crawler.models import Origin
from neoscout.utils import normalize_url

__all__ = ("extract_links", "extract_asset_links", "iter_references")

_REFERENCE_RE = re.compile(
    r"""\b(?:href|src)\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'<>`]+))""",
    re.IGNORECASE,
)
_SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*):")


def iter_references(content: str) -> Iterable[str]:
    """Yield raw attribute values of every href/src reference in *content*."""
    for match in _REFERENCE_RE.finditer(content):
        yield next(group for group in match.groups() if group is not None)


def _resolve(raw: str, origin: Origin, base_url: str) -> Optional[str]:
    value = html.unescape(raw).strip()
    if not value or value.startswith("#"):
        return None
    if value.startswith("//"):
        value = f"{origin.scheme}:{value}"
    scheme = _SCHEME_RE.match(value)
    if scheme:
        if scheme.group(1).lower() not in ("http", "https"):
            return None  # mailto:, javascript:, data:, tel: ...
        absolute = value
    else:
        absolute = urljoin(base_url, value)
    try:
        if not origin.owns(absolute) or not urlparse(absolute).netloc:
            return None
        return normalize_url(absolute, origin)
    except ValueError:
        return None


def extract_links(content: str, origin: Origin, base_url: Optional[str] = None) -> Set[str]:
    """
    Extract same-origin absolute URLs referenced by *content*.

    Empty and fragment-only values, non-http(s) schemes and foreign origins
    are dropped. Relative references resolve against *base_url* (the page the
    content came from), or the origin's homepage when it is not given.
    """
    base = base_url or origin.homepage
    links: Set[str] = set()
    for raw in iter_references(content):
        resolved = _resolve(raw, origin, base)
        if resolved is not None:
            links.add(resolved)
    return links


def extract_asset_links(content: str, origin: Origin, base_url: Optional[str] = None) -> Set[str]:
    """Same as :func:`extract_links`, keeping only asset URLs."""
    return {url for url in extract_links(content, origin, base_url) if is_asset(url)}
