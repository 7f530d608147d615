# neoscout/crawler/classifier.py
"""
URL classification by path extension: served pages versus static assets.
"""
from __future__ import annotations

from enum import Enum
from pathlib import PurePosixPath
from typing import Dict, FrozenSet, Iterable, List
from urllib.parse import unquote, urlparse

__all__ = ("ContentClass", "ASSET_EXTENSIONS", "PAGE_EXTENSIONS", "classify", "is_asset", "is_page", "partition")


class ContentClass(str, Enum):
    """Content class of a URL, derived from its path extension."""

    PAGE = "page"
    ASSET = "asset"
    UNKNOWN = "unknown"


ASSET_EXTENSIONS: FrozenSet[str] = frozenset(
    {
        "jpg", "jpeg", "png", "gif", "webp", "svg", "ico", "bmp", "avif",
        "css", "js", "mjs", "map", "json", "xml", "txt",
        "woff", "woff2", "ttf", "otf", "eot",
        "mp3", "wav", "ogg", "mp4", "webm",
        "pdf", "zip",
    }
)
PAGE_EXTENSIONS: FrozenSet[str] = frozenset({"html", "htm", "xhtml", "shtml"})


def _extension(url: str) -> str | None:
    """Lower-cased final extension of the URL path, ``""`` if none, None if unparsable."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if not parsed.netloc and not parsed.path:
        return None
    name = PurePosixPath(unquote(parsed.path)).name
    suffix = PurePosixPath(name).suffix
    return suffix[1:].lower()


def classify(url: str) -> ContentClass:
    """Return the content class of *url*.

    Known asset extensions are ``asset``; HTML-like extensions and paths
    without an extension (directory indexes, pretty URLs) are ``page``;
    any other extension is a file served as-is, so ``asset`` as well.
    ``unknown`` only when the URL has nothing to parse.
    """
    ext = _extension(url)
    if ext is None:
        return ContentClass.UNKNOWN
    if ext in ASSET_EXTENSIONS:
        return ContentClass.ASSET
    if ext == "" or ext in PAGE_EXTENSIONS:
        return ContentClass.PAGE
    return ContentClass.ASSET


def is_asset(url: str) -> bool:
    return classify(url) is ContentClass.ASSET


def is_page(url: str) -> bool:
    return classify(url) is ContentClass.PAGE


def partition(urls: Iterable[str]) -> Dict[ContentClass, List[str]]:
    """Split *urls* by content class (every class key is present)."""
    groups: Dict[ContentClass, List[str]] = {cls: [] for cls in ContentClass}
    for url in urls:
        groups[classify(url)].append(url)
    return groups
