# File: neoscout/utils.py
"""neoscout.utils: URL normalization, local path mapping and size formatting."""

from __future__ import annotations

import posixpath
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Optional, Sequence, Union
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlparse, urlunparse

if TYPE_CHECKING:  # pragma: no cover
    from neoscout.crawler.models import Origin

__all__: Sequence[str] = (
    "normalize_url",
    "split_host",
    "url_to_local_path",
    "local_path_to_url",
    "format_size",
)

_DEFAULT_PORTS = {"http": "80", "https": "443"}
HTML_SUFFIXES = (".html", ".htm")


def split_host(scheme: str, netloc: str) -> str:
    """Lower-case *netloc*, drop credentials and the scheme's default port."""
    host = netloc.rpartition("@")[2].lower()
    if ":" in host and not host.endswith("]"):
        name, _, port = host.rpartition(":")
        if port == _DEFAULT_PORTS.get(scheme) or port == "":
            host = name
    return host


def normalize_url(url: str, origin: Optional["Origin"] = None) -> str:
    """Canonical form of an absolute URL, used as the identity of a URL record.

    Lower-cases scheme and host, strips default ports, fragments and path
    params, sorts the query, collapses ``.``/``..`` segments and removes the
    trailing slash (the root path stays ``/``). When *origin* is given and the
    host matches, the scheme is rewritten to the origin's one so ``http`` and
    ``https`` spellings of the same page collapse.
    """
    parsed = urlparse(url.strip())
    scheme = parsed.scheme.lower()
    host = split_host(scheme, parsed.netloc)
    if origin is not None and host == origin.host:
        scheme = origin.scheme

    path = unquote(parsed.path or "/")
    norm = posixpath.normpath(path)
    if not norm.startswith("/"):
        norm = "/" + norm
    # posixpath keeps a leading "//"
    norm = "/" + norm.lstrip("/")
    norm = quote(norm, safe="/~!$&'()*+,;=:@")

    query = ""
    if parsed.query:
        query = urlencode(sorted(parse_qsl(parsed.query, keep_blank_values=True)), doseq=True)

    return urlunparse((scheme, host, norm, "", query, ""))


def url_to_local_path(url: str, root: Union[str, Path]) -> Path:
    """Map a site URL to the file it is mirrored into under *root*.

    ``/`` becomes ``index.html``; a path ending in ``/`` gets ``index.html``;
    an extension-less path gets ``.html`` appended (pages are served without
    their suffix); everything else keeps its relative path. A query string is
    folded into the file name before the extension (``p.html?a=1`` is saved as
    ``p@a=1.html``) so query variants do not overwrite each other.
    """
    parsed = urlparse(url)
    path = unquote(parsed.path or "/")
    parts = [p for p in PurePosixPath(path).parts if p not in ("/", "..", ".")]
    if not parts or path.endswith("/"):
        parts.append("index.html")
    elif not PurePosixPath(parts[-1]).suffix:
        parts[-1] += ".html"
    if parsed.query:
        leaf = PurePosixPath(parts[-1])
        parts[-1] = f"{leaf.stem}@{quote(parsed.query, safe='=&')}{leaf.suffix}"
    return Path(root).joinpath(*parts)


def local_path_to_url(path: Union[str, Path], origin: "Origin", root: Union[str, Path]) -> str:
    """Inverse of :func:`url_to_local_path` for HTML files (used as base URL for links)."""
    rel = PurePosixPath(Path(path).relative_to(root).as_posix())
    if rel.name == "index.html":
        parent = "" if rel.parent == PurePosixPath(".") else f"{rel.parent}/"
        rel_path = "/" + parent
    else:
        rel_path = "/" + str(rel)
    return origin.base + quote(rel_path, safe="/")


def format_size(size: int) -> str:
    """Human-readable size: bytes, KB, MB or GB with two decimals."""
    if size >= 1024**3:
        return f"{size / 1024**3:.2f} GB"
    if size >= 1024**2:
        return f"{size / 1024**2:.2f} MB"
    if size >= 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size} bytes"

