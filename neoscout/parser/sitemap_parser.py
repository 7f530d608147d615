# File: neoscout/parser/sitemap_parser.py
"""neoscout.parser.sitemap_parser: sitemap.xml parsing and <loc> URL extraction."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Set, Union

from lxml import etree

from neoscout.logger import logger

_LOC_RE = re.compile(r"<loc>\s*([^<]+?)\s*</loc>", re.IGNORECASE)


@dataclass(slots=True)
class Sitemap:
    """URLs listed by a sitemap, plus nested sitemaps of a sitemap index."""

    urls: Set[str] = field(default_factory=set)
    sitemaps: Set[str] = field(default_factory=set)

    def __bool__(self) -> bool:
        return bool(self.urls or self.sitemaps)


def _local_name(element: etree._Element) -> str:
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return etree.QName(tag).localname.lower()


def read_sitemap(xml_content: Optional[Union[str, bytes]]) -> Sitemap:
    """Parse a sitemap or sitemap index into a :class:`Sitemap`.

    Missing, empty or broken documents give an empty result: a site without
    a sitemap is the normal case, not an error. When the XML parser recovers
    nothing, a plain-text ``<loc>`` scan is tried.

    Example:
    ```python
    from neoscout.parser.sitemap_parser import read_sitemap

    sitemap = read_sitemap(open('sitemap.xml', encoding='utf-8').read())
    print(sorted(sitemap.urls))
    ```
    """
    result = Sitemap()
    if not xml_content:
        return result
    data = xml_content.encode("utf-8") if isinstance(xml_content, str) else xml_content
    if not data.strip():
        return result

    parser = etree.XMLParser(ns_clean=True, recover=True, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(data, parser=parser)
    except (etree.XMLSyntaxError, ValueError) as exc:
        logger.debug("Sitemap is not parseable XML: %s", exc)
        root = None

    if root is not None:
        for loc in root.iter("{*}loc"):
            if not loc.text or not loc.text.strip():
                continue
            parent = loc.getparent()
            target = result.sitemaps if parent is not None and _local_name(parent) == "sitemap" else result.urls
            target.add(loc.text.strip())

    if not result:
        text = data.decode("utf-8", errors="replace")
        result.urls.update(m.group(1) for m in _LOC_RE.finditer(text))
    return result


def parse_sitemap(xml_content: Optional[Union[str, bytes]]) -> Set[str]:
    """Return the page URLs listed in *xml_content* (empty set if none)."""
    return read_sitemap(xml_content).urls
