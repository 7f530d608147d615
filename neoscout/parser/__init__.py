# File: neoscout/parser/__init__.py
"""neoscout.parser: document parsers (sitemap.xml)."""

from .sitemap_parser import Sitemap, parse_sitemap, read_sitemap

__all__ = ["Sitemap", "parse_sitemap", "read_sitemap"]
