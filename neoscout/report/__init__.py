# File: neoscout/report/__init__.py
"""neoscout.report: JSON and HTML renderers used by the CLI."""

from .html_report import render_html
from .json_report import render_json

__all__ = ["render_json", "render_html"]
