# File: neoscout/report/html_report.py
"""neoscout.report.html_report: HTML size report rendered with Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from neoscout.aggregator import SizeReport
from neoscout.utils import format_size

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
TEMPLATE_NAME = "size_report.html.j2"


def render_html(
    report: SizeReport,
    output_path: Union[Path, str],
    *,
    site: str = "",
    top_n: int = 10,
    template_dir: Optional[Union[Path, str]] = None,
) -> Path:
    """Render the size report through the Jinja2 template and save it.

    Args:
        report: SizeReport of the audited site.
        output_path: path of the resulting HTML file.
        site: origin shown in the page title.
        top_n: how many of the largest files to list.
        template_dir: directory holding ``size_report.html.j2``
            (the packaged template is used when omitted).

    Returns:
        Path of the saved HTML file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    env.filters["filesize"] = format_size
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {
        "site": site,
        "total_files": report.file_count,
        "total_size": report.total,
        "default_size": report.default_size,
        "defaulted_count": len(report.defaulted),
        "low_confidence": report.low_confidence,
        "top": report.top(top_n),
        "files": report.ranked(),
    }

    output_path.write_text(template.render(**context), encoding="utf-8")
    return output_path
