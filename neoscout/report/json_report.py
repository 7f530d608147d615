# neoscout/report/json_report.py

"""
JSON report generation for NeoScout.

Serializes a SizeReport or MirrorReport to a file.
"""
from pathlib import Path
from typing import Union

from neoscout.aggregator import MirrorReport, SizeReport


def render_json(
    report: Union[SizeReport, MirrorReport],
    output_path: Union[Path, str],
    *,
    pretty: bool = True,
) -> Path:
    """
    Save *report* as JSON at *output_path*.

    :param report: SizeReport or MirrorReport
    :param output_path: path of the JSON file
    :param pretty: indent the output by 2 spaces
    :return: Path of the saved file

    Example:
    ```python
    from neoscout.report.json_report import render_json
    report_path = render_json(report, 'reports/size.json')
    print(f"JSON report saved to: {report_path}")
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(report.json(pretty=pretty), encoding="utf-8")
    return output
