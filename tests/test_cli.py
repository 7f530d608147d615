# File: tests/test_cli.py
"""CLI tests with click.testing.CliRunner; engine runs are replaced with fakes."""
import importlib
import json

import pytest
from click.testing import CliRunner

from neoscout.aggregator import MirrorReport, SizeReport
from neoscout.cli import cli
from neoscout.crawler.models import DiscoveredSet, FetchOutcome
from neoscout.discovery import DiscoveryResult
from neoscout.logger import init_logging

cli_module = importlib.import_module("neoscout.cli")

BASE = "https://toribytez.neocities.org"


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI binds the log handler to CliRunner's stdout; rebind it afterwards."""
    yield
    init_logging()


@pytest.fixture()
def runner():
    return CliRunner()


@pytest.fixture()
def calls(monkeypatch):
    """Record the configs passed to the engine and return canned results."""
    seen = []

    async def fake_discover(cfg):
        seen.append(cfg)
        discovered = DiscoveredSet(cfg.origin)
        discovered.merge([f"{BASE}/", f"{BASE}/a.html", f"{BASE}/c.css"], source="homepage")
        return DiscoveryResult(discovered=discovered, sources=dict(discovered.source_counts))

    async def fake_audit(cfg):
        seen.append(cfg)
        return SizeReport(
            sizes={f"{BASE}/": 2048, f"{BASE}/big.png": 3 * 1024**2, f"{BASE}/c.css": 1024},
            defaulted=frozenset({f"{BASE}/c.css"}),
        )

    async def fake_mirror(cfg):
        seen.append(cfg)
        report = MirrorReport(output_dir=cfg.mirror_dir)
        report.record(FetchOutcome.fetched(f"{BASE}/", cfg.mirror_dir / "index.html", 100))
        report.record(FetchOutcome.failed(f"{BASE}/gone.png", "http-status fetching gone.png: HTTP 404"))
        return report

    monkeypatch.setattr(cli_module, "discover_site", fake_discover)
    monkeypatch.setattr(cli_module, "audit_site", fake_audit)
    monkeypatch.setattr(cli_module, "mirror_site", fake_mirror)
    return seen


def test_version_option(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "NeoScout, version" in result.output


def test_show_config(runner, tmp_path):
    cfg_file = tmp_path / "neoscout.yaml"
    cfg_file.write_text("crawl_depth: 5\ntimeout: 2.5\n", encoding="utf-8")
    result = runner.invoke(cli, ["--config", str(cfg_file), "config", "toribytez", "--depth", "3"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["crawl_depth"] == 3
    assert data["timeout"] == 2.5
    assert data["origin"] == BASE


def test_invalid_site(runner, calls):
    result = runner.invoke(cli, ["size", "not a site"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output
    assert calls == []


def test_discover_lists_urls(runner, calls):
    result = runner.invoke(cli, ["discover", "toribytez", "-d", "1"])
    assert result.exit_code == 0
    assert "Found 2 pages and 1 assets" in result.output
    assert f"asset\t{BASE}/c.css" in result.output
    assert calls[0].crawl_depth == 1


def test_discover_json(runner, calls, tmp_path):
    out = tmp_path / "urls.json"
    result = runner.invoke(cli, ["discover", "toribytez", "--json", str(out)])
    assert result.exit_code == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["pages"] == [f"{BASE}/", f"{BASE}/a.html"]
    assert data["assets"] == [f"{BASE}/c.css"]


def test_size_summary_and_reports(runner, calls, tmp_path):
    json_out = tmp_path / "size.json"
    html_out = tmp_path / "size.html"
    result = runner.invoke(
        cli, ["size", "toribytez", "--top", "2", "--json", str(json_out), "--html", str(html_out), "--pretty"]
    )
    assert result.exit_code == 0, result.output
    assert "Total files: 3" in result.output
    assert "Total size: 3.00 MB" in result.output
    assert "Top 2 largest files:" in result.output
    assert "big.png - 3.00 MB" in result.output

    data = json.loads(json_out.read_text(encoding="utf-8"))
    assert data["total_size"] == 3 * 1024**2 + 3072
    assert [item["name"] for item in data["top"]] == ["big.png", "toribytez.neocities.org"]
    assert "big.png" in html_out.read_text(encoding="utf-8")
    assert calls[0].top_n == 2


def test_mirror_summary(runner, calls, tmp_path):
    result = runner.invoke(cli, ["mirror", "toribytez", "-o", str(tmp_path / "mirror")])
    assert result.exit_code == 0
    assert f"Site saved to {tmp_path / 'mirror'}" in result.output
    assert "Total files: 1 (1 failed)" in result.output
    assert f"FAILED {BASE}/gone.png" in result.output


def test_engine_failure_exits_with_error(runner, monkeypatch):
    async def broken(cfg):
        raise PermissionError("cannot create neocities_sites")

    monkeypatch.setattr(cli_module, "mirror_site", broken)
    result = runner.invoke(cli, ["mirror", "toribytez"])
    assert result.exit_code == 1
    assert "Mirror failed: cannot create neocities_sites" in result.output
