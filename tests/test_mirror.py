# File: tests/test_mirror.py
import pytest
from aiohttp import web

from neoscout.aggregator import MirrorReport
from neoscout.crawler.fetcher import FetchError, FetchResult
from neoscout.crawler.models import FetchOutcome, FetchStatus
from neoscout.engine import mirror_site
from neoscout.mirror import Downloader, MirrorReconciler

from .conftest import blob, html

BASE = "https://example.neocities.org"


class FakeFetcher:
    def __init__(self, bodies):
        self.bodies = bodies

    async def fetch(self, url):
        body = self.bodies.get(url)
        if body is None:
            raise FetchError(url, FetchError.HTTP_STATUS, 404)
        return FetchResult(url=url, status=200, body=body)


@pytest.mark.asyncio()
async def test_downloader_writes_files_and_records_failures(tmp_path):
    fetcher = FakeFetcher({f"{BASE}/": b"<p>home</p>", f"{BASE}/img/cat.png": b"\x89PNG"})
    downloader = Downloader(fetcher, tmp_path, concurrency=2)
    outcomes = await downloader.download_all([f"{BASE}/", f"{BASE}/img/cat.png", f"{BASE}/gone.css", f"{BASE}/"])

    assert set(outcomes) == {f"{BASE}/", f"{BASE}/img/cat.png", f"{BASE}/gone.css"}
    assert outcomes[f"{BASE}/"].status is FetchStatus.FETCHED
    assert (tmp_path / "index.html").read_bytes() == b"<p>home</p>"
    assert (tmp_path / "img" / "cat.png").read_bytes() == b"\x89PNG"
    assert outcomes[f"{BASE}/img/cat.png"].size == 4
    assert outcomes[f"{BASE}/gone.css"].status is FetchStatus.FAILED
    assert "404" in outcomes[f"{BASE}/gone.css"].reason


@pytest.mark.asyncio()
async def test_downloader_write_error_is_an_outcome(tmp_path):
    blocker = tmp_path / "blog"
    blocker.write_text("not a directory", encoding="utf-8")
    downloader = Downloader(FakeFetcher({f"{BASE}/blog/post.html": b"x"}), tmp_path)
    outcome = await downloader.download(f"{BASE}/blog/post.html")
    assert outcome.status is FetchStatus.FAILED
    assert outcome.reason.startswith("write error")


def test_deep_assets_skip_already_attempted(tmp_path, origin):
    (tmp_path / "blog").mkdir()
    (tmp_path / "index.html").write_text('<link href="/style.css"><img src="pics/cat.png">', encoding="utf-8")
    (tmp_path / "blog" / "post.html").write_text(
        '<img src="thumb.jpg"><link href="../style.css"><a href="other.html">o</a>', encoding="utf-8"
    )
    (tmp_path / "style.css").write_text("body{}", encoding="utf-8")
    already = {f"{BASE}/", f"{BASE}/blog/post.html", f"{BASE}/style.css"}

    found = MirrorReconciler(origin, tmp_path).find_deep_assets(already)

    assert found == {f"{BASE}/pics/cat.png", f"{BASE}/blog/thumb.jpg"}
    assert not found & already


def test_find_missing_checks_local_files(tmp_path, origin):
    (tmp_path / "index.html").write_text("home", encoding="utf-8")
    (tmp_path / "style.css").write_text("body{}", encoding="utf-8")
    homepage = '<a href="/">home</a><a href="/about">about</a><link href="style.css"><img src="/gone.png">'

    missing = MirrorReconciler(origin, tmp_path).find_missing(homepage)

    assert missing == {f"{BASE}/about", f"{BASE}/gone.png"}


@pytest.mark.asyncio()
async def test_reconcile_skips_final_check_without_homepage(tmp_path, origin):
    report = MirrorReport(output_dir=tmp_path)
    report.record(FetchOutcome.failed(f"{BASE}/", "down"))
    fetcher = FakeFetcher({})
    await MirrorReconciler(origin, tmp_path).reconcile(fetcher, Downloader(fetcher, tmp_path), report)
    assert report.deep_assets == []
    assert report.final_missing == []


@pytest.mark.asyncio()
async def test_mirror_site_end_to_end(serve, make_config, tmp_path):
    async def gone(_):
        return web.Response(status=404)

    base = await serve(
        {
            "/": html('<a href="/about.html">About</a><link href="style.css"><img src="/gone.png">'),
            "/about.html": html('<h1>About</h1><img src="deep.png">'),
            "/style.css": blob(64, "text/css"),
            "/deep.png": blob(128, "image/png"),
            "/gone.png": gone,
        }
    )
    # depth 1: about.html is downloaded but never crawled, so deep.png is only found on disk
    config = make_config(base, crawl_depth=1, output_dir=tmp_path / "site")

    report = await mirror_site(config)

    out = tmp_path / "site"
    for name in ("index.html", "about.html", "style.css", "deep.png"):
        assert (out / name).is_file()
    assert (out / "deep.png").stat().st_size == 128
    assert report.deep_assets == [f"{base}/deep.png"]
    assert report.final_missing == [f"{base}/gone.png"]
    assert [o.url for o in report.failed()] == [f"{base}/gone.png"]
    assert len(report.fetched()) == 4
    assert report.total_bytes == sum(o.size for o in report.fetched())
    assert not report.low_confidence


@pytest.mark.asyncio()
async def test_mirror_site_fails_when_output_dir_cannot_be_created(tmp_path, make_config):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    config = make_config("http://127.0.0.1:9", output_dir=blocker / "site")
    with pytest.raises(OSError):
        await mirror_site(config)


def test_deep_assets_use_the_url_that_served_the_page(tmp_path, origin):
    # /blog was served from /blog/ and saved as blog.html
    (tmp_path / "blog.html").write_text('<img src="pic.png">', encoding="utf-8")

    reconciler = MirrorReconciler(origin, tmp_path)

    assert reconciler.find_deep_assets(set(), {tmp_path / "blog.html": f"{BASE}/blog/"}) == {f"{BASE}/blog/pic.png"}
    assert reconciler.find_deep_assets(set()) == {f"{BASE}/pic.png"}


@pytest.mark.asyncio()
async def test_mirror_site_resolves_assets_of_redirected_pages(serve, make_config, tmp_path):
    async def to_directory(_):
        raise web.HTTPMovedPermanently("/blog/")

    base = await serve(
        {
            "/": html('<a href="/blog/">blog</a>'),
            "/blog": to_directory,
            "/blog/": html('<img src="pic.png">'),
            "/blog/pic.png": blob(32, "image/png"),
        }
    )
    # depth 1 leaves the blog page to the post-download asset sweep
    report = await mirror_site(make_config(base, crawl_depth=1, output_dir=tmp_path / "site"))

    blog = report.outcomes[f"{base}/blog"]
    assert blog.final_url == f"{base}/blog/"
    assert report.deep_assets == [f"{base}/blog/pic.png"]
    assert (tmp_path / "site" / "blog" / "pic.png").stat().st_size == 32
    assert not report.failed()
