# File: tests/test_sitemap.py
from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import web
from conftest import serve_app

from indexnower.exceptions import SitemapError
from indexnower.models import SitemapUrl
from indexnower.parser.sitemap_parser import parse_sitemap
from indexnower.sitemap import SitemapService, fetch_sitemap
from indexnower.utils import extract_urls_from_text, is_valid_url

NS = 'xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"'


def urlset(*entries: str) -> str:
    return f'<?xml version="1.0" encoding="UTF-8"?><urlset {NS}>{"".join(entries)}</urlset>'


def index(*locs: str) -> str:
    body = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return f'<?xml version="1.0" encoding="UTF-8"?><sitemapindex {NS}>{body}</sitemapindex>'


# --------------------------------------------------------------------------- #
#                                   parser                                    #
# --------------------------------------------------------------------------- #


def test_parse_urlset_with_metadata():
    xml = urlset(
        "<url><loc> https://a.test/p1 </loc><lastmod>2024-01-01</lastmod>"
        "<changefreq>daily</changefreq><priority>0.8</priority></url>",
        "<url><loc>https://a.test/p2</loc></url>",
        "<url><lastmod>2024-01-01</lastmod></url>",
    )
    parsed = parse_sitemap(xml)
    assert not parsed.is_index
    assert parsed.urls == [
        SitemapUrl(loc="https://a.test/p1", lastmod="2024-01-01", changefreq="daily", priority="0.8"),
        SitemapUrl(loc="https://a.test/p2"),
    ]


def test_parse_without_namespace():
    parsed = parse_sitemap("<urlset><url><loc>https://a.test/x</loc></url></urlset>")
    assert [u.loc for u in parsed.urls] == ["https://a.test/x"]


def test_parse_index():
    parsed = parse_sitemap(index("https://a.test/s1.xml", "https://a.test/s2.xml"))
    assert parsed.is_index
    assert parsed.sitemaps == ["https://a.test/s1.xml", "https://a.test/s2.xml"]
    assert parsed.urls == []


@pytest.mark.parametrize("xml", ["", "<urlset><url>", "not xml at all"])
def test_malformed_xml_raises_400(xml):
    with pytest.raises(SitemapError) as exc:
        parse_sitemap(xml)
    assert exc.value.status == 400


def test_unknown_root_is_empty():
    parsed = parse_sitemap("<rss><channel/></rss>")
    assert parsed.urls == [] and parsed.sitemaps == []


def test_sitemap_url_json_omits_missing_fields():
    assert SitemapUrl(loc="https://a.test/p1").to_json_dict() == {"loc": "https://a.test/p1"}


def test_extract_urls_from_text():
    text = "https://a.test/1\n\n  http://a.test/2  \nftp://a.test/3\nnot a url\nhttps://\n"
    assert extract_urls_from_text(text) == ["https://a.test/1", "http://a.test/2"]
    assert is_valid_url("https://a.test") and not is_valid_url("mailto:x@a.test")


# --------------------------------------------------------------------------- #
#                           service against a server                          #
# --------------------------------------------------------------------------- #


@pytest_asyncio.fixture
async def sitemap_server(unused_tcp_port: int) -> AsyncIterator[str]:
    base = f"http://localhost:{unused_tcp_port}"
    app = web.Application()
    docs = {
        "/sitemap.xml": index(f"{base}/sitemap-1.xml"),
        "/sitemap-1.xml": urlset("<url><loc>https://a.test/p1</loc></url>"),
        "/mixed.xml": index(f"{base}/sitemap-1.xml", f"{base}/missing.xml", f"{base}/broken.xml",
                            f"{base}/sitemap-2.xml"),
        "/sitemap-2.xml": urlset("<url><loc>https://a.test/p2</loc><lastmod>2024-02-02</lastmod></url>"),
        "/broken.xml": "<urlset><url>",
        "/plain.xml": urlset("<url><loc>https://a.test/only</loc></url>"),
        "/bad.xml": "<<<",
    }

    async def handle(request: web.Request):
        doc = docs.get(request.path)
        if doc is None:
            return web.Response(status=404, text="nope")
        return web.Response(text=doc, content_type="application/xml")

    app.router.add_get("/{name}", handle)
    async for url in serve_app(app, unused_tcp_port):
        yield url


@pytest.mark.asyncio()
async def test_index_expands_one_level(sitemap_server):
    urls = await fetch_sitemap(f"{sitemap_server}/sitemap.xml")
    assert [u.to_json_dict() for u in urls] == [{"loc": "https://a.test/p1"}]


@pytest.mark.asyncio()
async def test_failing_children_are_skipped(sitemap_server):
    async with SitemapService() as service:
        urls = await service.fetch(f"{sitemap_server}/mixed.xml")
    assert [u.loc for u in urls] == ["https://a.test/p1", "https://a.test/p2"]
    assert urls[1].lastmod == "2024-02-02"


@pytest.mark.asyncio()
async def test_plain_urlset(sitemap_server):
    urls = await fetch_sitemap(f"{sitemap_server}/plain.xml")
    assert [u.loc for u in urls] == ["https://a.test/only"]


@pytest.mark.asyncio()
async def test_top_level_not_found_is_400(sitemap_server):
    with pytest.raises(SitemapError) as exc:
        await fetch_sitemap(f"{sitemap_server}/missing.xml")
    assert exc.value.status == 400
    assert "404" in exc.value.message


@pytest.mark.asyncio()
async def test_top_level_parse_error_is_400(sitemap_server):
    with pytest.raises(SitemapError) as exc:
        await fetch_sitemap(f"{sitemap_server}/bad.xml")
    assert exc.value.status == 400


@pytest.mark.asyncio()
async def test_unreachable_host_is_500(unused_tcp_port):
    with pytest.raises(SitemapError) as exc:
        await fetch_sitemap(f"http://localhost:{unused_tcp_port}/sitemap.xml")
    assert exc.value.status == 500
