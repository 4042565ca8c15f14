# File: tests/test_cli.py
"""Тесты CLI через click.testing.CliRunner.
Сеть подменяется: ContentFetcher, IndexNowClient и загрузка sitemap патчатся в indexnower.engine.
"""
import json

import pytest
from click.testing import CliRunner

import indexnower.engine as engine_module
from indexnower.cli import cli
from indexnower.models import SitemapUrl
from indexnower.storage import JsonFileStore

PAGES = {
    "https://example.com/a": "<p>a</p>",
    "https://example.com/b": "<p>b</p>",
}


class DummyFetcher:
    def __init__(self, *args, **kwargs):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return None

    async def fetch(self, url):
        return PAGES.get(url)


class DummyClient:
    payloads: list = []
    status = 200

    def __init__(self, *args, **kwargs):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return None

    async def post(self, payload):
        DummyClient.payloads.append(payload)
        return DummyClient.status, "" if DummyClient.status == 200 else "Forbidden"


@pytest.fixture(autouse=True)
def patch_network(monkeypatch):
    """Патчим сетевые классы движка, чтобы тесты не ходили в интернет."""
    DummyClient.payloads = []
    DummyClient.status = 200
    monkeypatch.setattr(engine_module, "ContentFetcher", DummyFetcher)
    monkeypatch.setattr(engine_module, "IndexNowClient", DummyClient)

    async def fake_sitemap(self, url):
        return [SitemapUrl(loc=u, lastmod="2024-01-01") for u in PAGES]

    monkeypatch.setattr(engine_module.Engine, "load_sitemap", fake_sitemap)


@pytest.fixture()
def data_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path / "app-data.json"


def run(data_file, *args, **kwargs):
    runner = CliRunner()
    return runner.invoke(cli, ["--data-file", str(data_file), *args], **kwargs)


def _create_site(data_file, name="Blog"):
    result = run(data_file, "site", "create", name)
    assert result.exit_code == 0, result.output
    return JsonFileStore(data_file).read().active_site_id


def test_version_option():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "IndexNower" in result.output


def test_show_config(tmp_path, monkeypatch):
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text("server_port: 4321\nuser_agent: Agent/1.0\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PORT", raising=False)
    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["server_port"] == 4321
    assert data["user_agent"] == "Agent/1.0"


def test_bad_config_exits_with_error(tmp_path):
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text("timeout: -5\n", encoding="utf-8")
    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 1
    assert "Ошибка загрузки конфигурации" in result.output


def test_site_lifecycle(data_file):
    first = _create_site(data_file, "First")
    second = _create_site(data_file, "Second")

    result = run(data_file, "site", "list")
    assert result.exit_code == 0
    assert f"* {second}  Second" in result.output
    assert f"  {first}  First" in result.output

    assert run(data_file, "site", "select", first).exit_code == 0
    assert JsonFileStore(data_file).read().active_site_id == first

    result = run(data_file, "site", "delete", first, "--yes")
    assert result.exit_code == 0
    assert f"Active site: {second}" in result.output

    result = run(data_file, "site", "select", "missing")
    assert result.exit_code == 1
    assert "Site not found" in result.output


def test_commands_need_active_site(data_file):
    result = run(data_file, "urls")
    assert result.exit_code == 1
    assert "No active site" in result.output


def test_settings_set_and_show(data_file):
    _create_site(data_file)
    assert run(data_file, "settings", "set", "--api-key", "k1", "--host", "example.com").exit_code == 0
    result = run(data_file, "settings", "show")
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["apiKey"] == "k1"
    assert data["resolvedKeyLocation"] == "https://example.com/k1.txt"


def test_load_arguments_and_file(data_file, tmp_path):
    _create_site(data_file)
    url_file = tmp_path / "urls.txt"
    url_file.write_text("https://example.com/b\nnot-a-url\n", encoding="utf-8")
    result = run(data_file, "load", "https://example.com/a", "https://example.com/missing", "--file", str(url_file))
    assert result.exit_code == 0, result.output
    assert "Checking 3 URLs" in result.output
    assert "3 URLs: 3 to submit" in result.output
    site = JsonFileStore(data_file).read().active_site()
    assert site.urls["https://example.com/missing"].content_hash == ""
    assert site.urls["https://example.com/a"].content_hash


def test_load_sitemap(data_file):
    _create_site(data_file)
    result = run(data_file, "load", "--sitemap", "https://example.com/sitemap.xml")
    assert result.exit_code == 0, result.output
    site = JsonFileStore(data_file).read().active_site()
    assert {e.last_modified for e in site.urls.values()} == {"2024-01-01"}


def test_load_without_urls_fails(data_file):
    _create_site(data_file)
    result = run(data_file, "load", "nothing-here")
    assert result.exit_code == 1
    assert "No valid URLs" in result.output


def test_submit_flow(data_file):
    _create_site(data_file)
    run(data_file, "settings", "set", "--api-key", "k1", "--host", "example.com")
    run(data_file, "load", *PAGES)

    result = run(data_file, "submit")
    assert result.exit_code == 0, result.output
    assert "Successfully submitted 2 URLs" in result.output
    assert DummyClient.payloads[0]["urlList"] == list(PAGES)
    site = JsonFileStore(data_file).read().active_site()
    assert {e.status.value for e in site.urls.values()} == {"submitted"}

    result = run(data_file, "submit")
    assert result.exit_code == 1
    assert "No URLs to submit" in result.output


def test_submit_rejected(data_file):
    _create_site(data_file)
    run(data_file, "settings", "set", "--api-key", "k1", "--host", "example.com")
    run(data_file, "load", *PAGES)
    DummyClient.status = 403
    result = run(data_file, "submit")
    assert result.exit_code == 1
    assert "IndexNow API error: 403 - Forbidden" in result.output
    site = JsonFileStore(data_file).read().active_site()
    assert {e.status.value for e in site.urls.values()} == {"pending"}


def test_urls_reports(data_file, tmp_path):
    _create_site(data_file)
    run(data_file, "load", *PAGES)
    out_json = tmp_path / "out" / "urls.json"
    out_html = tmp_path / "out" / "urls.html"
    result = run(data_file, "urls", "--json", str(out_json), "--html", str(out_html))
    assert result.exit_code == 0, result.output
    data = json.loads(out_json.read_text(encoding="utf-8"))
    assert data["summary"]["total"] == 2
    assert data["summary"]["to_submit"] == 2
    assert [u["url"] for u in data["urls"]] == list(PAGES)
    html = out_html.read_text(encoding="utf-8")
    assert "https://example.com/a" in html and "pending" in html


def test_urls_status_filter(data_file):
    _create_site(data_file)
    run(data_file, "load", *PAGES)
    result = run(data_file, "urls", "--status", "submitted")
    assert result.exit_code == 0
    assert "0 URLs" in result.output


def test_remove_and_clear(data_file):
    _create_site(data_file)
    run(data_file, "load", *PAGES)
    assert run(data_file, "remove", "https://example.com/a").exit_code == 0
    assert run(data_file, "remove", "https://example.com/a").exit_code == 1
    assert run(data_file, "clear", "--yes").exit_code == 0
    assert JsonFileStore(data_file).read().active_site().urls == {}
