# === FILE: indexnower/cli.py ===
#!/usr/bin/env python3
"""
Командная строка IndexNower.

Команды:
  site create|list|select|rename|delete   Управление сайтами
  settings show|set                       Ключ IndexNow, host, keyLocation сайта
  load                                    Загрузить URL (sitemap, файл, аргументы) и проверить изменения
  urls                                    Показать записи URL / сохранить JSON и HTML отчёты
  submit                                  Отправить pending и changed URL в IndexNow
  remove URL                              Удалить одну запись
  clear                                   Удалить все записи сайта
  serve                                   Запустить HTTP-прокси (/api/sitemap, /api/submit, /api/fetch-content)
  config                                  Показать текущую конфигурацию

Общие опции:
  --config PATH       YAML/JSON конфиг (по умолчанию configs/default.yaml, если есть)
  --data-file PATH    JSON-документ с данными (override data_file)
  --log-level LEVEL   Уровень логирования
  --log-file PATH     Файл для логов

Пример:
  indexnower site create "My blog"
  indexnower settings set --api-key 0123abcd --host blog.example.com
  indexnower load --sitemap https://blog.example.com/sitemap.xml
  indexnower submit
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import click

from indexnower import __version__
from indexnower.config import load_config
from indexnower.engine import Engine
from indexnower.exceptions import IndexNowerError
from indexnower.logger import init_logging
from indexnower.models import UrlEntry, UrlStatus
from indexnower.report.html_report import render_html
from indexnower.report.json_report import render_json, summarize
from indexnower.server import run_server
from indexnower.utils import extract_urls_from_text

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])

_STATUS_COLORS = {
    UrlStatus.PENDING: "yellow",
    UrlStatus.SUBMITTED: "green",
    UrlStatus.CHANGED: "blue",
    UrlStatus.ERROR: "red",
}


def print_error(message: str):
    click.secho(message, fg="red", err=True)
    sys.exit(1)


def _engine(ctx: click.Context) -> Engine:
    return ctx.obj["engine"]


def _site_id(ctx: click.Context, site_id: Optional[str]) -> str:
    try:
        return _engine(ctx).resolve_site_id(site_id)
    except IndexNowerError as e:
        print_error(str(e))


def _echo_entry(entry: UrlEntry) -> None:
    status = click.style(f"{entry.status.value:<9}", fg=_STATUS_COLORS[entry.status])
    click.echo(f"{status} {entry.url}")


def _echo_summary(entries) -> None:
    s = summarize(entries)
    click.echo(f"{s['total']} URLs: {s['to_submit']} to submit, {s['submitted']} submitted, {s['error']} errors")


site_option = click.option("--site", "-s", "site_id", default=None, help="Id сайта (по умолчанию активный)")


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, "--version", "-v", message="IndexNower, version %(version)s")
@click.option(
    "--config", "-c", "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Путь к файлу конфигурации YAML/JSON.",
)
@click.option(
    "--data-file", "data_file",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON-файл с данными сайтов (override data_file)",
)
@click.option(
    "--log-level", "log_level",
    default="WARNING", show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Уровень логирования",
)
@click.option(
    "--log-file", "log_file",
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help="Путь к файлу логов (только консоль, если не указан)",
)
@click.pass_context
def cli(ctx, config_path, data_file, log_level, log_file):
    """IndexNower: отслеживание изменений страниц и отправка URL в IndexNow."""
    init_logging(level=log_level, log_file=str(log_file) if log_file else None)
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f"Ошибка загрузки конфигурации: {e}")
    if data_file is not None:
        cfg = cfg.model_copy(update={"data_file": data_file})
    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg
    ctx.obj["engine"] = Engine(cfg)


# --------------------------------------------------------------------------- #
# site                                                                        #
# --------------------------------------------------------------------------- #


@cli.group("site", context_settings=CONTEXT_SETTINGS)
def site_group():
    """Управление сайтами."""


@site_group.command("create")
@click.argument("name")
@click.pass_context
def site_create(ctx, name):
    """Создать сайт и сделать его активным."""
    site = _engine(ctx).state.create_site(name.strip())
    click.echo(f"Created site {site.name} ({site.id})")


@site_group.command("list")
@click.pass_context
def site_list(ctx):
    """Список сайтов по имени; активный отмечен звёздочкой."""
    state = _engine(ctx).state
    active = state.get_active_site()
    sites = state.list_sites()
    if not sites:
        click.echo("No sites yet.")
        return
    for site in sites:
        mark = "*" if active and active.id == site.id else " "
        click.echo(f"{mark} {site.id}  {site.name}  ({len(site.urls)} URLs)")


@site_group.command("select")
@click.argument("site_id")
@click.pass_context
def site_select(ctx, site_id):
    """Сделать сайт активным."""
    state = _engine(ctx).state
    if state.get_site(site_id) is None:
        print_error(f"Site not found: {site_id}")
    state.set_active_site(site_id)
    click.echo(f"Active site: {site_id}")


@site_group.command("rename")
@click.argument("site_id")
@click.argument("name")
@click.pass_context
def site_rename(ctx, site_id, name):
    """Переименовать сайт."""
    try:
        site = _engine(ctx).state.update_site(site_id, name=name.strip())
    except IndexNowerError as e:
        print_error(str(e))
    click.echo(f"Renamed {site.id} to {site.name}")


@site_group.command("delete")
@click.argument("site_id")
@click.confirmation_option(prompt="Delete this site and all its URL history?")
@click.pass_context
def site_delete(ctx, site_id):
    """Удалить сайт вместе с историей URL."""
    state = _engine(ctx).state
    try:
        state.delete_site(site_id)
    except IndexNowerError as e:
        print_error(str(e))
    active = state.get_active_site()
    click.echo(f"Deleted {site_id}. Active site: {active.id if active else 'none'}")


# --------------------------------------------------------------------------- #
# settings                                                                    #
# --------------------------------------------------------------------------- #


@cli.group("settings", context_settings=CONTEXT_SETTINGS)
def settings_group():
    """Настройки IndexNow сайта."""


@settings_group.command("show")
@site_option
@click.pass_context
def settings_show(ctx, site_id):
    """Показать настройки в JSON."""
    site_id = _site_id(ctx, site_id)
    settings = _engine(ctx).state.get_site_settings(site_id)
    data = settings.to_json_dict()
    data["resolvedKeyLocation"] = settings.resolved_key_location()
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@settings_group.command("set")
@site_option
@click.option("--api-key", default=None, help="Ключ IndexNow")
@click.option("--host", default=None, help="Хост сайта, например example.com")
@click.option("--key-location", default=None, help="URL файла ключа (по умолчанию https://{host}/{key}.txt)")
@click.pass_context
def settings_set(ctx, site_id, api_key, host, key_location):
    """Изменить настройки; не указанные поля не меняются."""
    site_id = _site_id(ctx, site_id)
    settings = _engine(ctx).state.update_site_settings(
        site_id, api_key=api_key, host=host, key_location=key_location
    )
    click.echo(f"Saved settings for {site_id}: host={settings.host or '-'}")


# --------------------------------------------------------------------------- #
# URLs                                                                        #
# --------------------------------------------------------------------------- #


@cli.command("load", context_settings=CONTEXT_SETTINGS)
@site_option
@click.option("--sitemap", "sitemap_url", default=None, help="URL sitemap.xml или sitemap index")
@click.option("--file", "-f", "url_file", default=None, type=click.File("r", encoding="utf-8"),
              help="Файл со списком URL, по одному на строку ('-' - stdin)")
@click.option("--dedupe", is_flag=True, help="Проверять каждый URL один раз")
@click.argument("urls", nargs=-1)
@click.pass_context
def load(ctx, site_id, sitemap_url, url_file, dedupe, urls):
    """Загрузить URL и проверить, изменилось ли их содержимое."""
    engine = _engine(ctx)
    site_id = _site_id(ctx, site_id)

    inputs: list = list(extract_urls_from_text("\n".join(urls)))
    if url_file is not None:
        inputs.extend(extract_urls_from_text(url_file.read()))
    try:
        if sitemap_url:
            inputs.extend(asyncio.run(engine.load_sitemap(sitemap_url)))
    except IndexNowerError as e:
        print_error(str(e))

    if not inputs:
        print_error("No valid URLs found")

    click.echo(f"Checking {len(inputs)} URLs for content changes...")
    entries = asyncio.run(engine.load_urls(site_id, inputs, dedupe=dedupe))
    for entry in entries:
        _echo_entry(entry)
    _echo_summary(entries)


@cli.command("urls", context_settings=CONTEXT_SETTINGS)
@site_option
@click.option("--json", "-j", "json_output", default=None,
              type=click.Path(writable=True, dir_okay=False, path_type=Path),
              help="Сохранить JSON-отчёт в файл")
@click.option("--html", "html_output", default=None,
              type=click.Path(writable=True, dir_okay=False, path_type=Path),
              help="Сохранить HTML-отчёт в файл")
@click.option("--template", "-t", "template_dir", default=None,
              type=click.Path(exists=True, file_okay=False, path_type=Path),
              help="Папка с Jinja2-шаблонами (по умолчанию шаблоны пакета)")
@click.option("--status", "status_filter", default=None,
              type=click.Choice([s.value for s in UrlStatus]), help="Только записи с этим статусом")
@click.pass_context
def urls_cmd(ctx, site_id, json_output, html_output, template_dir, status_filter):
    """Показать сохранённые записи URL сайта."""
    state = _engine(ctx).state
    site_id = _site_id(ctx, site_id)
    site = state.get_site(site_id)
    entries = list(site.urls.values())
    if status_filter:
        entries = [e for e in entries if e.status.value == status_filter]

    if not json_output and not html_output:
        for entry in entries:
            _echo_entry(entry)
        _echo_summary(entries)
        return

    if json_output:
        try:
            click.echo(f"JSON report: {render_json(entries, json_output)}")
        except OSError as e:
            print_error(f"Ошибка при сохранении JSON: {e}")
    if html_output:
        try:
            click.echo(f"HTML report: {render_html(entries, template_dir, html_output, site_name=site.name)}")
        except OSError as e:
            print_error(f"Ошибка при сохранении HTML: {e}")


@cli.command("submit", context_settings=CONTEXT_SETTINGS)
@site_option
@click.pass_context
def submit(ctx, site_id):
    """Отправить pending и changed URL в IndexNow."""
    engine = _engine(ctx)
    site_id = _site_id(ctx, site_id)
    count = len(engine.pending_urls(site_id))
    click.echo(f"Submitting {count} URLs...")
    result = asyncio.run(engine.submit_pending(site_id))
    if not result.success:
        if result.submitted_count:
            click.echo(f"{result.submitted_count} URLs were accepted before the failure.")
        print_error(result.message)
    click.secho(result.message, fg="green")


@cli.command("remove", context_settings=CONTEXT_SETTINGS)
@site_option
@click.argument("url")
@click.pass_context
def remove(ctx, site_id, url):
    """Удалить одну запись URL."""
    site_id = _site_id(ctx, site_id)
    if not _engine(ctx).state.remove_url_entry(site_id, url):
        print_error(f"URL not tracked: {url}")
    click.echo(f"Removed {url}")


@cli.command("clear", context_settings=CONTEXT_SETTINGS)
@site_option
@click.confirmation_option(prompt="Clear the URL history of this site?")
@click.pass_context
def clear(ctx, site_id):
    """Удалить все записи URL сайта."""
    site_id = _site_id(ctx, site_id)
    _engine(ctx).state.clear_site_history(site_id)
    click.echo("History cleared.")


# --------------------------------------------------------------------------- #
# server / config                                                             #
# --------------------------------------------------------------------------- #


@cli.command("serve", context_settings=CONTEXT_SETTINGS)
@click.option("--host", default=None, help="Адрес (override server_host)")
@click.option("--port", "-p", default=None, type=int, help="Порт (override server_port)")
@click.pass_context
def serve(ctx, host, port):
    """Запустить HTTP-прокси для браузерного клиента."""
    cfg = ctx.obj["config"]
    updates = {k: v for k, v in (("server_host", host), ("server_port", port)) if v is not None}
    cfg = cfg.model_copy(update=updates)
    click.echo(f"IndexNower API server running on http://{cfg.server_host}:{cfg.server_port}")
    run_server(cfg)


@cli.command("config", context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj["config"]
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
