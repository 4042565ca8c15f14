"""indexnower.report.html_report: HTML-отчёт по URL сайта через Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from indexnower.models import UrlEntry
from indexnower.report.json_report import summarize

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


def render_html(
    entries: Iterable[UrlEntry],
    template_dir: Union[Path, str, None],
    output_path: Union[Path, str],
    *,
    site_name: str = "",
) -> Path:
    """Рендерит report.html.j2 и сохраняет результат.

    Args:
        entries: записи UrlEntry.
        template_dir: директория с шаблонами; None - шаблоны пакета.
        output_path: путь к итоговому HTML-файлу.
        site_name: заголовок отчёта.

    Returns:
        Path до сохранённого HTML-файла.
    """
    entries = list(entries)
    template_dir = Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template("report.html.j2")

    context: dict[str, Any] = {
        "site_name": site_name,
        "entries": entries,
        "summary": summarize(entries),
    }

    output_path.write_text(template.render(**context), encoding="utf-8")
    return output_path
