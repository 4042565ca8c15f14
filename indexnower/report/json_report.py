# indexnower/report/json_report.py

"""
Генерация JSON-отчёта по URL сайта.

Записи сериализуются в том же camelCase-виде, что и в хранилище.
"""
import json
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Iterable, List

from indexnower.models import UrlEntry, UrlStatus


def summarize(entries: Iterable[UrlEntry]) -> Dict[str, int]:
    """Счётчики по статусам плюс total и to_submit (pending + changed)."""
    entries = list(entries)
    counts = Counter(e.status for e in entries)
    summary = {status.value: counts.get(status, 0) for status in UrlStatus}
    summary["total"] = len(entries)
    summary["to_submit"] = sum(1 for e in entries if e.status.needs_submission)
    return summary


def render_json(entries: Iterable[UrlEntry], output_path: Path | str) -> Path:
    """
    Сохраняет записи в формате JSON по указанному пути.

    :param entries: записи UrlEntry
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла

    Пример:
    ```python
    from indexnower.report.json_report import render_json
    render_json(state.get_url_entries(site_id).values(), 'reports/urls.json')
    ```
    """
    entries = list(entries)
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    data: Dict[str, Any] = {
        "summary": summarize(entries),
        "urls": [e.to_json_dict() for e in entries],
    }

    with output.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return output


__all__: List[str] = ["render_json", "summarize"]
