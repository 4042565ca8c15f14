# File: indexnower/parser/sitemap_parser.py
"""indexnower.parser.sitemap_parser: разбор sitemap.xml и sitemap index."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from lxml import etree

from indexnower.exceptions import SitemapError
from indexnower.models import SitemapUrl


@dataclass(slots=True)
class ParsedSitemap:
    """Содержимое одного XML-файла: записи <url> и ссылки на дочерние sitemap."""

    urls: List[SitemapUrl] = field(default_factory=list)
    sitemaps: List[str] = field(default_factory=list)

    @property
    def is_index(self) -> bool:
        return bool(self.sitemaps)


def _localname(el: etree._Element) -> str:
    return etree.QName(el).localname if isinstance(el.tag, str) else ""


def _child_text(el: etree._Element, name: str) -> Optional[str]:
    # {*} matches the sitemap namespace as well as no namespace
    child = el.find(f"{{*}}{name}")
    if child is None or child.text is None:
        return None
    return child.text.strip() or None


def parse_sitemap(xml_content: str | bytes) -> ParsedSitemap:
    """Разбирает XML sitemap (urlset) или sitemap index (sitemapindex).

    Args:
        xml_content: содержимое файла, строка или байты.

    Returns:
        ParsedSitemap; для документа с другим корневым тегом - пустой.

    Raises:
        SitemapError: XML не удалось разобрать (status 400).

    Пример:
    ```python
    from indexnower.parser.sitemap_parser import parse_sitemap

    parsed = parse_sitemap(open('sitemap.xml', 'rb').read())
    print([u.loc for u in parsed.urls])
    ```
    """
    data = xml_content.encode("utf-8") if isinstance(xml_content, str) else xml_content
    parser = etree.XMLParser(ns_clean=True, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise SitemapError("Failed to parse sitemap XML", status=400) from exc

    result = ParsedSitemap()
    kind = _localname(root)
    if kind == "urlset":
        for el in root:
            if _localname(el) != "url":
                continue
            loc = _child_text(el, "loc")
            if not loc:
                continue
            result.urls.append(
                SitemapUrl(
                    loc=loc,
                    lastmod=_child_text(el, "lastmod"),
                    changefreq=_child_text(el, "changefreq"),
                    priority=_child_text(el, "priority"),
                )
            )
    elif kind == "sitemapindex":
        for el in root:
            if _localname(el) != "sitemap":
                continue
            loc = _child_text(el, "loc")
            if loc:
                result.sitemaps.append(loc)
    return result


__all__ = ["ParsedSitemap", "parse_sitemap"]
