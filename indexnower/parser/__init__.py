"""indexnower.parser: разбор sitemap XML."""

from .sitemap_parser import ParsedSitemap, parse_sitemap

__all__ = ["ParsedSitemap", "parse_sitemap"]
