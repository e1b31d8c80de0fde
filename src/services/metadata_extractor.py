"""Pull title/author/date/description from a document, independent of its body."""

import re
from typing import Callable

from bs4 import BeautifulSoup, Tag

from src.models.content_models import Metadata, RawDocument

# (css selector, attribute or None for element text) per field, in priority order
_FieldSelectors = tuple[tuple[str, str | None], ...]

TITLE_SELECTORS: _FieldSelectors = (
    ("title", None),
    ("h1", None),
    ('meta[property="og:title"]', "content"),
    ('meta[name="twitter:title"]', "content"),
)

AUTHOR_SELECTORS: _FieldSelectors = (
    ('meta[name="author"]', "content"),
    ('meta[property="article:author"]', "content"),
    ('[rel="author"]', None),
    ('[itemprop="author"]', None),
    (".byline", None),
    (".author", None),
)

DATE_SELECTORS: _FieldSelectors = (
    ('meta[property="article:published_time"]', "content"),
    ('meta[name="date"]', "content"),
    ('meta[itemprop="datePublished"]', "content"),
    ("time[datetime]", "datetime"),
)

DESCRIPTION_SELECTORS: _FieldSelectors = (
    ('meta[name="description"]', "content"),
    ('meta[property="og:description"]', "content"),
    ('meta[name="twitter:description"]', "content"),
)


def _clean(value: str | None) -> str | None:
    if not value:
        return None
    cleaned = re.sub(r"\s+", " ", value).strip()
    return cleaned or None


# "Article | Site" and "Article - Site" lose the site name
_SITE_SUFFIX_RE = re.compile(r"\s+[|\-–—]\s+.*$")


def strip_site_name(title: str) -> str:
    """Drop a trailing site name; keep the title whole if nothing is left."""
    cleaned = _SITE_SUFFIX_RE.sub("", title).strip()
    return cleaned or title.strip()


def first_match(soup: BeautifulSoup, selectors: _FieldSelectors) -> str | None:
    """Return the first non-empty value produced by the ordered selectors."""
    for selector, attribute in selectors:
        for element in soup.select(selector):
            if attribute is None:
                value = element.get_text(" ")
            else:
                raw = element.get(attribute)
                value = " ".join(raw) if isinstance(raw, list) else raw
            cleaned = _clean(value)
            if cleaned:
                return cleaned
    return None


class MetadataExtractor:
    """Extract document-level metadata from a RawDocument."""

    _HTML_FIELDS: dict[str, _FieldSelectors] = {
        "title": TITLE_SELECTORS,
        "author": AUTHOR_SELECTORS,
        "date": DATE_SELECTORS,
        "description": DESCRIPTION_SELECTORS,
    }

    def __init__(self, parse: Callable[[str], BeautifulSoup] | None = None):
        self._parse = parse or (lambda markup: BeautifulSoup(markup, "html.parser"))

    def extract(self, document: RawDocument, is_html: bool = True) -> Metadata:
        """Build Metadata for the document.

        HTML markup is queried field by field; PDF and video documents carry
        their fields from the fetcher. Missing fields stay None.
        """
        fields: dict[str, str | None] = {
            key: _clean(value) for key, value in document.metadata.items()
        }
        if document.markup is not None and is_html:
            html_fields = self.extract_html_fields(self._parse(document.markup))
            fields.update({key: value for key, value in html_fields.items() if value})
        return Metadata(
            title=fields.get("title"),
            author=fields.get("author"),
            date=fields.get("date"),
            description=fields.get("description"),
            source_url=document.source_url,
        )

    def extract_html_fields(self, soup: BeautifulSoup | Tag) -> dict[str, str | None]:
        return {
            name: first_match(soup, selectors)
            for name, selectors in self._HTML_FIELDS.items()
        }
