"""Remove non-content markup before text extraction."""

import re

import logfire
from bs4 import BeautifulSoup, Comment, Tag

# Tags that never carry primary content
BOILERPLATE_TAGS = (
    "script",
    "style",
    "nav",
    "header",
    "footer",
    "iframe",
    "noscript",
    "aside",
    "svg",
    "template",
)

# Matched against the start of each class/id token, so "ad" and "ad-slot" match
# while "download", "no-sidebar" and "main-menu-open" do not
BOILERPLATE_TOKEN_RE = re.compile(
    r"^(?:"
    r"ads?|advert|advertisement|advertising|sponsored|"
    r"social-share|share-buttons|sharing|"
    r"sidebar|menu|"
    r"comments?|comment-section|"
    r"newsletter|subscribe|"
    r"related-articles|related-posts|related-content|related|"
    r"cookie-banner|cookie-consent|popup|modal"
    r")(?:$|[-_])",
    re.IGNORECASE,
)

# Structural elements the class/id rule must never remove
PROTECTED_TAGS = frozenset(("html", "body", "main", "article"))


def class_and_id(element: Tag) -> str:
    """Space-joined class list and id of an element."""
    classes = element.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    element_id = element.get("id") or ""
    return " ".join([*classes, element_id]).strip()


def is_boilerplate_identifier(identifiers: str) -> bool:
    """True when any class/id token names page furniture."""
    return any(BOILERPLATE_TOKEN_RE.match(token) for token in identifiers.split())


def paragraph_text_length(element: Tag) -> int:
    return sum(len(p.get_text(strip=True)) for p in element.find_all("p"))


class BoilerplateFilter:
    """Strip scripts, navigation, ads and similar furniture from a parsed tree."""

    def __init__(
        self,
        tags: tuple[str, ...] = BOILERPLATE_TAGS,
        protected_tags: frozenset[str] = PROTECTED_TAGS,
    ):
        self._tags = tags
        self._protected = protected_tags

    def clean(self, soup: BeautifulSoup) -> BeautifulSoup:
        """Remove boilerplate in place and return the same tree."""
        removed_tags = 0
        for element in soup.find_all(self._tags):
            if not element.decomposed:
                element.decompose()
                removed_tags += 1

        for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
            comment.extract()

        removed_by_identifier = 0
        total_paragraph_text = paragraph_text_length(soup)
        for element in soup.find_all(True):
            if element.decomposed or element.name in self._protected:
                continue
            identifiers = class_and_id(element)
            if not identifiers or not is_boilerplate_identifier(identifiers):
                continue
            if self._holds_content(element, total_paragraph_text):
                continue
            element.decompose()
            removed_by_identifier += 1

        logfire.debug(
            "Boilerplate removed",
            removed_tags=removed_tags,
            removed_by_identifier=removed_by_identifier,
        )
        return soup

    @staticmethod
    def _holds_content(element: Tag, total_paragraph_text: int) -> bool:
        """Wrappers holding the article or most of the page's paragraph text stay."""
        if element.find(("article", "main")) is not None:
            return True
        if not total_paragraph_text:
            return False
        return paragraph_text_length(element) * 2 > total_paragraph_text
