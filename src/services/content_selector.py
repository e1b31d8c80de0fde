"""Select the primary content region of a cleaned HTML tree.

Selection is an ordered list of strategies, each with the same
``find(soup) -> ContentCandidate | None`` signature:

1. SemanticSelectorStrategy - high-confidence selectors (article, main, ...)
2. HeuristicScoringStrategy - score paragraph-bearing containers
3. ParagraphFallbackStrategy - every reasonably long <p> outside nav/header/footer
4. BodyTextStrategy - the whole body

The scoring function is pure and works on BlockFeatures records, so it can be
tested without parsing any HTML.
"""

import re
from typing import Callable, List, Protocol, Sequence

import logfire
from bs4 import BeautifulSoup, Tag

from src.constants import (
    CONTENT_SELECTORS,
    DENSITY_SCORE_CAP,
    DENSITY_SCORE_MULTIPLIER,
    IDENTIFIER_BONUS,
    LENGTH_SCORE_CAP,
    LENGTH_SCORE_WORDS,
    LINK_PENALTY_CAP,
    MIN_CANDIDATE_SCORE,
    MIN_CANDIDATE_TEXT_CHARS,
    MIN_FALLBACK_PARAGRAPH_CHARS,
    SEMANTIC_TAG_BONUS,
    SEMANTIC_TAGS,
)
from src.models.content_models import BlockFeatures, ContentCandidate
from src.services.boilerplate_filter import class_and_id

CONTENT_IDENTIFIER_RE = re.compile(r"article|content|text|body|post|entry", re.IGNORECASE)

# Children that make their parent a scoring candidate
_CONTENT_CHILD_TAGS = ("p", "li", "h1", "h2", "h3", "h4", "h5", "h6")


def element_text(element: Tag) -> str:
    """Visible text of an element with whitespace collapsed."""
    return re.sub(r"\s+", " ", element.get_text(" ")).strip()


def block_features(element: Tag) -> BlockFeatures:
    """Measure an element for scoring."""
    text = element_text(element)
    link_text_length = sum(len(element_text(a)) for a in element.find_all("a"))
    return BlockFeatures(
        tag_name=element.name or "",
        text_length=len(text),
        word_count=len(text.split()),
        inner_html_length=len(element.decode_contents()),
        link_text_length=link_text_length,
        class_and_id=class_and_id(element),
    )


def score_block(features: BlockFeatures) -> float:
    """Score how likely a block is to be the primary content, in [0, 1].

    length:   min(words / 100, 0.3)
    density:  min(words / html_length * 10, 0.2)
    links:    - min(link_text / text, 0.2)
    semantic: + 0.2 for p, article, section, main, h1-h6
    naming:   + 0.1 when class/id looks like article/content/text/body/post/entry
    """
    words = features.word_count
    score = min(words / LENGTH_SCORE_WORDS, LENGTH_SCORE_CAP)
    if features.inner_html_length > 0:
        score += min(
            words / features.inner_html_length * DENSITY_SCORE_MULTIPLIER,
            DENSITY_SCORE_CAP,
        )
    if features.text_length > 0:
        score -= min(features.link_text_length / features.text_length, LINK_PENALTY_CAP)
    if features.tag_name.lower() in SEMANTIC_TAGS:
        score += SEMANTIC_TAG_BONUS
    if features.class_and_id and CONTENT_IDENTIFIER_RE.search(features.class_and_id):
        score += IDENTIFIER_BONUS
    return max(0.0, min(1.0, score))


class ContentStrategy(Protocol):
    """One tier of content selection."""

    name: str

    def find(self, soup: BeautifulSoup) -> ContentCandidate | None:
        ...


class SemanticSelectorStrategy:
    """Accept the first high-confidence selector match with enough text."""

    name = "semantic_selector"

    def __init__(
        self,
        selectors: Sequence[str] = CONTENT_SELECTORS,
        min_text_chars: int = MIN_CANDIDATE_TEXT_CHARS,
    ):
        self._selectors = tuple(selectors)
        self._min_text_chars = min_text_chars

    def find(self, soup: BeautifulSoup) -> ContentCandidate | None:
        for selector in self._selectors:
            element = soup.select_one(selector)
            if element is None:
                continue
            if len(element_text(element)) >= self._min_text_chars:
                return ContentCandidate(blocks=[element], score=1.0, strategy=self.name)
        return None


class HeuristicScoringStrategy:
    """Score every paragraph-, list- or heading-bearing container; keep the best."""

    name = "heuristic_score"

    def __init__(
        self,
        min_score: float = MIN_CANDIDATE_SCORE,
        min_text_chars: int = MIN_CANDIDATE_TEXT_CHARS,
        scorer: Callable[[BlockFeatures], float] = score_block,
    ):
        self._min_score = min_score
        self._min_text_chars = min_text_chars
        self._scorer = scorer

    @staticmethod
    def candidates(soup: BeautifulSoup) -> List[Tag]:
        """Parents of content-bearing children, in document order, deduplicated."""
        seen: set[int] = set()
        out: List[Tag] = []
        for child in soup.find_all(_CONTENT_CHILD_TAGS):
            parent = child.parent
            if not isinstance(parent, Tag) or isinstance(parent, BeautifulSoup):
                continue
            if id(parent) not in seen:
                seen.add(id(parent))
                out.append(parent)
        return out

    def find(self, soup: BeautifulSoup) -> ContentCandidate | None:
        best: Tag | None = None
        best_key: tuple[float, int] | None = None
        for element in self.candidates(soup):
            features = block_features(element)
            # Ties go to the candidate holding more text
            key = (self._scorer(features), features.text_length)
            if best_key is None or key > best_key:
                best, best_key = element, key

        if best is None or best_key is None:
            return None
        score, text_length = best_key
        if score < self._min_score or text_length < self._min_text_chars:
            logfire.debug(
                "Best scored block rejected",
                score=score,
                text_length=text_length,
            )
            return None
        return ContentCandidate(blocks=[best], score=score, strategy=self.name)


class ParagraphFallbackStrategy:
    """Concatenate every reasonably long paragraph outside page furniture."""

    name = "paragraphs"

    def __init__(
        self,
        min_paragraph_chars: int = MIN_FALLBACK_PARAGRAPH_CHARS,
        min_text_chars: int = MIN_CANDIDATE_TEXT_CHARS,
    ):
        self._min_paragraph_chars = min_paragraph_chars
        self._min_text_chars = min_text_chars

    def find(self, soup: BeautifulSoup) -> ContentCandidate | None:
        paragraphs = [
            p
            for p in soup.find_all("p")
            if len(element_text(p)) >= self._min_paragraph_chars
            and p.find_parent(("nav", "header", "footer")) is None
        ]
        total = sum(len(element_text(p)) for p in paragraphs)
        if not paragraphs or total < self._min_text_chars:
            return None
        return ContentCandidate(blocks=paragraphs, score=0.0, strategy=self.name)


class BodyTextStrategy:
    """Last resort: the whole document body."""

    name = "body"

    def find(self, soup: BeautifulSoup) -> ContentCandidate | None:
        body = soup.body or soup
        if not element_text(body):
            return None
        return ContentCandidate(blocks=[body], score=0.0, strategy=self.name)


def default_strategies() -> List[ContentStrategy]:
    return [
        SemanticSelectorStrategy(),
        HeuristicScoringStrategy(),
        ParagraphFallbackStrategy(),
        BodyTextStrategy(),
    ]


class ContentSelector:
    """Try each strategy in order until one yields an acceptable candidate."""

    def __init__(self, strategies: Sequence[ContentStrategy] | None = None):
        self._strategies = list(strategies) if strategies is not None else default_strategies()

    @property
    def strategies(self) -> List[ContentStrategy]:
        return list(self._strategies)

    def select(
        self,
        soup: BeautifulSoup,
        accept: Callable[[ContentCandidate], bool] | None = None,
    ) -> ContentCandidate | None:
        """Return the first candidate a strategy finds and ``accept`` approves.

        ``accept`` lets the caller apply its own floor (e.g. formatted text
        length) so a thin match degrades to the next tier instead of failing.
        """
        for strategy in self._strategies:
            candidate = strategy.find(soup)
            if candidate is None:
                logfire.debug("Content strategy found nothing", strategy=strategy.name)
                continue
            if accept is not None and not accept(candidate):
                logfire.debug("Content candidate rejected", strategy=strategy.name)
                continue
            logfire.info(
                "Content region selected",
                strategy=candidate.strategy,
                score=candidate.score,
                block_count=len(candidate.blocks),
            )
            return candidate
        return None
