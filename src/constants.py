"""Application-wide constants.

This module centralizes all magic numbers and configuration constants
to ensure a single source of truth and easier maintenance.

Constants are organized by pipeline stage.
"""

# =============================================================================
# Fetching
# =============================================================================

# Default timeout for a single fetcher HTTP call (seconds)
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0

# CORS relays tried, in order, after a direct fetch fails.
# "{url}" is replaced with the percent-encoded target URL.
PRIMARY_PROXY_TEMPLATE = "https://api.allorigins.win/raw?url={url}"
SECONDARY_PROXY_TEMPLATE = "https://corsproxy.io/?{url}"

# A fetched page shorter than this is treated as a failed attempt
MIN_FETCHED_PAGE_CHARS = 100

# Error-page markers only count when the whole page is shorter than this
ERROR_PAGE_MAX_CHARS = 1000

# Markers of bot walls and error pages returned instead of real content
ERROR_PAGE_INDICATORS = (
    "CLOUDFLARE_ERROR_1000S_BOX",
    "404 - Page Not Found",
    "Access to this page has been denied",
    "Please complete the security check to access",
    "Please verify you are a human",
    "captcha",
    "robot verification",
)

# Public oEmbed endpoint for YouTube title/author lookup
YOUTUBE_OEMBED_URL = "https://www.youtube.com/oembed"

# Transcript languages tried in order
YOUTUBE_TRANSCRIPT_LANGUAGES = ("en", "en-US", "en-GB")

# =============================================================================
# Content Selection
# =============================================================================

# High-confidence selectors, tried in order before any scoring
CONTENT_SELECTORS = (
    "article",
    "main",
    '[role="main"]',
    ".content",
    "#content",
    ".post-content",
    ".entry-content",
    ".article-content",
    ".article-body",
    ".post",
    ".article",
    ".blog-post",
)

# A selector match or scored candidate needs at least this much text
MIN_CANDIDATE_TEXT_CHARS = 100

# Heuristic winners scoring below this fall through to the paragraph tier
MIN_CANDIDATE_SCORE = 0.3

# Paragraphs shorter than this are ignored by the paragraph fallback
MIN_FALLBACK_PARAGRAPH_CHARS = 40

# Scoring weights
LENGTH_SCORE_WORDS = 100
LENGTH_SCORE_CAP = 0.3
DENSITY_SCORE_MULTIPLIER = 10
DENSITY_SCORE_CAP = 0.2
LINK_PENALTY_CAP = 0.2
SEMANTIC_TAG_BONUS = 0.2
IDENTIFIER_BONUS = 0.1

SEMANTIC_TAGS = frozenset(
    ("p", "article", "section", "main", "h1", "h2", "h3", "h4", "h5", "h6")
)

# =============================================================================
# Output Floors
# =============================================================================

# Canonical minimum normalized text length, per source kind
MIN_TEXT_CHARS_URL = 200
MIN_TEXT_CHARS_DEFAULT = 100

# =============================================================================
# Chunking
# =============================================================================

# Default maximum chunk length for whole-document processing (chars)
DEFAULT_MAX_CHUNK_CHARS = 12000

# Chunk length used when only a preview of the document is summarized (chars)
SUMMARY_PREVIEW_CHUNK_CHARS = 4000

# =============================================================================
# Study Material Generation
# =============================================================================

# Generative-AI request budget: requests per rolling window
AI_RATE_LIMIT_REQUESTS = 5
AI_RATE_LIMIT_WINDOW_SECONDS = 60

# Input prefix used for title and card-description prompts (chars)
TITLE_INPUT_CHARS = 1000

MAX_TITLE_CHARS = 60
MAX_CARD_DESCRIPTION_CHARS = 120

QUIZ_QUESTION_COUNT = 5
QUIZ_OPTION_COUNT = 4
FLASHCARD_COUNT = 10
