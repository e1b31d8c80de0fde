"""Typed errors raised by the content extraction pipeline.

Each stage fails fast with one of these; the pipeline never returns partial
content. ``user_message`` is the text the application layer shows to users.
"""


class ExtractionError(Exception):
    """Base class for every content extraction failure."""

    user_message = "We couldn't extract content from this source."

    def __init__(self, message: str, *, source_url: str | None = None):
        super().__init__(message)
        self.source_url = source_url


class InvalidSourceError(ExtractionError):
    """Malformed URL, unrecognized YouTube link, or empty text payload."""

    user_message = "Please enter a valid link or some text to process."


class FetchFailureError(ExtractionError):
    """Network error, non-2xx response, or every transport exhausted."""

    user_message = (
        "Unable to access the webpage. The site might be blocking access "
        "or require authentication."
    )


class ParseFailureError(ExtractionError):
    """Unreadable PDF binary or unavailable video transcript."""

    user_message = "This file or video could not be read."


class ExtractionTooShortError(ExtractionError):
    """All fallback tiers ran and the text is still below the length floor."""

    user_message = (
        "Could not find article content. This page might not be an article; "
        "try a direct link to an article page."
    )

    def __init__(
        self,
        message: str,
        *,
        source_url: str | None = None,
        length: int = 0,
        minimum: int = 0,
    ):
        super().__init__(message, source_url=source_url)
        self.length = length
        self.minimum = minimum


class StudyMaterialError(Exception):
    """A generative-AI call for summaries, quizzes or flashcards failed."""
