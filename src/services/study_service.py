"""Study material generation (summaries, quizzes, flashcards) with PydanticAI.

Every model call first takes a token from the injected TokenBucket, so the
service can be shared by concurrent requests without a global throttle.
"""

import logging
import re
from pathlib import Path
from typing import Any, List

import logfire
from pydantic_ai import Agent

from src.config import get_settings
from src.constants import (
    FLASHCARD_COUNT,
    MAX_CARD_DESCRIPTION_CHARS,
    MAX_TITLE_CHARS,
    QUIZ_QUESTION_COUNT,
    TITLE_INPUT_CHARS,
)
from src.exceptions import StudyMaterialError
from src.models.study_models import Flashcard, FlashcardDeck, Quiz, QuizQuestion
from src.services.chunker import TextChunker
from src.services.page_fetcher import looks_like_error_page
from src.services.rate_limiter import TokenBucket

logger = logging.getLogger(__name__)

# Project root (parent of src/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_PROMPTS_DIR = _PROJECT_ROOT / "prompts"


def load_prompt(name: str, **values: Any) -> str:
    """Load ``prompts/<name>.md``, drop its header and fill ``{{ key }}`` slots."""
    path = _PROMPTS_DIR / f"{name}.md"
    if not path.exists():
        raise FileNotFoundError(f"Prompt not found: {path}")
    template = path.read_text(encoding="utf-8")
    if "---" in template:
        template = template.split("---", 1)[-1].strip()
    for key, value in values.items():
        template = template.replace(f"{{{{ {key} }}}}", str(value))
    return template


def _clean_line(value: str, max_chars: int) -> str:
    """Strip wrapping quotes and whitespace; cut to max_chars on a word boundary."""
    text = re.sub(r"\s+", " ", value).strip().strip("\"'").strip()
    if len(text) <= max_chars:
        return text
    cut = text[:max_chars].rsplit(" ", 1)[0]
    return cut or text[:max_chars]


class StudyMaterialService:
    """Generate summaries, quizzes, flashcards, titles and card descriptions."""

    def __init__(
        self,
        rate_limiter: TokenBucket,
        model: str | None = None,
        preview_chunker: TextChunker | None = None,
        full_chunker: TextChunker | None = None,
    ):
        """
        Initialize the study material service.

        Args:
            rate_limiter: Token bucket shared by every model call of this service
            model: Model string (e.g. 'openai:gpt-4o-mini'); defaults to settings.default_model
            preview_chunker: Chunker for the summary preview (first chunk only)
            full_chunker: Chunker for whole-document summaries
        """
        settings = get_settings()
        model_name = model or settings.default_model
        self._rate_limiter = rate_limiter
        self._preview_chunker = preview_chunker or TextChunker(
            settings.summary_preview_chunk_chars
        )
        self._full_chunker = full_chunker or TextChunker(settings.max_chunk_chars)

        self.summary_agent = Agent(
            model_name,
            output_type=str,
            defer_model_check=True,
            system_prompt=load_prompt("summary_system"),
            retries=2,
        )
        self.quiz_agent = Agent(
            model_name,
            output_type=Quiz,
            defer_model_check=True,
            system_prompt=load_prompt("quiz_system", question_count=QUIZ_QUESTION_COUNT),
            retries=2,
        )
        self.flashcard_agent = Agent(
            model_name,
            output_type=FlashcardDeck,
            defer_model_check=True,
            system_prompt=load_prompt("flashcards_system", card_count=FLASHCARD_COUNT),
            retries=2,
        )
        self.title_agent = Agent(
            model_name,
            output_type=str,
            defer_model_check=True,
            system_prompt=load_prompt("title_system", max_chars=MAX_TITLE_CHARS),
        )
        self.description_agent = Agent(
            model_name,
            output_type=str,
            defer_model_check=True,
            system_prompt=load_prompt(
                "description_system", max_chars=MAX_CARD_DESCRIPTION_CHARS
            ),
        )

        logger.info(f"StudyMaterialService initialized with model: {model_name}")

    async def _run(self, agent: Agent, prompt: str, task: str) -> Any:
        await self._rate_limiter.acquire()
        with logfire.span("study_generate", task=task, prompt_length=len(prompt)):
            try:
                result = await agent.run(prompt)
            except Exception as e:
                logfire.error(f"{task} generation failed", error=str(e))
                raise StudyMaterialError(f"{task.capitalize()} generation failed: {e}") from e
        return result.output

    @staticmethod
    def _require_content(text: str) -> str:
        if not text or not text.strip():
            raise ValueError("Content is required")
        return text.strip()

    async def generate_summary(self, text: str) -> str:
        """Summarize the first preview chunk of the content.

        Raises:
            ValueError: If content is empty or looks like an error page
            StudyMaterialError: If the model call fails or returns nothing
        """
        content = self._require_content(text)
        if looks_like_error_page(content):
            raise ValueError("Invalid content: Appears to be an error page")

        chunks = self._preview_chunker.chunk_to_strings(content)
        preview = chunks[0] if chunks else content
        logfire.info(
            "Generating summary",
            content_length=len(content),
            chunk_count=len(chunks),
            preview_length=len(preview),
        )
        summary = str(
            await self._run(
                self.summary_agent,
                f"Create a comprehensive summary of the following content. "
                f"Make it engaging and informative:\n\n{preview}",
                "summary",
            )
        ).strip()
        if not summary:
            raise StudyMaterialError("Summary generation failed: No summary generated")
        return summary

    async def generate_full_summary(self, text: str) -> str:
        """Summarize every chunk in order and join the partial summaries."""
        content = self._require_content(text)
        chunks = self._full_chunker.chunk_to_strings(content)
        parts: List[str] = []
        for index, chunk in enumerate(chunks, start=1):
            part = await self._run(
                self.summary_agent,
                f"Summarize part {index} of {len(chunks)} of a longer document:\n\n{chunk}",
                "summary",
            )
            if str(part).strip():
                parts.append(str(part).strip())
        if not parts:
            raise StudyMaterialError("Summary generation failed: No summary generated")
        return "\n\n".join(parts)

    async def generate_quiz(self, text: str) -> List[QuizQuestion]:
        """Generate multiple-choice questions (4 options, one correct)."""
        content = self._require_content(text)
        quiz: Quiz = await self._run(
            self.quiz_agent,
            f"Generate a quiz based on this content:\n\n{content}",
            "quiz",
        )
        logfire.info("Quiz generated", question_count=len(quiz.quiz))
        return quiz.quiz

    async def generate_flashcards(self, text: str) -> List[Flashcard]:
        """Generate front/back flashcards."""
        content = self._require_content(text)
        deck: FlashcardDeck = await self._run(
            self.flashcard_agent,
            f"Generate flashcards based on this content:\n\n{content}",
            "flashcards",
        )
        logfire.info("Flashcards generated", card_count=len(deck.flashcards))
        return deck.flashcards

    async def generate_title(self, text: str) -> str:
        """Short title from the beginning of the content."""
        content = self._require_content(text)[:TITLE_INPUT_CHARS]
        title = await self._run(
            self.title_agent,
            f"Generate a title for this content:\n\n{content}",
            "title",
        )
        cleaned = _clean_line(str(title), MAX_TITLE_CHARS)
        if not cleaned:
            raise StudyMaterialError("Title generation failed: No title generated")
        return cleaned

    async def generate_card_description(self, text: str) -> str:
        """One-sentence description from the beginning of the content."""
        content = self._require_content(text)[:TITLE_INPUT_CHARS]
        description = await self._run(
            self.description_agent,
            f"Write a brief description for this content:\n\n{content}",
            "description",
        )
        cleaned = _clean_line(str(description), MAX_CARD_DESCRIPTION_CHARS)
        if not cleaned:
            raise StudyMaterialError(
                "Description generation failed: No description generated"
            )
        return cleaned
