"""Structured outputs for study material generation."""

from pydantic import BaseModel, Field, field_validator

from src.constants import QUIZ_OPTION_COUNT


class QuizQuestion(BaseModel):
    """A multiple-choice question with exactly one correct option."""

    question: str = Field(..., min_length=1)
    options: list[str] = Field(
        ...,
        min_length=QUIZ_OPTION_COUNT,
        max_length=QUIZ_OPTION_COUNT,
        description="Exactly four answer options",
    )
    correct_answer: int = Field(
        ..., ge=0, le=QUIZ_OPTION_COUNT - 1, description="Index of the correct option"
    )


class Quiz(BaseModel):
    """Quiz wrapper used as the model's structured output."""

    quiz: list[QuizQuestion] = Field(..., min_length=1)


class Flashcard(BaseModel):
    """Question on the front, concise answer on the back."""

    front: str = Field(..., min_length=1)
    back: str = Field(..., min_length=1)

    @field_validator("front", "back")
    @classmethod
    def _strip(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Flashcard sides cannot be blank")
        return stripped


class FlashcardDeck(BaseModel):
    """Flashcard wrapper used as the model's structured output."""

    flashcards: list[Flashcard] = Field(..., min_length=1)
