"""Provider Payload Schemas — the shapes generated content must have before it is played.

Invariants:
    - Every round has exactly OPTIONS_PER_ROUND non-empty options
    - correct_answer_index points inside options
    - Battle damage is coerced to an int and clamped to [0, MAX_DAMAGE]; NaN and
      infinities are rejected, huge integers clamp

Design Decisions:
    - Field aliases match the camelCase keys the prompts ask the model for
    - Lax mode: "25" is accepted as damage 25, the model is not always strict about types
"""

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from arcade.core.domain_types import OPTIONS_PER_ROUND


MAX_DAMAGE: int = 100


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class QuizQuestion(_Payload):
    question: str = Field(min_length=1)
    answers: list[str] = Field(min_length=OPTIONS_PER_ROUND, max_length=OPTIONS_PER_ROUND)
    correct_answer_index: int = Field(alias="correctAnswerIndex", ge=0)

    @field_validator("answers")
    @classmethod
    def answers_not_blank(cls, v: list[str]) -> list[str]:
        if any(not a.strip() for a in v):
            raise ValueError("answers cannot be blank")
        return [a.strip() for a in v]

    @model_validator(mode="after")
    def index_in_range(self):
        if self.correct_answer_index >= len(self.answers):
            raise ValueError("correctAnswerIndex out of range")
        return self


class PictureRound(_Payload):
    correct_answer: str = Field(alias="correctAnswer", min_length=1)
    image_prompt: str = Field(alias="imagePrompt", min_length=1)
    options: list[str] = Field(min_length=OPTIONS_PER_ROUND, max_length=OPTIONS_PER_ROUND)
    correct_answer_index: int = Field(alias="correctAnswerIndex", ge=0)

    @model_validator(mode="after")
    def index_in_range(self):
        if self.correct_answer_index >= len(self.options):
            raise ValueError("correctAnswerIndex out of range")
        return self


class BattleNarration(_Payload):
    description: str = Field(min_length=1)
    damage: int = 0

    @field_validator("damage", mode="before")
    @classmethod
    def coerce_damage(cls, v: object) -> int:
        if v is None or v == "":
            return 0
        if isinstance(v, bool):
            raise ValueError("damage must be a number")
        if isinstance(v, int):
            return min(MAX_DAMAGE, max(0, v))
        try:
            number = float(v)  # type: ignore[arg-type]
        except (TypeError, ValueError, OverflowError):
            raise ValueError("damage must be a number")
        if not math.isfinite(number):
            raise ValueError("damage must be a finite number")
        return min(MAX_DAMAGE, max(0, int(number)))
