"""Game Schemas — command-surface request bodies and the uniform CommandResult response.

Invariants:
    - StartSessionRequest.num_rounds: MIN_ROUNDS..MAX_ROUNDS
    - Free-text fields stripped; blank optional fields fall back to defaults
    - CommandResult is the only response shape of a game command
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from arcade.core.domain_types import MAX_ROUNDS, MIN_ROUNDS


class CommandResult(BaseModel):
    """Human-readable outcome plus success flag, rendered to users by the caller."""
    success: bool
    message: str
    error_code: str | None = None
    data: dict[str, Any] | None = None

    @classmethod
    def ok(cls, message: str, **data: Any) -> "CommandResult":
        return cls(success=True, message=message, data=data or None)

    @classmethod
    def fail(cls, message: str, error_code: str) -> "CommandResult":
        return cls(success=False, message=message, error_code=error_code)


class StartSessionRequest(BaseModel):
    """Start a game. Battle ignores num_rounds/difficulty/tone; opponent_id is optional."""
    creator_id: str = Field(min_length=1, max_length=64)
    channel_id: str = Field(min_length=1, max_length=64)
    topic: str = Field("general knowledge", min_length=1, max_length=200)
    num_rounds: int = Field(5, ge=MIN_ROUNDS, le=MAX_ROUNDS)
    time_limit_seconds: float | None = Field(None, gt=0, le=600)
    difficulty: str | None = Field(None, max_length=50)
    tone: str | None = Field(None, max_length=50)
    opponent_id: str | None = Field(None, min_length=1, max_length=64)

    @field_validator("topic")
    @classmethod
    def strip_topic(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("topic cannot be empty or whitespace")
        return v

    @field_validator("difficulty", "tone")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class CancelSessionRequest(BaseModel):
    participant_id: str = Field(min_length=1, max_length=64)


class SubmitAnswerRequest(BaseModel):
    participant_id: str = Field(min_length=1, max_length=64)
    choice_index: int = Field(ge=0)


class JoinBattleRequest(BaseModel):
    participant_id: str = Field(min_length=1, max_length=64)


class BattleActionRequest(BaseModel):
    participant_id: str = Field(min_length=1, max_length=64)
    action: str = Field(min_length=1, max_length=2000)

    @field_validator("action")
    @classmethod
    def strip_action(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("action cannot be empty or whitespace")
        return v
