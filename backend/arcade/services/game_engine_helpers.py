"""Game Engine Helpers — pure builders used by the lifecycle controller.

Invariants:
    - No IO and no session mutation (logging aside)
    - Rejections carry the typed error's code; users see the friendly message
"""

import logging

from arcade.core.domain_types import RejectionReason
from arcade.core.errors import (
    AlreadyAnsweredError, ErrorContext, InvalidChoiceError, NoActiveRoundError,
    NotYourTurnError, SubmissionRejectedError,
)
from arcade.core.format_messages import REJECTION_MESSAGES, round_title, turn_prompt
from arcade.core.session_state import BattleState, Round, Session
from arcade.schemas.game import CommandResult

logger = logging.getLogger(__name__)

_REJECTION_ERRORS = {
    RejectionReason.NO_ACTIVE_ROUND: NoActiveRoundError,
    RejectionReason.ALREADY_ANSWERED: AlreadyAnsweredError,
    RejectionReason.NOT_YOUR_TURN: NotYourTurnError,
}


def error_context(session: Session | None, participant_id: str | None = None) -> ErrorContext:
    if session is None:
        return ErrorContext(participant_id=participant_id)
    return ErrorContext(
        community_id=session.key.community_id,
        game_type=session.key.game_type.value,
        round_number=session.round_number,
        participant_id=participant_id,
    )


def rejection_error(
    reason: RejectionReason, context: ErrorContext, choice_index: int | None = None,
) -> SubmissionRejectedError:
    if reason == RejectionReason.INVALID_CHOICE:
        return InvalidChoiceError(choice_index if choice_index is not None else -1, context)
    return _REJECTION_ERRORS[reason](context)


def rejection(
    reason: RejectionReason,
    session: Session | None = None,
    participant_id: str | None = None,
    choice_index: int | None = None,
) -> CommandResult:
    err = rejection_error(reason, error_context(session, participant_id), choice_index)
    logger.info(
        f"Submission rejected: {err.message}",
        extra={
            "community_id": err.context.community_id,
            "game_type": err.context.game_type,
            "participant_id": participant_id,
            "error_code": err.code,
        },
    )
    return CommandResult.fail(REJECTION_MESSAGES[reason], err.code)


def turn_content(session: Session, battle: BattleState) -> dict:
    """Presentation payload for the current battle turn."""
    return {
        "kind": "battle_turn",
        "game_type": session.game_type.value,
        "title": turn_prompt(session, battle),
        "turn_number": session.round_number,
        "turn_holder": battle.turn_holder.participant_id,
        "combatants": [
            {
                "participant_id": c.participant_id,
                "hit_points": c.hit_points,
                "max_hit_points": c.max_hit_points,
            }
            for c in battle.combatants
        ],
        "time_limit_seconds": session.config.time_limit_seconds,
    }


def round_content(session: Session, current: Round) -> dict:
    """Presentation payload for a quiz or picture round."""
    limit = session.config.time_limit_seconds
    content = {
        "kind": "round",
        "game_type": session.game_type.value,
        "title": round_title(session),
        "description": f"Pick the right answer! ⏱️ {limit:g}s",
        "round_number": session.round_number,
        "total_rounds": len(session.rounds),
        "options": [
            {"index": i, "label": _button_label(opt)}
            for i, opt in enumerate(current.options)
        ],
        "time_limit_seconds": limit,
    }
    if session.round_media is not None:
        content["media"] = session.round_media
    return content


def _button_label(text: str) -> str:
    return text if len(text) <= 80 else text[:77] + "..."
