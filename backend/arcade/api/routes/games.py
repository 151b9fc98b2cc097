"""Game Commands — start, cancel, answer, battle join/action and status per community.

Invariants:
    - Routes are thin: validation by Pydantic, decisions by GameEngine
    - Every command returns CommandResult with HTTP 200; success=False carries the error_code
    - Only the status read raises (SessionNotFoundError → 404 via the error handlers)

Design Decisions:
    - Session defaults (time limit, difficulty, tone) resolved here from Settings so
      the engine only ever sees a complete SessionConfig
"""

import logging

from fastapi import APIRouter, Depends

from arcade.api.dependencies import get_engine
from arcade.config import get_settings
from arcade.core.domain_types import ChannelId, CommunityId, GameType, ParticipantId, SessionKey
from arcade.core.errors import ErrorContext, SessionNotFoundError
from arcade.core.session_state import SessionConfig
from arcade.schemas.game import (
    BattleActionRequest, CancelSessionRequest, CommandResult, JoinBattleRequest,
    StartSessionRequest, SubmitAnswerRequest,
)
from arcade.services.game_engine import GameEngine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/communities/{community_id}/games", tags=["games"])


def _session_config(game_type: GameType, body: StartSessionRequest) -> SessionConfig:
    settings = get_settings()
    default_limit = (
        settings.battle_turn_time_limit_seconds
        if game_type == GameType.BATTLE
        else settings.default_time_limit_seconds
    )
    return SessionConfig(
        game_type=game_type,
        topic=body.topic,
        num_rounds=body.num_rounds,
        time_limit_seconds=body.time_limit_seconds or default_limit,
        difficulty=body.difficulty or "medium",
        tone=body.tone or "neutral",
        opponent_id=ParticipantId(body.opponent_id) if body.opponent_id else None,
    )


@router.post("/battle/join", response_model=CommandResult)
async def join_battle(
    community_id: str, body: JoinBattleRequest, engine: GameEngine = Depends(get_engine),
):
    return await engine.join_battle(
        CommunityId(community_id), ParticipantId(body.participant_id),
    )


@router.post("/battle/actions", response_model=CommandResult)
async def battle_action(
    community_id: str, body: BattleActionRequest, engine: GameEngine = Depends(get_engine),
):
    """Turn holder describes an attack; the narrated damage is applied."""
    return await engine.submit_battle_action(
        CommunityId(community_id), ParticipantId(body.participant_id), body.action,
    )


@router.post("/{game_type}/start", response_model=CommandResult)
async def start_game(
    community_id: str,
    game_type: GameType,
    body: StartSessionRequest,
    engine: GameEngine = Depends(get_engine),
):
    """Start a session. Returns once the first round is out (or the battle lobby is open)."""
    logger.info(
        f"Start requested by {body.creator_id}",
        extra={
            "community_id": community_id,
            "game_type": game_type.value,
            "participant_id": body.creator_id,
        },
    )
    return await engine.start_session(
        CommunityId(community_id),
        ParticipantId(body.creator_id),
        ChannelId(body.channel_id),
        _session_config(game_type, body),
    )


@router.post("/{game_type}/cancel", response_model=CommandResult)
async def cancel_game(
    community_id: str,
    game_type: GameType,
    body: CancelSessionRequest,
    engine: GameEngine = Depends(get_engine),
):
    return await engine.cancel_session(
        CommunityId(community_id), game_type, ParticipantId(body.participant_id),
    )


@router.post("/{game_type}/answers", response_model=CommandResult)
async def submit_answer(
    community_id: str,
    game_type: GameType,
    body: SubmitAnswerRequest,
    engine: GameEngine = Depends(get_engine),
):
    return await engine.submit_answer(
        CommunityId(community_id), game_type,
        ParticipantId(body.participant_id), body.choice_index,
    )


@router.get("/{game_type}")
async def get_game(
    community_id: str, game_type: GameType, engine: GameEngine = Depends(get_engine),
):
    """Snapshot of the live session for (community, game type)."""
    snapshot = engine.session_snapshot(CommunityId(community_id), game_type)
    if snapshot is None:
        raise SessionNotFoundError(
            str(SessionKey(CommunityId(community_id), game_type)),
            context=ErrorContext(community_id=community_id, game_type=game_type.value),
        )
    return snapshot
