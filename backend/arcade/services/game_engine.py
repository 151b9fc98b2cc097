"""Game Engine — round lifecycle controller for quiz, picture race and battle sessions.

Invariants:
    - Only this module changes Session.status (via core/state_machine.py) and rounds
    - Every await is followed by a liveness check: a session ended or replaced while
      suspended is never driven further
    - A round resolves exactly once: the submission path and the deadline path both
      go through the arbiter's resolved-once flag, and the submission path cancels the
      deadline before its first await
    - Every path out of GENERATING_CONTENT / AWAITING_ANSWERS either advances or ends
    - Expected failures come back as CommandResult; gateway failures are logged and
      turn into skip-and-advance, never into a stuck session
    - Unexpected errors from content generation are caught here too: a start ends
      the session, a battle turn is skipped, a picture round is skipped

Design Decisions:
    - Single asyncio loop: arbiter and registry calls contain no await, which makes
      them atomic with respect to concurrent commands
    - Advancing uses the session's one timer slot, so teardown clears it with the deadline
"""

import logging
import random
import time
from collections.abc import Callable
from typing import Any

from arcade.core import arbiter
from arcade.core import format_messages as fmt
from arcade.core.domain_types import (
    ChannelId, CommunityId, GameType, ParticipantId, RejectionReason, SessionKey,
    SessionStatus,
)
from arcade.core.errors import (
    AlreadyActiveError, ErrorContext, GatewayError, GenerationFailedError, NotAuthorizedError,
    SessionNotFoundError,
)
from arcade.core.repository_protocols import ChatGateway
from arcade.core.session_state import BattleState, Combatant, Session, SessionConfig
from arcade.core.state_machine import advance_round, end, open_round, transition
from arcade.schemas.game import CommandResult
from arcade.services.content_generation import ContentGenerationClient
from arcade.services.game_engine_helpers import (
    error_context, rejection, round_content, turn_content,
)
from arcade.services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

GENERATION_FAILED = "GENERATION_FAILED"

DEFAULT_ADVANCE_DELAYS: dict[GameType, float] = {
    GameType.QUIZ: 5.0,
    GameType.PICTURE_RACE: 2.0,
    GameType.BATTLE: 1.0,
}


class GameEngine:
    """Drives sessions: generate → present → collect → resolve → advance/end."""

    def __init__(
        self,
        registry: SessionRegistry,
        generator: ContentGenerationClient,
        gateway: ChatGateway,
        *,
        advance_delays: dict[GameType, float] | None = None,
        battle_max_hit_points: int = 100,
        battle_max_idle_turns: int = 4,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.registry = registry
        self.generator = generator
        self.gateway = gateway
        self.advance_delays = {**DEFAULT_ADVANCE_DELAYS, **(advance_delays or {})}
        self.battle_max_hit_points = battle_max_hit_points
        self.battle_max_idle_turns = battle_max_idle_turns
        self._rng = rng or random.Random()
        self._clock = clock

    @property
    def scheduler(self):
        return self.registry.scheduler

    # ═══ Command surface ═════════════════════════════════════════

    async def start_session(
        self,
        community_id: CommunityId,
        creator_id: ParticipantId,
        channel_id: ChannelId,
        config: SessionConfig,
    ) -> CommandResult:
        """Reserve the slot, then generate and present (or open the battle lobby)."""
        key = SessionKey(community_id, config.game_type)
        try:
            session = self.registry.create(key, creator_id, channel_id, config)
        except AlreadyActiveError as e:
            return CommandResult.fail(fmt.already_active_message(config.game_type), e.code)

        if config.game_type == GameType.BATTLE:
            return await self._open_battle(session)
        return await self._start_broadcast(session)

    async def cancel_session(
        self, community_id: CommunityId, game_type: GameType, participant_id: ParticipantId,
    ) -> CommandResult:
        """Creator-only. Ends the session at once; late submissions get NO_ACTIVE_ROUND."""
        key = SessionKey(community_id, game_type)
        session = self.registry.get(key)
        if session is None:
            return _not_found(key)
        if participant_id != session.created_by:
            err = NotAuthorizedError(participant_id, error_context(session, participant_id))
            logger.info(err.message, extra={**session.log_extra(), "error_code": err.code})
            return CommandResult.fail(fmt.not_creator_message(), err.code)

        logger.info(
            f"Session cancelled by {participant_id}",
            extra={**session.log_extra(), "participant_id": participant_id},
        )
        await self._finish(session)
        return CommandResult.ok(fmt.cancelled_message(session))

    async def submit_answer(
        self,
        community_id: CommunityId,
        game_type: GameType,
        participant_id: ParticipantId,
        choice_index: int,
    ) -> CommandResult:
        """Broadcast variants: one answer per participant per round, first correct wins."""
        session = self.registry.get(SessionKey(community_id, game_type))
        if session is None or not game_type.is_broadcast:
            return rejection(RejectionReason.NO_ACTIVE_ROUND, participant_id=participant_id)

        result = arbiter.submit_choice(session, participant_id, choice_index, self._clock())
        if not result.accepted:
            return rejection(result.reason, session, participant_id, choice_index)
        if result.terminating:
            self.scheduler.cancel(session.key)
            transition(session, SessionStatus.RESOLVING)

        current = session.current_round
        await self._notify(session, fmt.answered_notice(participant_id))
        if result.terminating and current is not None:
            logger.info(
                f"Round won by {participant_id} in {result.elapsed_ms}ms",
                extra={**session.log_extra(), "participant_id": participant_id},
            )
            await self._close_presentation(session)
            await self._notify(session, fmt.round_won_notice(current, participant_id))
            await self._after_round(session)
        return CommandResult.ok(
            fmt.answer_feedback(result.correct),
            correct=result.correct, elapsed_ms=result.elapsed_ms,
        )

    async def join_battle(
        self, community_id: CommunityId, participant_id: ParticipantId,
    ) -> CommandResult:
        """Second combatant joins a waiting battle, which then starts."""
        key = SessionKey(community_id, GameType.BATTLE)
        session = self.registry.get(key)
        if session is None:
            return _not_found(key)
        if session.status != SessionStatus.IDLE or not arbiter.seat_combatant(
            session, participant_id, self.battle_max_hit_points,
        ):
            return CommandResult.fail(fmt.battle_join_rejected_message(), "BATTLE_FULL")

        message = fmt.battle_joined_message(participant_id)
        await self._notify(session, message)
        battle = session.battle
        if self._live(session) and battle is not None and battle.ready:
            message = await self._begin_battle(session, battle)
        return CommandResult.ok(message)

    async def submit_battle_action(
        self, community_id: CommunityId, participant_id: ParticipantId, action: str,
    ) -> CommandResult:
        """Turn holder acts; the provider narrates and sets the damage."""
        session = self.registry.get(SessionKey(community_id, GameType.BATTLE))
        battle = session.battle if session else None
        if session is None or battle is None:
            return rejection(RejectionReason.NO_ACTIVE_ROUND, participant_id=participant_id)

        result = arbiter.submit_action(session, participant_id)
        if not result.accepted:
            return rejection(result.reason, session, participant_id)
        self.scheduler.cancel(session.key)
        transition(session, SessionStatus.RESOLVING)

        attacker, defender = battle.turn_holder, battle.opponent
        try:
            narration = await self.generator.battle_narration(
                attacker, defender, action, error_context(session),
            )
        except GenerationFailedError as e:
            if not self._live(session):
                return CommandResult.fail(fmt.cancelled_message(session), "CANCELLED")
            logger.warning(
                f"Battle narration failed, turn skipped: {e.message}",
                extra={**session.log_extra(), "error_code": e.code},
            )
            return await self._skip_failed_turn(session, battle, attacker, e.code)
        except Exception as e:
            if not self._live(session):
                return CommandResult.fail(fmt.cancelled_message(session), "CANCELLED")
            logger.error(
                f"Unexpected error narrating battle turn, turn skipped: {e}",
                extra={**session.log_extra(), "error_code": GENERATION_FAILED},
                exc_info=True,
            )
            return await self._skip_failed_turn(session, battle, attacker, GENERATION_FAILED)

        if not self._live(session):
            return CommandResult.fail(fmt.cancelled_message(session), "CANCELLED")

        defender = arbiter.apply_damage(battle, narration.damage, narration.description)
        report = fmt.turn_report(narration.description, attacker, defender)
        winner = battle.winner
        if winner is not None:
            await self._finish(session, f"{report}\n{fmt.battle_won_message(winner, defender)}")
            return CommandResult.ok(report, damage=narration.damage, winner=winner.participant_id)

        arbiter.pass_turn(battle)
        await self._close_presentation(session)
        await self._notify(session, report)
        await self._after_battle_turn(session)
        return CommandResult.ok(report, damage=narration.damage)

    def session_snapshot(self, community_id: CommunityId, game_type: GameType) -> dict | None:
        session = self.registry.get(SessionKey(community_id, game_type))
        return session.snapshot() if session else None

    async def shutdown(self) -> None:
        await self.registry.shutdown()

    # ═══ Broadcast variants ═════════════════════════════════════

    async def _start_broadcast(self, session: Session) -> CommandResult:
        transition(session, SessionStatus.GENERATING_CONTENT)
        await self._notify(session, fmt.starting_notice(session))

        try:
            if session.game_type == GameType.QUIZ:
                rounds = await self.generator.quiz_rounds(session.config, error_context(session))
            else:
                rounds = await self.generator.picture_rounds(session.config, error_context(session))
        except GenerationFailedError as e:
            logger.error(
                f"Session start aborted: {e.message}",
                extra={**session.log_extra(), "error_code": e.code},
            )
            await self._finish(session)
            return CommandResult.fail(fmt.generation_failed_message(e.reason), e.code)
        except Exception as e:
            logger.error(
                f"Session start aborted by unexpected error: {e}",
                extra={**session.log_extra(), "error_code": GENERATION_FAILED},
                exc_info=True,
            )
            await self._finish(session)
            return CommandResult.fail(
                fmt.generation_failed_message("unexpected error"), GENERATION_FAILED,
            )

        if not self._live(session):
            return CommandResult.fail(fmt.cancelled_message(session), "CANCELLED")

        session.rounds = rounds
        await self._present_round(session)
        return CommandResult.ok(
            fmt.started_message(session), total_rounds=len(rounds),
        )

    async def _present_round(self, session: Session) -> None:
        """Fetch per-round media if needed, post the round, arm the deadline."""
        current = session.current_round
        if current is None:
            await self._finish(session, fmt.final_leaderboard(session))
            return

        if session.game_type == GameType.PICTURE_RACE:
            if session.status != SessionStatus.GENERATING_CONTENT:
                transition(session, SessionStatus.GENERATING_CONTENT)
            try:
                media = await self.generator.generate_media(
                    current.image_prompt or current.answer_label or current.correct_option,
                    error_context(session),
                )
            except Exception as e:
                if self._live(session):
                    code = e.code if isinstance(e, GenerationFailedError) else GENERATION_FAILED
                    logger.warning(
                        f"Picture generation failed, skipping round: {e}",
                        extra={**session.log_extra(), "error_code": code},
                        exc_info=not isinstance(e, GenerationFailedError),
                    )
                    await self._skip_round(session)
                return
            if not self._live(session):
                return
            session.round_media = media

        transition(session, SessionStatus.PRESENTING)
        if not await self._dispatch_presentation(session, round_content(session, current)):
            return
        index = session.current_round_index
        open_round(session, self._clock())
        self.scheduler.arm(
            session.key, session.config.time_limit_seconds,
            lambda: self._on_deadline(session, index),
        )

    async def _on_deadline(self, session: Session, index: int) -> None:
        if not self._live(session) or session.current_round_index != index:
            logger.info("[timer-abort] stale deadline ignored", extra=session.log_extra())
            return
        if not arbiter.close_round(session):
            return
        transition(session, SessionStatus.RESOLVING)

        battle = session.battle
        if battle is not None:
            idle = battle.turn_holder
            arbiter.pass_turn(battle, timed_out=True)
            await self._close_presentation(session)
            await self._notify(session, fmt.turn_timeout_notice(idle))
            await self._after_battle_turn(session)
            return

        current = session.current_round
        await self._close_presentation(session)
        if current is not None:
            await self._notify(session, fmt.round_timeout_notice(current))
        await self._after_round(session)

    async def _skip_round(self, session: Session) -> None:
        """Round could not be played: report it and move on with no winner."""
        transition(session, SessionStatus.RESOLVING)
        if session.battle is not None:
            arbiter.pass_turn(session.battle, timed_out=True)
            await self._after_battle_turn(session)
            return
        await self._notify(session, fmt.round_skipped_notice(session.round_number))
        await self._after_round(session)

    async def _after_round(self, session: Session) -> None:
        if not self._live(session):
            return
        if session.has_more_rounds:
            self._schedule_advance(session)
        else:
            await self._finish(session, fmt.final_leaderboard(session))

    def _schedule_advance(self, session: Session) -> None:
        advance_round(session)
        index = session.current_round_index
        self.scheduler.arm(
            session.key, self.advance_delays[session.game_type],
            lambda: self._on_advance(session, index), label="advance",
        )

    async def _on_advance(self, session: Session, index: int) -> None:
        if (
            not self._live(session)
            or session.status != SessionStatus.ADVANCING
            or session.current_round_index != index
        ):
            return
        if session.battle is not None:
            await self._present_turn(session, session.battle)
        else:
            await self._present_round(session)

    # ═══ Battle variant ═════════════════════════════════════════

    async def _open_battle(self, session: Session) -> CommandResult:
        battle = session.battle
        arbiter.seat_combatant(session, session.created_by, self.battle_max_hit_points)
        opponent = session.config.opponent_id
        if (
            battle is not None
            and opponent
            and arbiter.seat_combatant(session, opponent, self.battle_max_hit_points)
        ):
            return CommandResult.ok(await self._begin_battle(session, battle))
        await self._notify(session, fmt.battle_lobby_message())
        return CommandResult.ok(fmt.battle_lobby_message())

    async def _begin_battle(self, session: Session, battle: BattleState) -> str:
        holder = arbiter.choose_first_turn(battle, self._rng)
        message = fmt.battle_started_message(*battle.combatants, holder)
        logger.info(
            f"Battle started, first turn: {holder.participant_id}", extra=session.log_extra(),
        )
        await self._notify(session, message)
        if self._live(session):
            await self._present_turn(session, battle)
        return message

    async def _present_turn(self, session: Session, battle: BattleState) -> None:
        transition(session, SessionStatus.PRESENTING)
        if not await self._dispatch_presentation(session, turn_content(session, battle)):
            return
        index = session.current_round_index
        open_round(session, self._clock())
        self.scheduler.arm(
            session.key, session.config.time_limit_seconds,
            lambda: self._on_deadline(session, index),
        )

    async def _skip_failed_turn(
        self, session: Session, battle: BattleState, attacker: Combatant, error_code: str,
    ) -> CommandResult:
        """Narration never arrived: no damage, the turn passes, idle count untouched."""
        notice = fmt.turn_failed_notice(attacker)
        arbiter.pass_turn(battle)
        await self._close_presentation(session)
        await self._notify(session, notice)
        await self._after_battle_turn(session)
        return CommandResult.fail(notice, error_code)

    async def _after_battle_turn(self, session: Session) -> None:
        if not self._live(session):
            return
        battle = session.battle
        if battle is not None and battle.idle_turns >= self.battle_max_idle_turns:
            await self._finish(session, fmt.battle_draw_message())
            return
        self._schedule_advance(session)

    # ═══ Shared plumbing ════════════════════════════════════════

    def _live(self, session: Session) -> bool:
        return not session.ended and self.registry.is_current(session)

    async def _dispatch_presentation(self, session: Session, content: dict) -> bool:
        """Post the round. False if the round was skipped or the session went away."""
        try:
            handle = await self.gateway.present_round(session.channel_id, content)
        except Exception as e:
            _log_gateway_failure(e, "present_round", error_context(session))
            if self._live(session):
                await self._skip_round(session)
            return False
        if not self._live(session):
            await self._disable(handle, error_context(session))
            return False
        session.presentation = handle
        return True

    async def _finish(self, session: Session, closing_text: str | None = None) -> None:
        """End the session: release the slot and timer first, then tidy up the channel."""
        if not end(session):
            return
        self.registry.release(session)
        logger.info("Session ended", extra=session.log_extra())
        await self._close_presentation(session)
        if closing_text:
            await self._notify(session, closing_text)

    async def _close_presentation(self, session: Session) -> None:
        handle, session.presentation = session.presentation, None
        if handle is not None:
            await self._disable(handle, error_context(session))

    async def _disable(self, handle: Any, context: ErrorContext) -> None:
        try:
            await self.gateway.edit_presentation(handle, {"disabled": True})
        except Exception as e:
            _log_gateway_failure(e, "edit_presentation", context)

    async def _notify(self, session: Session, text: str) -> None:
        try:
            await self.gateway.dispatch_notice(session.channel_id, text)
        except Exception as e:
            _log_gateway_failure(e, "dispatch_notice", error_context(session))


def _not_found(key: SessionKey) -> CommandResult:
    err = SessionNotFoundError(str(key))
    return CommandResult.fail(fmt.no_session_message(key.game_type), err.code)


def _log_gateway_failure(e: Exception, operation: str, context: ErrorContext) -> None:
    err = GatewayError(str(e) or type(e).__name__, operation, context)
    logger.error(
        err.message,
        extra={
            "community_id": context.community_id,
            "game_type": context.game_type,
            "round_number": context.round_number,
            "error_code": err.code,
        },
        exc_info=True,
    )
