"""Answer Arbiter — at-most-one-scoring-per-user submission handling and win conditions.

Invariants:
    - Every function here is synchronous: check-and-mutate never spans a suspension point
    - answered_this_round membership check and insert happen in the same call
    - round_resolved is claimed exactly once per round, by whichever of
      submit_choice / submit_action / close_round gets there first
    - Rejections never mutate the session
    - Only this module mutates scores, answered_this_round, and battle HP / turn order
"""

import random
from dataclasses import dataclass

from arcade.core.domain_types import (
    BATTLE_COMBATANTS, ParticipantId, RejectionReason, SessionStatus,
)
from arcade.core.session_state import BattleState, Combatant, ScoreEntry, Session


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of one submission. terminating=True means this call resolved the round."""
    accepted: bool
    correct: bool = False
    terminating: bool = False
    reason: RejectionReason | None = None
    elapsed_ms: int = 0


def _rejected(reason: RejectionReason) -> SubmissionResult:
    return SubmissionResult(accepted=False, reason=reason)


def _round_open(session: Session) -> bool:
    return (
        session.status == SessionStatus.AWAITING_ANSWERS
        and not session.round_resolved
    )


# ─── Broadcast variants (quiz, picture race) ────────────────────

def submit_choice(
    session: Session, participant_id: ParticipantId, choice_index: int, now: float,
) -> SubmissionResult:
    """First correct answer scores one point and resolves the round."""
    current = session.current_round
    if not _round_open(session) or current is None:
        return _rejected(RejectionReason.NO_ACTIVE_ROUND)
    if participant_id in session.answered_this_round:
        return _rejected(RejectionReason.ALREADY_ANSWERED)
    if not 0 <= choice_index < len(current.options):
        return _rejected(RejectionReason.INVALID_CHOICE)

    session.answered_this_round.add(participant_id)
    started = session.round_started_at if session.round_started_at is not None else now
    elapsed_ms = max(0, int(round((now - started) * 1000)))

    if choice_index != current.correct_index:
        return SubmissionResult(accepted=True, correct=False, elapsed_ms=elapsed_ms)

    entry = session.scores.setdefault(participant_id, ScoreEntry())
    entry.score += 1
    entry.tie_break_ms += elapsed_ms
    session.round_resolved = True
    return SubmissionResult(
        accepted=True, correct=True, terminating=True, elapsed_ms=elapsed_ms,
    )


def close_round(session: Session) -> bool:
    """Deadline path: claim resolution. False if a submission already resolved the round."""
    if not _round_open(session):
        return False
    session.round_resolved = True
    return True


# ─── Battle variant ─────────────────────────────────────────────

def seat_combatant(session: Session, participant_id: ParticipantId, max_hit_points: int) -> bool:
    """Add a combatant to the battle lobby. False if full or already seated."""
    battle = session.battle
    if battle is None or battle.ready or battle.combatant(participant_id) is not None:
        return False
    battle.combatants.append(
        Combatant(participant_id, max_hit_points, max_hit_points),
    )
    return True


def choose_first_turn(battle: BattleState, rng: random.Random) -> Combatant:
    """Pick exactly one of the two seated combatants to act first."""
    battle.current_turn_index = rng.randrange(BATTLE_COMBATANTS)
    return battle.turn_holder


def submit_action(session: Session, participant_id: ParticipantId) -> SubmissionResult:
    """Any action from the turn holder is terminating; nobody else may act."""
    battle = session.battle
    if battle is None or not battle.ready or not _round_open(session):
        return _rejected(RejectionReason.NO_ACTIVE_ROUND)
    if participant_id in session.answered_this_round:
        return _rejected(RejectionReason.ALREADY_ANSWERED)
    if battle.turn_holder.participant_id != participant_id:
        return _rejected(RejectionReason.NOT_YOUR_TURN)

    session.answered_this_round.add(participant_id)
    session.round_resolved = True
    battle.idle_turns = 0
    return SubmissionResult(accepted=True, correct=True, terminating=True)


def apply_damage(battle: BattleState, damage: int, narration: str) -> Combatant:
    """Turn holder hits the opponent; HP floors at zero. Returns the defender."""
    defender = battle.opponent
    defender.hit_points = max(0, defender.hit_points - max(0, damage))
    battle.log.append(narration)
    return defender


def pass_turn(battle: BattleState, timed_out: bool = False) -> Combatant:
    """Hand the turn to the other combatant. Returns the new turn holder."""
    if timed_out:
        battle.idle_turns += 1
    battle.current_turn_index = (battle.current_turn_index + 1) % BATTLE_COMBATANTS
    return battle.turn_holder
