"""Answer Arbiter — submission rules and win conditions, no event loop needed.

Tests cover:
    - One submission per participant per round; first correct answer terminates
    - round_resolved claimed exactly once between submissions and the deadline
    - Rejections leave the session untouched
    - Battle seating, turn ownership, damage floor and idle counting
"""

import random

from arcade.core import arbiter
from arcade.core.domain_types import GameType, RejectionReason, SessionKey, SessionStatus
from arcade.core.session_state import BattleState, Round, Session, SessionConfig
from arcade.core.state_machine import open_round, transition


def _quiz_session(started_at=100.0):
    session = Session(
        key=SessionKey("guild-1", GameType.QUIZ), created_by="alice", channel_id="c",
        config=SessionConfig(game_type=GameType.QUIZ),
        rounds=(Round("Q1?", ("a", "b", "c", "d"), 2), Round("Q2?", ("a", "b", "c", "d"), 0)),
    )
    transition(session, SessionStatus.GENERATING_CONTENT)
    transition(session, SessionStatus.PRESENTING)
    open_round(session, started_at)
    return session


def _battle_session():
    session = Session(
        key=SessionKey("guild-1", GameType.BATTLE), created_by="alice", channel_id="c",
        config=SessionConfig(game_type=GameType.BATTLE), battle=BattleState(),
    )
    arbiter.seat_combatant(session, "alice", 100)
    arbiter.seat_combatant(session, "bob", 100)
    session.battle.current_turn_index = 0
    transition(session, SessionStatus.PRESENTING)
    open_round(session, 0.0)
    return session


# -- Broadcast -----------------------------------------------------------------

def test_wrong_answer_accepted_not_terminating():
    session = _quiz_session()

    result = arbiter.submit_choice(session, "bob", 0, 101.0)

    assert result.accepted and not result.correct and not result.terminating
    assert "bob" in session.answered_this_round
    assert session.scores == {}


def test_second_submission_rejected():
    session = _quiz_session()
    arbiter.submit_choice(session, "bob", 0, 101.0)

    result = arbiter.submit_choice(session, "bob", 2, 101.5)

    assert result.reason == RejectionReason.ALREADY_ANSWERED
    assert session.scores == {}


def test_correct_answer_scores_with_elapsed_time():
    session = _quiz_session(started_at=100.0)

    result = arbiter.submit_choice(session, "bob", 2, 102.5)

    assert result.terminating
    assert result.elapsed_ms == 2500
    assert session.scores["bob"].score == 1
    assert session.scores["bob"].tie_break_ms == 2500
    assert session.round_resolved


def test_answer_after_resolution_rejected():
    session = _quiz_session()
    arbiter.submit_choice(session, "bob", 2, 101.0)

    result = arbiter.submit_choice(session, "carol", 2, 101.1)

    assert result.reason == RejectionReason.NO_ACTIVE_ROUND
    assert "carol" not in session.scores


def test_deadline_loses_to_earlier_correct_answer():
    session = _quiz_session()
    arbiter.submit_choice(session, "bob", 2, 101.0)

    assert arbiter.close_round(session) is False


def test_correct_answer_loses_to_earlier_deadline():
    session = _quiz_session()
    assert arbiter.close_round(session) is True

    result = arbiter.submit_choice(session, "bob", 2, 101.0)

    assert result.reason == RejectionReason.NO_ACTIVE_ROUND
    assert session.scores == {}


def test_invalid_choice_does_not_mark_answered():
    session = _quiz_session()

    result = arbiter.submit_choice(session, "bob", 4, 101.0)

    assert result.reason == RejectionReason.INVALID_CHOICE
    assert session.answered_this_round == set()


def test_no_active_round_outside_awaiting_answers():
    session = _quiz_session()
    transition(session, SessionStatus.RESOLVING)

    result = arbiter.submit_choice(session, "bob", 2, 101.0)

    assert result.reason == RejectionReason.NO_ACTIVE_ROUND


def test_scores_accumulate_across_rounds():
    session = _quiz_session(started_at=0.0)
    arbiter.submit_choice(session, "bob", 2, 1.0)
    session.status = SessionStatus.PRESENTING
    session.current_round_index = 1
    open_round(session, 10.0)

    arbiter.submit_choice(session, "bob", 0, 13.0)

    assert session.scores["bob"].score == 2
    assert session.scores["bob"].tie_break_ms == 4000


# -- Battle --------------------------------------------------------------------

def test_seat_rejects_duplicate_and_third_combatant():
    session = Session(
        key=SessionKey("g", GameType.BATTLE), created_by="alice", channel_id="c",
        config=SessionConfig(game_type=GameType.BATTLE), battle=BattleState(),
    )

    assert arbiter.seat_combatant(session, "alice", 100)
    assert not arbiter.seat_combatant(session, "alice", 100)
    assert arbiter.seat_combatant(session, "bob", 100)
    assert not arbiter.seat_combatant(session, "carol", 100)


def test_first_turn_is_one_of_the_combatants():
    session = _battle_session()

    holder = arbiter.choose_first_turn(session.battle, random.Random(1))

    assert holder.participant_id in {"alice", "bob"}
    assert session.battle.turn_holder is holder


def test_only_turn_holder_may_act():
    session = _battle_session()

    assert arbiter.submit_action(session, "bob").reason == RejectionReason.NOT_YOUR_TURN
    result = arbiter.submit_action(session, "alice")

    assert result.terminating
    assert session.round_resolved


def test_action_resets_idle_counter():
    session = _battle_session()
    session.battle.idle_turns = 3

    arbiter.submit_action(session, "alice")

    assert session.battle.idle_turns == 0


def test_damage_floors_at_zero_and_logs():
    session = _battle_session()

    defender = arbiter.apply_damage(session.battle, 130, "Crushing blow.")

    assert defender.participant_id == "bob"
    assert defender.hit_points == 0
    assert defender.defeated
    assert session.battle.winner.participant_id == "alice"
    assert session.battle.log == ["Crushing blow."]


def test_pass_turn_alternates_and_counts_timeouts():
    session = _battle_session()

    assert arbiter.pass_turn(session.battle).participant_id == "bob"
    assert arbiter.pass_turn(session.battle, timed_out=True).participant_id == "alice"
    assert session.battle.idle_turns == 1
