"""Message Formatting — user-visible strings for rounds, leaderboards and battles."""

from arcade.core import format_messages as fmt
from arcade.core.domain_types import GameType, RejectionReason, SessionKey
from arcade.core.session_state import (
    BattleState, Combatant, Round, ScoreEntry, Session, SessionConfig,
)


def _session(game_type=GameType.QUIZ, **kwargs):
    return Session(
        key=SessionKey("g", game_type), created_by="alice", channel_id="c",
        config=SessionConfig(game_type=game_type, topic="space"), **kwargs,
    )


def test_every_rejection_has_a_message():
    assert set(fmt.REJECTION_MESSAGES) == set(RejectionReason)


def test_round_title_quiz_shows_question():
    session = _session(rounds=(Round("Why is the sky blue?", ("a", "b", "c", "d"), 0),))

    assert fmt.round_title(session) == "❓ Round 1/1: Why is the sky blue?"


def test_round_title_picture_hides_answer():
    session = _session(
        GameType.PICTURE_RACE,
        rounds=(Round("Which word?", ("owl", "b", "c", "d"), 0, answer_label="owl"),),
    )

    assert "owl" not in fmt.round_title(session)


def test_timeout_reveals_letter_and_answer():
    text = fmt.round_timeout_notice(Round("Q", ("a", "b", "c", "d"), 2))

    assert "**C. c**" in text


def test_final_leaderboard_medals_and_order():
    session = _session(scores={
        "A": ScoreEntry(3, 5000), "B": ScoreEntry(3, 4000), "C": ScoreEntry(4, 9000),
    })

    text = fmt.final_leaderboard(session)

    assert text.index("<@C>") < text.index("<@B>") < text.index("<@A>")
    assert "🥇 <@C>: 4 pts (9.0s)" in text
    assert "🥉 <@A>" in text


def test_final_leaderboard_without_scores():
    assert fmt.final_leaderboard(_session()).endswith("Nobody scored.")


def test_turn_prompt_names_holder():
    battle = BattleState(
        combatants=[Combatant("alice", 100, 100), Combatant("bob", 80, 100)],
        current_turn_index=1,
    )
    session = _session(GameType.BATTLE, battle=battle)

    assert "<@bob>, describe your attack!" in fmt.turn_prompt(session, battle)


def test_turn_report_lists_hp():
    alice, bob = Combatant("alice", 100, 100), Combatant("bob", 75, 100)

    report = fmt.turn_report("Zap!", alice, bob)

    assert "Zap!" in report
    assert "<@bob>: 75/100 HP" in report


def test_game_titles():
    assert fmt.game_title(GameType.PICTURE_RACE) == "Catch the Word"
    assert "Racoon Quiz" in fmt.already_active_message(GameType.QUIZ)
