"""Message Formatting — pure functions building every human-readable string the engine emits.

Invariants:
    - All functions are pure (no IO, no async)
    - Participants are rendered as chat mentions (<@id>); the gateway resolves them
"""

from arcade.core.domain_types import GameType, RejectionReason
from arcade.core.scoreboard import rank_scores
from arcade.core.session_state import BattleState, Combatant, Round, Session

_GAME_TITLES = {
    GameType.QUIZ: "Racoon Quiz",
    GameType.PICTURE_RACE: "Catch the Word",
    GameType.BATTLE: "Racoon Battle",
}

_MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}

REJECTION_MESSAGES = {
    RejectionReason.NO_ACTIVE_ROUND: "No round is accepting answers right now.",
    RejectionReason.ALREADY_ANSWERED: "You already answered this round!",
    RejectionReason.NOT_YOUR_TURN: "It's not your turn yet.",
    RejectionReason.INVALID_CHOICE: "That is not one of the options.",
}


def mention(participant_id: str) -> str:
    return f"<@{participant_id}>"


def option_letter(index: int) -> str:
    return chr(ord("A") + index)


def game_title(game_type: GameType) -> str:
    return _GAME_TITLES[game_type]


# ─── Session lifecycle ──────────────────────────────────────────

def starting_notice(session: Session) -> str:
    return f"**{game_title(session.game_type)}** is warming up! Topic: **{session.config.topic}**..."


def started_message(session: Session) -> str:
    cfg = session.config
    return (
        f"**{game_title(session.game_type)}** on **{cfg.topic}** "
        f"(difficulty: {cfg.difficulty}, tone: {cfg.tone}) has started with "
        f"{len(session.rounds)} rounds. You have **{cfg.time_limit_seconds:g}s** per round!"
    )


def already_active_message(game_type: GameType) -> str:
    return f"A {game_title(game_type)} is already running here. Please wait for it to finish!"


def generation_failed_message(cause: str) -> str:
    return f"Could not prepare the game: {cause}. Please try again."


def cancelled_message(session: Session) -> str:
    return f"{game_title(session.game_type)} cancelled."


def not_creator_message() -> str:
    return "Only the participant who started this game can cancel it."


def no_session_message(game_type: GameType) -> str:
    return f"No {game_title(game_type)} is running."


# ─── Broadcast rounds ───────────────────────────────────────────

def round_title(session: Session) -> str:
    current = session.current_round
    header = f"Round {session.round_number}/{len(session.rounds)}"
    if session.game_type == GameType.QUIZ and current is not None:
        return f"❓ {header}: {current.material}"
    return f"🎨 {header}"


def answered_notice(participant_id: str) -> str:
    return f"➡️ {mention(participant_id)} answered."


def answer_feedback(correct: bool) -> str:
    return "Correct!" if correct else "Wrong!"


def round_won_notice(current: Round, winner_id: str) -> str:
    reveal = current.answer_label or current.correct_option
    return f"🎉 {mention(winner_id)} got it first! Answer: **{reveal}**"


def round_timeout_notice(current: Round) -> str:
    letter = option_letter(current.correct_index)
    reveal = current.answer_label or current.correct_option
    return f"⏰ Time's up! The answer was **{letter}. {reveal}**\nNobody answered correctly."


def round_skipped_notice(round_number: int) -> str:
    return f"❌ Could not prepare round {round_number}, skipping it."


def final_leaderboard(session: Session) -> str:
    title = f"🏆 {game_title(session.game_type)} is over! Final scores for **{session.config.topic}**:"
    standings = rank_scores(session.scores)
    if not standings:
        return f"{title}\n\nNobody scored."
    lines = [
        f"{_MEDALS.get(s.rank, f'#{s.rank}')} {mention(s.participant_id)}: "
        f"{s.score} pts ({s.tie_break_ms / 1000:.1f}s)"
        for s in standings
    ]
    return f"{title}\n\n" + "\n".join(lines)


# ─── Battle ─────────────────────────────────────────────────────

def battle_lobby_message() -> str:
    return "A new battle has been created! One more player can join to start it."


def battle_joined_message(participant_id: str) -> str:
    return f"{mention(participant_id)} joined the battle!"


def battle_join_rejected_message() -> str:
    return "This battle is already full or you have already joined."


def battle_started_message(first: Combatant, second: Combatant, holder: Combatant) -> str:
    return (
        f"The battle between {mention(first.participant_id)} and "
        f"{mention(second.participant_id)} begins! "
        f"{mention(holder.participant_id)} moves first."
    )


def hp_line(c: Combatant) -> str:
    return f"{mention(c.participant_id)}: {c.hit_points}/{c.max_hit_points} HP"


def turn_prompt(session: Session, battle: BattleState) -> str:
    return (
        f"⚔️ Turn {session.round_number}: {mention(battle.turn_holder.participant_id)}, "
        f"describe your attack! ({session.config.time_limit_seconds:g}s)"
    )


def turn_report(narration: str, attacker: Combatant, defender: Combatant) -> str:
    return (
        f"**--- Turn ---**\n{narration}\n{hp_line(attacker)}\n{hp_line(defender)}"
    )


def turn_timeout_notice(idle: Combatant) -> str:
    return f"⏰ {mention(idle.participant_id)} hesitated and lost the turn."


def turn_failed_notice(attacker: Combatant) -> str:
    return f"The referee lost track of {mention(attacker.participant_id)}'s move. No damage this turn."


def battle_won_message(winner: Combatant, loser: Combatant) -> str:
    return (
        f"🎉 **The battle is over!** {mention(winner.participant_id)} defeated "
        f"{mention(loser.participant_id)}!"
    )


def battle_draw_message() -> str:
    return "The battle ended in a draw: nobody made a move."
