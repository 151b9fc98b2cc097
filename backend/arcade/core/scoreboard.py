"""Scoreboard — ranking with tie-break. Pure.

Invariants:
    - Order is score descending, then tie_break_ms ascending (faster wins ties)
    - Remaining ties keep insertion order (first scorer first)
"""

from dataclasses import dataclass

from arcade.core.session_state import ScoreEntry


@dataclass(frozen=True)
class Standing:
    rank: int
    participant_id: str
    score: int
    tie_break_ms: int


def rank_scores(scores: dict[str, ScoreEntry]) -> list[Standing]:
    """Ranked standings, 1-based."""
    ordered = sorted(
        scores.items(), key=lambda item: (-item[1].score, item[1].tie_break_ms),
    )
    return [
        Standing(idx + 1, pid, entry.score, entry.tie_break_ms)
        for idx, (pid, entry) in enumerate(ordered)
    ]


def leader(scores: dict[str, ScoreEntry]) -> Standing | None:
    standings = rank_scores(scores)
    return standings[0] if standings else None
