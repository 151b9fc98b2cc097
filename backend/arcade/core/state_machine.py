"""Round Lifecycle State Machine — legal status transitions for a Session.

Invariants:
    - ENDED is terminal: nothing leaves it
    - Every non-terminal state can reach ENDED (cancellation, failures)
    - advance_round is the only writer of current_round_index
    - open_round is the only place answered_this_round / round_resolved are reset
"""

from arcade.core.domain_types import SessionStatus as S
from arcade.core.errors import InvalidTransitionError, ErrorContext
from arcade.core.session_state import Session


TRANSITIONS: dict[S, frozenset[S]] = {
    S.IDLE: frozenset({S.GENERATING_CONTENT, S.PRESENTING, S.ENDED}),
    S.GENERATING_CONTENT: frozenset({S.PRESENTING, S.RESOLVING, S.ENDED}),
    S.PRESENTING: frozenset({S.AWAITING_ANSWERS, S.RESOLVING, S.ENDED}),
    S.AWAITING_ANSWERS: frozenset({S.RESOLVING, S.ENDED}),
    S.RESOLVING: frozenset({S.ADVANCING, S.ENDED}),
    S.ADVANCING: frozenset({S.GENERATING_CONTENT, S.PRESENTING, S.ENDED}),
    S.ENDED: frozenset(),
}


def can_transition(current: S, target: S) -> bool:
    return target in TRANSITIONS[current]


def transition(session: Session, target: S) -> None:
    """Move session to target or raise InvalidTransitionError."""
    if not can_transition(session.status, target):
        raise InvalidTransitionError(
            session.status.value, target.value,
            context=ErrorContext(
                community_id=session.key.community_id,
                game_type=session.key.game_type.value,
                round_number=session.round_number,
            ),
        )
    session.status = target


def open_round(session: Session, started_at: float) -> None:
    """Presenting → AwaitingAnswers with a fresh answer set."""
    transition(session, S.AWAITING_ANSWERS)
    session.answered_this_round.clear()
    session.round_resolved = False
    session.round_started_at = started_at


def advance_round(session: Session) -> None:
    """Resolving → Advancing, moving the index forward by one."""
    transition(session, S.ADVANCING)
    session.current_round_index += 1
    session.round_media = None
    session.presentation = None


def end(session: Session) -> bool:
    """Force the session into ENDED. Returns False if it was already ended."""
    if session.status == S.ENDED:
        return False
    transition(session, S.ENDED)
    return True
