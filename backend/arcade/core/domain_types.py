"""Domain Types — rich types that replace bare primitives across the engine.

Invariants:
    - CommunityId, ParticipantId, ChannelId wrap str — never pass bare ids through core
    - SessionKey (community_id, game_type) is the only registry key
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NamedTuple, NewType


# ─── Identity Types ──────────────────────────────────────────────

CommunityId = NewType("CommunityId", str)
ParticipantId = NewType("ParticipantId", str)
ChannelId = NewType("ChannelId", str)


# ─── Enums ───────────────────────────────────────────────────────

class GameType(str, Enum):
    """Mini-games the engine can run. At most one live session per type per community."""
    QUIZ = "quiz"
    PICTURE_RACE = "picture_race"
    BATTLE = "battle"

    @property
    def is_broadcast(self) -> bool:
        """Broadcast variants let every participant race for the same round."""
        return self is not GameType.BATTLE


class SessionStatus(str, Enum):
    """Round lifecycle states — see core/state_machine.py for legal transitions."""
    IDLE = "idle"
    GENERATING_CONTENT = "generating_content"
    PRESENTING = "presenting"
    AWAITING_ANSWERS = "awaiting_answers"
    RESOLVING = "resolving"
    ADVANCING = "advancing"
    ENDED = "ended"


class RejectionReason(str, Enum):
    """Why the arbiter refused a submission. Values double as error codes."""
    NO_ACTIVE_ROUND = "NO_ACTIVE_ROUND"
    ALREADY_ANSWERED = "ALREADY_ANSWERED"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    INVALID_CHOICE = "INVALID_CHOICE"


class SessionKey(NamedTuple):
    """Composite registry key."""
    community_id: CommunityId
    game_type: GameType

    def __str__(self) -> str:
        return f"{self.community_id}:{self.game_type.value}"


# ─── Limits ──────────────────────────────────────────────────────

MIN_ROUNDS: int = 3
MAX_ROUNDS: int = 10
OPTIONS_PER_ROUND: int = 4
BATTLE_COMBATANTS: int = 2
