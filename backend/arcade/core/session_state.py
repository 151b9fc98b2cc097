"""Session State — in-memory state of one running game, one dataclass per concept.

Invariants:
    - rounds is a tuple: immutable once generated
    - current_round_index only increases
    - answered_this_round and round_resolved are reset together when a round opens
    - battle is set iff game_type is BATTLE

Design Decisions:
    - In-memory, process-local: sessions are ephemeral and never persisted
    - Pure dataclasses: no IO, mutation rules live in state_machine.py and arbiter.py
"""

from dataclasses import dataclass, field

from arcade.core.domain_types import (
    ChannelId, GameType, ParticipantId, SessionKey, SessionStatus,
)


@dataclass(frozen=True)
class Media:
    """Generated picture attached to a round."""
    data: bytes
    mime_type: str = "image/svg+xml"
    filename: str = "puzzle.svg"


@dataclass(frozen=True)
class Round:
    """One step of broadcast play. Never partially generated."""
    material: str
    options: tuple[str, ...]
    correct_index: int
    answer_label: str | None = None
    image_prompt: str | None = None

    @property
    def correct_option(self) -> str:
        return self.options[self.correct_index]


@dataclass(frozen=True)
class SessionConfig:
    """Options chosen by the initiator at start time."""
    game_type: GameType
    topic: str = "general knowledge"
    num_rounds: int = 5
    time_limit_seconds: float = 15.0
    difficulty: str = "medium"
    tone: str = "neutral"
    opponent_id: ParticipantId | None = None


@dataclass
class ScoreEntry:
    """Accumulated score; tie_break_ms is lower-is-better."""
    score: int = 0
    tie_break_ms: int = 0


@dataclass
class Combatant:
    participant_id: ParticipantId
    hit_points: int
    max_hit_points: int

    @property
    def defeated(self) -> bool:
        return self.hit_points <= 0


@dataclass
class BattleState:
    """Turn-based combat: round == turn, exactly one action per turn."""
    combatants: list[Combatant] = field(default_factory=list)
    current_turn_index: int = 0
    log: list[str] = field(default_factory=list)
    idle_turns: int = 0

    @property
    def ready(self) -> bool:
        return len(self.combatants) == 2

    @property
    def turn_holder(self) -> Combatant:
        return self.combatants[self.current_turn_index]

    @property
    def opponent(self) -> Combatant:
        return self.combatants[(self.current_turn_index + 1) % 2]

    def combatant(self, participant_id: str) -> Combatant | None:
        for c in self.combatants:
            if c.participant_id == participant_id:
                return c
        return None

    @property
    def winner(self) -> Combatant | None:
        """The combatant whose opponent is at or below zero HP."""
        if not self.ready:
            return None
        first, second = self.combatants
        if second.defeated and not first.defeated:
            return first
        if first.defeated and not second.defeated:
            return second
        return None


@dataclass
class Session:
    """One live game for one community. Only the engine and arbiter mutate it."""
    key: SessionKey
    created_by: ParticipantId
    channel_id: ChannelId
    config: SessionConfig
    status: SessionStatus = SessionStatus.IDLE
    rounds: tuple[Round, ...] = ()
    current_round_index: int = 0
    scores: dict[ParticipantId, ScoreEntry] = field(default_factory=dict)
    answered_this_round: set[ParticipantId] = field(default_factory=set)
    round_resolved: bool = False
    round_started_at: float | None = None
    round_media: Media | None = None
    presentation: object | None = None
    battle: BattleState | None = None

    @property
    def game_type(self) -> GameType:
        return self.key.game_type

    @property
    def current_round(self) -> Round | None:
        if 0 <= self.current_round_index < len(self.rounds):
            return self.rounds[self.current_round_index]
        return None

    @property
    def round_number(self) -> int:
        """1-based round (or turn) number for display and logs."""
        return self.current_round_index + 1

    @property
    def has_more_rounds(self) -> bool:
        return self.current_round_index + 1 < len(self.rounds)

    @property
    def ended(self) -> bool:
        return self.status == SessionStatus.ENDED

    def log_extra(self) -> dict:
        """Structured logging fields for this session."""
        return {
            "community_id": self.key.community_id,
            "game_type": self.key.game_type.value,
            "round_number": self.round_number,
        }

    def snapshot(self) -> dict:
        """Serializable view for the status endpoint."""
        data: dict = {
            "community_id": self.key.community_id,
            "game_type": self.key.game_type.value,
            "status": self.status.value,
            "created_by": self.created_by,
            "channel_id": self.channel_id,
            "round_number": self.round_number,
            "total_rounds": len(self.rounds),
            "scores": {
                pid: {"score": e.score, "tie_break_ms": e.tie_break_ms}
                for pid, e in self.scores.items()
            },
        }
        if self.battle is not None:
            data["battle"] = {
                "combatants": [
                    {
                        "participant_id": c.participant_id,
                        "hit_points": c.hit_points,
                        "max_hit_points": c.max_hit_points,
                    }
                    for c in self.battle.combatants
                ],
                "current_turn_index": self.battle.current_turn_index,
                "log": list(self.battle.log),
            }
        return data
