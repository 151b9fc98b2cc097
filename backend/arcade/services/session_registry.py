"""Session Registry — the one-live-session-per-(community, game type) invariant.

Invariants:
    - create() is synchronous: the slot is reserved before any content generation starts
    - Two creates for the same key can never both succeed (no await between check and insert)
    - end() is idempotent and safe for absent keys
    - shutdown() tears down every session and clears all timers

Design Decisions:
    - Explicit service instance created in the app lifespan and injected, no module-level map
"""

import logging

from arcade.core.domain_types import ChannelId, GameType, ParticipantId, SessionKey
from arcade.core.errors import AlreadyActiveError, ErrorContext
from arcade.core.session_state import BattleState, Session, SessionConfig
from arcade.infrastructure.scheduler import RoundScheduler

logger = logging.getLogger(__name__)


class SessionRegistry:
    """In-memory map of live sessions, owning their timers' lifetimes."""

    def __init__(self, scheduler: RoundScheduler):
        self.scheduler = scheduler
        self._sessions: dict[SessionKey, Session] = {}

    def create(
        self,
        key: SessionKey,
        creator_id: ParticipantId,
        channel_id: ChannelId,
        config: SessionConfig,
    ) -> Session:
        """Reserve the slot for key or raise AlreadyActiveError."""
        if key in self._sessions:
            raise AlreadyActiveError(
                str(key),
                context=ErrorContext(
                    community_id=key.community_id, game_type=key.game_type.value,
                ),
            )
        session = Session(
            key=key, created_by=creator_id, channel_id=channel_id, config=config,
            battle=BattleState() if key.game_type == GameType.BATTLE else None,
        )
        self._sessions[key] = session
        logger.info(
            f"Session created by {creator_id}",
            extra={
                "community_id": key.community_id,
                "game_type": key.game_type.value,
                "participant_id": creator_id,
            },
        )
        return session

    def get(self, key: SessionKey) -> Session | None:
        return self._sessions.get(key)

    def is_current(self, session: Session) -> bool:
        """Whether session is still the one registered under its key."""
        return self._sessions.get(session.key) is session

    def end(self, key: SessionKey) -> Session | None:
        """Release the slot and cancel its timer. Returns the removed session, if any."""
        self.scheduler.cancel(key)
        session = self._sessions.pop(key, None)
        if session is not None:
            logger.info(
                "Session released",
                extra={"community_id": key.community_id, "game_type": key.game_type.value},
            )
        return session

    def release(self, session: Session) -> None:
        """Release session's slot only if it still owns it."""
        if self.is_current(session):
            self.end(session.key)

    def active_sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)

    async def shutdown(self) -> None:
        """Process stop: clear every timer, drop every session."""
        count = len(self._sessions)
        self._sessions.clear()
        await self.scheduler.shutdown()
        logger.info(f"Session registry shut down ({count} live sessions dropped)")
