"""Content Generation Client — retrying, validating, normalizing calls to the content provider.

Invariants:
    - ProviderOverloadedError is retried with exponential backoff: base, 2x base, 4x base ...
    - At most max_attempts provider calls per generation; then GenerationFailedError("overloaded")
    - Any other provider failure propagates immediately as GenerationFailedError (no retry)
    - Unparseable / wrongly-shaped content is a GenerationFailedError("invalid_content"),
      never retried
    - Callers must handle GenerationFailedError; nothing here assumes success

Design Decisions:
    - Retry lives here, not in the provider: every provider implementation gets
      the same policy and tests can drive it with a scripted stub
    - No jitter: one caller per session, no shared rate limit to spread out
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from arcade.core.content_parsing import (
    parse_payload, picture_rounds, quiz_rounds, validate_payload,
)
from arcade.core.errors import ErrorContext, GenerationFailedError, ProviderOverloadedError
from arcade.core.repository_protocols import ContentProvider
from arcade.core.session_state import Combatant, Media, Round, SessionConfig
from arcade.schemas.content import BattleNarration, PictureRound, QuizQuestion
from arcade.services import prompts

logger = logging.getLogger(__name__)

T = TypeVar("T")

OVERLOADED = "overloaded"
PROVIDER_ERROR = "provider_error"


class ContentGenerationClient:
    """Wraps a ContentProvider with the retry and validation contract."""

    def __init__(
        self,
        provider: ContentProvider,
        max_attempts: int = 3,
        base_delay_ms: int = 1000,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.provider = provider
        self.max_attempts = max(1, max_attempts)
        self.base_delay_ms = base_delay_ms
        self._sleep = sleep

    # --- Generic contract ------------------------------------------------------

    async def generate(
        self, prompt: str, shape: Any, context: ErrorContext | None = None,
    ) -> Any:
        """Request structured content and return it validated against shape."""
        text = await self._with_retry(
            lambda: self.provider.complete(prompt), "complete", context,
        )
        try:
            return validate_payload(parse_payload(text), shape)
        except GenerationFailedError as e:
            logger.warning(
                f"Provider returned unusable content: {e.message}",
                extra=_log_extra(context, error_code=e.code),
            )
            e.context = context or e.context
            raise

    async def generate_media(self, prompt: str, context: ErrorContext | None = None) -> Media:
        return await self._with_retry(
            lambda: self.provider.render_image(prompt), "render_image", context,
        )

    def backoff_ms(self, attempt: int) -> int:
        """Delay before retrying after the given 1-based attempt."""
        return self.base_delay_ms * (2 ** (attempt - 1))

    # --- Game content ----------------------------------------------------------

    async def quiz_rounds(
        self, cfg: SessionConfig, context: ErrorContext | None = None,
    ) -> tuple[Round, ...]:
        questions = await self.generate(
            prompts.quiz_prompt(cfg), list[QuizQuestion], context,
        )
        return quiz_rounds(questions, cfg.num_rounds)

    async def picture_rounds(
        self, cfg: SessionConfig, context: ErrorContext | None = None,
    ) -> tuple[Round, ...]:
        items = await self.generate(
            prompts.picture_prompt(cfg), list[PictureRound], context,
        )
        return picture_rounds(items, cfg.num_rounds)

    async def battle_narration(
        self,
        attacker: Combatant,
        defender: Combatant,
        action: str,
        context: ErrorContext | None = None,
    ) -> BattleNarration:
        return await self.generate(
            prompts.battle_prompt(attacker, defender, action), BattleNarration, context,
        )

    # --- Retry -----------------------------------------------------------------

    async def _with_retry(
        self,
        call: Callable[[], Awaitable[T]],
        operation: str,
        context: ErrorContext | None,
    ) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await call()
            except ProviderOverloadedError:
                if attempt >= self.max_attempts:
                    logger.error(
                        f"Provider overloaded, giving up after {attempt} attempts ({operation})",
                        extra=_log_extra(context, attempt=attempt),
                    )
                    raise GenerationFailedError(
                        f"provider still overloaded after {attempt} attempts",
                        OVERLOADED, attempts=attempt, context=context,
                    )
                delay = self.backoff_ms(attempt)
                logger.warning(
                    f"Provider overloaded, retry after {delay}ms ({operation})",
                    extra=_log_extra(context, attempt=attempt, delay_ms=delay),
                )
                await self._sleep(delay / 1000)
            except GenerationFailedError as e:
                e.attempts = attempt
                raise
            except Exception as e:
                logger.error(
                    f"Unexpected provider error ({operation}): {e}",
                    extra=_log_extra(context, attempt=attempt), exc_info=True,
                )
                raise GenerationFailedError(
                    str(e) or type(e).__name__, PROVIDER_ERROR,
                    attempts=attempt, context=context,
                )


def _log_extra(context: ErrorContext | None, **fields: Any) -> dict:
    extra = dict(fields)
    if context is not None:
        extra.update(
            community_id=context.community_id,
            game_type=context.game_type,
            round_number=context.round_number,
        )
    return extra
