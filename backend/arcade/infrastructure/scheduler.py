"""Round Scheduler — one cancellable asyncio timer per session key.

Invariants:
    - At most one pending timer per key; arming over a pending one raises TimerAlreadyArmedError
    - A cancelled timer never runs its callback
    - A firing timer leaves the pending map before its callback runs, so the
      callback may arm the next timer for the same key
    - Callback exceptions are logged, never propagated into the event loop
    - shutdown() cancels pending timers and callbacks that are still running

Design Decisions:
    - Plain asyncio tasks sleeping for the delay; no thread, no external scheduler
    - The scheduler does not know about rounds: stale-fire protection is the
      callback's job (registry identity + arbiter resolved-once flag)
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable

from arcade.core.errors import TimerAlreadyArmedError

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], Awaitable[None]]


class RoundScheduler:
    """Keyed timers for round deadlines and advance delays."""

    def __init__(self) -> None:
        self._pending: dict[Hashable, asyncio.Task] = {}
        self._running: set[asyncio.Task] = set()

    def arm(
        self, key: Hashable, delay: float, callback: TimerCallback, label: str = "deadline",
    ) -> None:
        """Schedule callback after delay seconds. Caller must cancel any pending timer first."""
        if key in self._pending:
            raise TimerAlreadyArmedError(str(key))
        task = asyncio.get_running_loop().create_task(
            self._fire(key, max(0.0, delay), callback, label),
            name=f"timer:{key}:{label}",
        )
        self._pending[key] = task
        logger.debug(f"[timer-set] key={key} label={label} delay={delay}s")

    def cancel(self, key: Hashable) -> bool:
        """Cancel the pending timer for key. Returns False if none was pending."""
        task = self._pending.pop(key, None)
        if task is None:
            return False
        task.cancel()
        logger.debug(f"[timer-cancel] key={key}")
        return True

    def is_armed(self, key: Hashable) -> bool:
        return key in self._pending

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def shutdown(self) -> None:
        """Cancel everything and wait for the tasks to unwind."""
        tasks = list(self._pending.values()) + list(self._running)
        self._pending.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._running.clear()

    async def _fire(
        self, key: Hashable, delay: float, callback: TimerCallback, label: str,
    ) -> None:
        await asyncio.sleep(delay)
        me = asyncio.current_task()
        if self._pending.get(key) is not me:
            return
        del self._pending[key]
        if me is not None:
            self._running.add(me)
        logger.debug(f"[timer-fire] key={key} label={label}")
        try:
            await callback()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                f"Timer callback failed (key={key}, label={label}): {e}", exc_info=True,
            )
        finally:
            if me is not None:
                self._running.discard(me)
