"""Service test fixtures — engine wired to fakes with tiny time limits.

Invariants:
    - Every test gets a fresh registry, scheduler, gateway and provider
    - Retry backoff never sleeps (no_sleep); round timers use real asyncio delays
    - Registry is shut down after each test so no timer outlives its test

Design Decisions:
    - Real RoundScheduler, not a fake clock: the timer/submission races under test are
      event-loop orderings, which a fake clock would hide
"""

import random

import pytest

from arcade.core.domain_types import GameType
from arcade.infrastructure.scheduler import RoundScheduler
from arcade.services.content_generation import ContentGenerationClient
from arcade.services.game_engine import GameEngine
from arcade.services.session_registry import SessionRegistry

from tests.services.fakes import FakeGateway, ScriptedProvider, no_sleep


@pytest.fixture
def provider():
    return ScriptedProvider()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def scheduler():
    return RoundScheduler()


@pytest.fixture
def registry(scheduler):
    return SessionRegistry(scheduler)


@pytest.fixture
async def engine(registry, provider, gateway):
    engine = GameEngine(
        registry,
        ContentGenerationClient(provider, max_attempts=3, base_delay_ms=1000, sleep=no_sleep),
        gateway,
        advance_delays={
            GameType.QUIZ: 0.0, GameType.PICTURE_RACE: 0.0, GameType.BATTLE: 0.0,
        },
        battle_max_hit_points=100,
        battle_max_idle_turns=2,
        rng=random.Random(7),
    )
    yield engine
    await engine.shutdown()


