"""API test fixtures — the real FastAPI app with an engine wired to fakes.

Invariants:
    - app.state is populated by hand; the lifespan (and the real provider) never runs
    - Every test gets fresh engine state, torn down afterwards

Design Decisions:
    - httpx ASGITransport: exercises routing, validation and error handlers in-process
"""

import pytest
from httpx import ASGITransport, AsyncClient

from arcade.infrastructure.event_gateway import EventStreamGateway
from arcade.infrastructure.scheduler import RoundScheduler
from arcade.main import app
from arcade.services.content_generation import ContentGenerationClient
from arcade.services.game_engine import GameEngine
from arcade.services.session_registry import SessionRegistry

from tests.services.fakes import ScriptedProvider, no_sleep


@pytest.fixture
def provider():
    return ScriptedProvider()


@pytest.fixture
async def engine(provider):
    gateway = EventStreamGateway()
    engine = GameEngine(
        SessionRegistry(RoundScheduler()),
        ContentGenerationClient(provider, sleep=no_sleep),
        gateway,
    )
    app.state.engine = engine
    app.state.gateway = gateway
    yield engine
    await engine.shutdown()
    del app.state.engine
    del app.state.gateway


@pytest.fixture
async def client(engine):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
