"""Racoon Arcade API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ArcadeError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Engine, registry, scheduler, provider and gateway are built once in the lifespan
      and torn down there: every pending timer is cancelled on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Services live on app.state and reach routes through api/dependencies.py,
      so tests can swap in an engine wired to fakes
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from arcade.api.error_handlers import register_error_handlers
from arcade.api.routes import channel_events, games, health
from arcade.config import Settings, get_settings
from arcade.core.domain_types import GameType
from arcade.infrastructure.anthropic_provider import AnthropicContentProvider
from arcade.infrastructure.event_gateway import EventStreamGateway
from arcade.infrastructure.observability import setup_logging
from arcade.infrastructure.scheduler import RoundScheduler
from arcade.services.content_generation import ContentGenerationClient
from arcade.services.game_engine import GameEngine
from arcade.services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)


def build_engine(
    settings: Settings, provider: AnthropicContentProvider, gateway: EventStreamGateway,
) -> GameEngine:
    generator = ContentGenerationClient(
        provider,
        max_attempts=settings.generation_max_attempts,
        base_delay_ms=settings.generation_base_delay_ms,
    )
    return GameEngine(
        SessionRegistry(RoundScheduler()),
        generator,
        gateway,
        advance_delays={
            GameType.QUIZ: settings.quiz_advance_delay_seconds,
            GameType.PICTURE_RACE: settings.picture_advance_delay_seconds,
        },
        battle_max_hit_points=settings.battle_max_hit_points,
        battle_max_idle_turns=settings.battle_max_idle_turns,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    provider = AnthropicContentProvider(
        api_key=settings.anthropic_api_key,
        model=settings.anthropic_model,
        max_tokens=settings.anthropic_max_tokens,
        drawing_max_tokens=settings.drawing_max_tokens,
        timeout_seconds=settings.anthropic_timeout_seconds,
    )
    gateway = EventStreamGateway()
    app.state.gateway = gateway
    app.state.engine = build_engine(settings, provider, gateway)
    logger.info("Racoon Arcade API started")
    yield
    logger.info("Racoon Arcade API shutting down")
    await app.state.engine.shutdown()
    await provider.close()


app = FastAPI(title="Racoon Arcade API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(games.router)
app.include_router(channel_events.router)

register_error_handlers(app)
