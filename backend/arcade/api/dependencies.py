"""Request dependencies — services built in the lifespan, read from app.state."""

from fastapi import Request

from arcade.infrastructure.event_gateway import EventStreamGateway
from arcade.services.game_engine import GameEngine


def get_engine(request: Request) -> GameEngine:
    return request.app.state.engine


def get_gateway(request: Request) -> EventStreamGateway:
    return request.app.state.gateway
