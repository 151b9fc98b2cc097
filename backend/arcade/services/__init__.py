"""Services Layer — session registry, content generation and the game engine."""
