"""Boundary Protocols — contracts between the engine and its external collaborators.

Invariants:
    - Engine code depends on these Protocols, never on concrete gateway/provider classes
    - Implementations are injected by main.py (or by tests as fakes)
    - Provider calls raise ProviderOverloadedError for transient overload, anything else otherwise

Design Decisions:
    - Protocol over ABC: structural subtyping, fakes need no inheritance
"""

from typing import Any, Protocol

from arcade.core.session_state import Media


class ChatGateway(Protocol):
    """Chat-platform delivery: round presentations and plain notices."""

    async def present_round(self, channel_id: str, content: dict[str, Any]) -> Any:
        """Post a round; returns a stable handle used to update it later."""
        ...

    async def edit_presentation(self, handle: Any, patch: dict[str, Any]) -> None: ...

    async def dispatch_notice(self, channel_id: str, text: str) -> None: ...


class ContentProvider(Protocol):
    """Generative content provider: raw text completions and picture rendering."""

    async def complete(self, prompt: str) -> str: ...

    async def render_image(self, prompt: str) -> Media: ...
