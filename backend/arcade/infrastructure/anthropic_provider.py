"""Anthropic Content Provider — raw completions and SVG drawings from AsyncAnthropic.

Invariants:
    - No retries here: the SDK's own retries are disabled (max_retries=0),
      ContentGenerationClient owns the retry policy
    - Overload signals (HTTP 529 / 503, "overloaded_error") → ProviderOverloadedError
    - Every other failure → GenerationFailedError(reason="provider_error")
    - render_image returns an SVG document; anything else is a GenerationFailedError

Design Decisions:
    - Pictures are drawn as SVG by the text model: one provider, one API key
    - OverloadedError (529) is detected by status code on APIStatusError instead
      of relying on SDK re-exports
"""

import logging

import anthropic
from anthropic import APIConnectionError, APIStatusError, APITimeoutError

from arcade.core.content_parsing import extract_svg
from arcade.core.errors import GenerationFailedError, ProviderOverloadedError
from arcade.core.session_state import Media

logger = logging.getLogger(__name__)

_OVERLOADED_STATUSES = frozenset({503, 529})

PROVIDER_ERROR = "provider_error"

SYSTEM_PROMPT = (
    "You are the game master of a friendly community chat. "
    "When asked for JSON, answer with JSON only."
)

DRAWING_SYSTEM_PROMPT = (
    "You are an illustrator who draws with SVG. Reply with a single, self-contained "
    "<svg> element (viewBox 0 0 512 512, no external references, no text that gives "
    "away the subject). Do not add any explanation."
)


def is_overloaded(e: Exception) -> bool:
    """Check if error is a provider overload signal."""
    if isinstance(e, APIStatusError):
        if e.status_code in _OVERLOADED_STATUSES:
            return True
        body = e.body if isinstance(e.body, dict) else {}
        error = body.get("error") if isinstance(body.get("error"), dict) else {}
        return error.get("type") == "overloaded_error"
    return False


class AnthropicContentProvider:
    """ContentProvider backed by the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 4096,
        drawing_max_tokens: int = 8192,
        timeout_seconds: int = 120,
        client: anthropic.AsyncAnthropic | None = None,
    ):
        self.client = client or anthropic.AsyncAnthropic(
            api_key=api_key, timeout=timeout_seconds, max_retries=0,
        )
        self.model = model
        self.max_tokens = max_tokens
        self.drawing_max_tokens = drawing_max_tokens

    async def complete(self, prompt: str) -> str:
        return await self._create(SYSTEM_PROMPT, prompt, self.max_tokens)

    async def render_image(self, prompt: str) -> Media:
        text = await self._create(
            DRAWING_SYSTEM_PROMPT, f"Draw: {prompt}", self.drawing_max_tokens,
        )
        return Media(data=extract_svg(text))

    async def close(self) -> None:
        await self.client.close()

    async def _create(self, system: str, prompt: str, max_tokens: int) -> str:
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIStatusError as e:
            if is_overloaded(e):
                raise ProviderOverloadedError(f"Anthropic API overloaded ({e.status_code})")
            raise GenerationFailedError(str(e), PROVIDER_ERROR)
        except APITimeoutError:
            raise GenerationFailedError("API timeout", PROVIDER_ERROR)
        except APIConnectionError as e:
            raise GenerationFailedError(f"connection error: {e}", PROVIDER_ERROR)

        logger.info(
            "Anthropic API success",
            extra={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            },
        )
        return "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )
