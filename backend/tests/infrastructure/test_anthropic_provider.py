"""Anthropic Content Provider — error mapping and response handling.

Tests cover:
    - 529 / 503 / overloaded_error body → ProviderOverloadedError
    - Other status codes, timeouts, connection errors → GenerationFailedError
    - Text blocks joined; SVG extracted for drawings
"""

from types import SimpleNamespace

import httpx
import pytest
from anthropic import APIConnectionError, APIStatusError, APITimeoutError

from arcade.core.errors import GenerationFailedError, ProviderOverloadedError
from arcade.infrastructure.anthropic_provider import AnthropicContentProvider, is_overloaded

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def _status_error(status, body=None):
    return APIStatusError(
        f"status {status}", response=httpx.Response(status, request=_REQUEST), body=body,
    )


def _response(*texts):
    return SimpleNamespace(
        content=[SimpleNamespace(type="text", text=t) for t in texts],
        usage=SimpleNamespace(input_tokens=12, output_tokens=34),
    )


class _Messages:
    def __init__(self, outcome):
        self.outcome = outcome
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class _Client:
    def __init__(self, outcome):
        self.messages = _Messages(outcome)
        self.closed = False

    async def close(self):
        self.closed = True


def _provider(outcome):
    return AnthropicContentProvider(
        api_key="sk-ant-test", model="claude-test", client=_Client(outcome),
    )


def test_overload_detection():
    assert is_overloaded(_status_error(529))
    assert is_overloaded(_status_error(503))
    assert is_overloaded(_status_error(500, {"error": {"type": "overloaded_error"}}))
    assert not is_overloaded(_status_error(429))
    assert not is_overloaded(RuntimeError("x"))


async def test_overloaded_status_maps_to_overload():
    with pytest.raises(ProviderOverloadedError):
        await _provider(_status_error(529)).complete("hi")


async def test_bad_request_maps_to_generation_failed():
    with pytest.raises(GenerationFailedError) as exc:
        await _provider(_status_error(400)).complete("hi")

    assert exc.value.reason == "provider_error"


async def test_timeout_maps_to_generation_failed():
    with pytest.raises(GenerationFailedError):
        await _provider(APITimeoutError(request=_REQUEST)).complete("hi")


async def test_connection_error_maps_to_generation_failed():
    with pytest.raises(GenerationFailedError):
        await _provider(APIConnectionError(request=_REQUEST)).complete("hi")


async def test_complete_joins_text_blocks():
    provider = _provider(_response('[{"a": ', "1}]"))

    text = await provider.complete("give me json")

    assert text == '[{"a": 1}]'
    sent = provider.client.messages.kwargs
    assert sent["model"] == "claude-test"
    assert sent["messages"] == [{"role": "user", "content": "give me json"}]


async def test_render_image_returns_svg_media():
    provider = _provider(_response('Here:\n<svg viewBox="0 0 1 1"><path d="M0 0"/></svg>'))

    media = await provider.render_image("a cat")

    assert media.data.startswith(b"<svg")
    assert media.mime_type == "image/svg+xml"
    assert "a cat" in provider.client.messages.kwargs["messages"][0]["content"]


async def test_render_image_without_svg_fails():
    with pytest.raises(GenerationFailedError):
        await _provider(_response("I cannot draw.")).render_image("a cat")


async def test_close_closes_client():
    provider = _provider(_response("x"))

    await provider.close()

    assert provider.client.closed
