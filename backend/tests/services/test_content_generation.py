"""Content Generation Client — retry policy, validation and game-content shaping.

Tests cover:
    - Overload retried with doubling backoff, at most max_attempts calls
    - Non-overload failures and invalid content are never retried
    - Quiz / picture / battle payloads validated and normalized
"""

import pytest

from arcade.core.errors import ErrorContext, GenerationFailedError, ProviderOverloadedError
from arcade.core.session_state import Combatant
from arcade.schemas.content import BattleNarration
from arcade.services.content_generation import ContentGenerationClient

from tests.services.fakes import (
    SVG, ScriptedProvider, narration_json, picture_config, picture_json, quiz_config,
    quiz_json,
)


def _client(provider, sleeps=None, max_attempts=3):
    async def record_sleep(seconds):
        if sleeps is not None:
            sleeps.append(seconds)

    return ContentGenerationClient(
        provider, max_attempts=max_attempts, base_delay_ms=1000, sleep=record_sleep,
    )


# -- Retry ---------------------------------------------------------------------

async def test_two_overloads_then_success_makes_three_calls():
    provider = ScriptedProvider([ProviderOverloadedError(), ProviderOverloadedError(), quiz_json(3)])
    sleeps = []

    rounds = await _client(provider, sleeps).quiz_rounds(quiz_config())

    assert len(rounds) == 3
    assert len(provider.calls) == 3
    assert sleeps == [1.0, 2.0]


async def test_always_overloaded_gives_up_after_three_calls():
    provider = ScriptedProvider([ProviderOverloadedError() for _ in range(5)])

    with pytest.raises(GenerationFailedError) as exc:
        await _client(provider).quiz_rounds(quiz_config())

    assert exc.value.reason == "overloaded"
    assert exc.value.attempts == 3
    assert len(provider.calls) == 3


async def test_unexpected_error_not_retried():
    provider = ScriptedProvider([RuntimeError("socket closed"), quiz_json(3)])

    with pytest.raises(GenerationFailedError) as exc:
        await _client(provider).quiz_rounds(quiz_config())

    assert exc.value.reason == "provider_error"
    assert len(provider.calls) == 1


async def test_generation_failed_from_provider_propagates_without_retry():
    provider = ScriptedProvider([GenerationFailedError("timeout", "provider_error")])

    with pytest.raises(GenerationFailedError):
        await _client(provider).quiz_rounds(quiz_config())

    assert len(provider.calls) == 1


async def test_invalid_json_not_retried():
    provider = ScriptedProvider(["{not json", quiz_json(3)])

    with pytest.raises(GenerationFailedError) as exc:
        await _client(provider).quiz_rounds(quiz_config())

    assert exc.value.reason == "invalid_content"
    assert len(provider.calls) == 1


async def test_context_attached_to_failure():
    provider = ScriptedProvider(['[{"question": "Q"}]'])
    ctx = ErrorContext(community_id="guild-1", game_type="quiz", round_number=1)

    with pytest.raises(GenerationFailedError) as exc:
        await _client(provider).quiz_rounds(quiz_config(), ctx)

    assert exc.value.context.community_id == "guild-1"


def test_backoff_doubles():
    client = _client(ScriptedProvider())

    assert [client.backoff_ms(a) for a in (1, 2, 3)] == [1000, 2000, 4000]


def test_max_attempts_never_below_one():
    assert _client(ScriptedProvider(), max_attempts=0).max_attempts == 1


# -- Game content --------------------------------------------------------------

async def test_quiz_prompt_mentions_topic_and_count():
    provider = ScriptedProvider([quiz_json(3)])

    await _client(provider).quiz_rounds(quiz_config(num_rounds=3))

    assert "space" in provider.calls[0]
    assert "3" in provider.calls[0]


async def test_picture_rounds_from_fenced_json():
    provider = ScriptedProvider([picture_json(3)])

    rounds = await _client(provider).picture_rounds(picture_config())

    assert [r.answer_label for r in rounds] == ["cat", "sun", "key"]
    assert rounds[0].image_prompt == "a cartoon cat"
    assert rounds[0].correct_option == "cat"


async def test_generate_media_retries_overload():
    provider = ScriptedProvider(images=[ProviderOverloadedError(), SVG])

    media = await _client(provider).generate_media("a cartoon cat")

    assert media == SVG
    assert len(provider.image_calls) == 2


async def test_battle_narration_clamps_damage():
    provider = ScriptedProvider([narration_json(999)])
    alice = Combatant("alice", 100, 100)
    bob = Combatant("bob", 40, 100)

    narration = await _client(provider).battle_narration(alice, bob, "fireball")

    assert isinstance(narration, BattleNarration)
    assert narration.damage == 100
    assert "fireball" in provider.calls[0]
