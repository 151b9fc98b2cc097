"""Content Parsing — turns untrusted provider text into validated round content.

Invariants:
    - Input is treated as untrusted: fences stripped, JSON parsed, shape validated
    - Any parse or shape failure raises GenerationFailedError(reason="invalid_content"),
      including loader and validator errors that are not ValidationError
    - A batch is all-or-nothing: one bad round rejects the whole batch
    - All functions are pure
"""

import json
import re
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from arcade.core.errors import GenerationFailedError
from arcade.core.session_state import Round
from arcade.schemas.content import PictureRound, QuizQuestion

T = TypeVar("T")

INVALID_CONTENT = "invalid_content"

_OPENING_FENCE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\r?\n?")
_CLOSING_FENCE = re.compile(r"\r?\n?```\s*$")
_EMBEDDED_FENCE = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\r?\n(.*?)```", re.DOTALL)


def strip_fences(text: str) -> str:
    """Remove a ```json / ``` fence around the payload if present.

    A fence that does not open the text (chatty preamble) is still unwrapped.
    """
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
        cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    else:
        embedded = _EMBEDDED_FENCE.search(cleaned)
        if embedded:
            cleaned = embedded.group(1)
    return cleaned.strip()


def parse_payload(text: str) -> Any:
    """Parse the structured (array or object) payload embedded in provider text."""
    cleaned = strip_fences(text or "")
    if not cleaned:
        raise GenerationFailedError("empty response", INVALID_CONTENT)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise GenerationFailedError(f"response is not JSON ({e.msg})", INVALID_CONTENT)
    except (ValueError, RecursionError) as e:
        # integer literals past the int conversion limit, absurdly deep nesting
        raise GenerationFailedError(
            f"response JSON cannot be loaded ({type(e).__name__})", INVALID_CONTENT,
        )
    if not isinstance(payload, (list, dict)):
        raise GenerationFailedError(
            f"expected an array or object, got {type(payload).__name__}", INVALID_CONTENT,
        )
    return payload


def validate_payload(payload: Any, shape: type[T] | Any) -> T:
    """Validate parsed JSON against a pydantic model or typing shape (e.g. list[Model])."""
    try:
        return TypeAdapter(shape).validate_python(payload)
    except ValidationError as e:
        first = e.errors()[0]
        where = ".".join(str(loc) for loc in first["loc"]) or "payload"
        raise GenerationFailedError(f"{where}: {first['msg']}", INVALID_CONTENT)
    except (ArithmeticError, TypeError, ValueError, RecursionError) as e:
        raise GenerationFailedError(
            f"payload could not be validated ({type(e).__name__}: {e})", INVALID_CONTENT,
        )


def quiz_rounds(questions: list[QuizQuestion], expected: int) -> tuple[Round, ...]:
    """Convert validated quiz questions into rounds, trimming any surplus."""
    if not questions:
        raise GenerationFailedError("no questions generated", INVALID_CONTENT)
    return tuple(
        Round(
            material=q.question,
            options=tuple(q.answers),
            correct_index=q.correct_answer_index,
        )
        for q in questions[:expected]
    )


def picture_rounds(items: list[PictureRound], expected: int) -> tuple[Round, ...]:
    """Convert validated picture puzzles into rounds, trimming any surplus."""
    if not items:
        raise GenerationFailedError("no puzzles generated", INVALID_CONTENT)
    return tuple(
        Round(
            material="Which word does this picture show?",
            options=tuple(p.options),
            correct_index=p.correct_answer_index,
            answer_label=p.correct_answer,
            image_prompt=p.image_prompt,
        )
        for p in items[:expected]
    )


_SVG_BLOCK = re.compile(r"<svg\b.*?</svg>", re.DOTALL | re.IGNORECASE)


def extract_svg(text: str) -> bytes:
    """Pull the first <svg>...</svg> document out of a drawing response."""
    match = _SVG_BLOCK.search(strip_fences(text or ""))
    if not match:
        raise GenerationFailedError("drawing response contains no <svg> element", INVALID_CONTENT)
    return match.group(0).encode("utf-8")
