"""Prompt Builders — natural-language instructions for the structured content each game needs.

Invariants:
    - Every prompt names the exact JSON keys the schemas in schemas/content.py validate
    - Prompts are pure strings; no provider specifics
"""

from arcade.core.session_state import Combatant, SessionConfig

QUIZ_SHAPE = """[
  {
    "question": "Question text?",
    "answers": ["A", "B", "C", "D"],
    "correctAnswerIndex": 0
  }
]"""

PICTURE_SHAPE = """[
  {
    "correctAnswer": "the word to guess",
    "imagePrompt": "English description of a picture that depicts the word",
    "options": ["A", "B", "C", "D"],
    "correctAnswerIndex": 0
  }
]"""


def quiz_prompt(cfg: SessionConfig) -> str:
    return (
        f'You are a quiz master. Write {cfg.num_rounds} multiple-choice questions about "{cfg.topic}".\n'
        f"Difficulty: {cfg.difficulty}. Tone: {cfg.tone}.\n"
        "Each question has exactly 4 answers and exactly 1 is correct. "
        "Vary the position of the correct answer.\n\n"
        f"Return EXACTLY this JSON array (no markdown):\n{QUIZ_SHAPE}"
    )


def picture_prompt(cfg: SessionConfig) -> str:
    return (
        f'Create {cfg.num_rounds} "catch the word" picture puzzles about "{cfg.topic}".\n'
        f"Difficulty: {cfg.difficulty}.\n"
        "Rules: describe a picture for an illustrator to draw; players look at the "
        "picture and guess the word. Give 4 options: 1 correct, 3 plausible distractors.\n\n"
        f"Return JSON only:\n{PICTURE_SHAPE}"
    )


def battle_prompt(attacker: Combatant, defender: Combatant, action: str) -> str:
    return (
        f"Setting: a duel between <@{attacker.participant_id}> "
        f"(HP: {attacker.hit_points}/{attacker.max_hit_points}) and "
        f"<@{defender.participant_id}> (HP: {defender.hit_points}/{defender.max_hit_points}).\n"
        f"It is <@{attacker.participant_id}>'s turn.\n"
        f'Their action: "{action}".\n'
        "Narrate this action vividly in two or three sentences and decide a fair "
        "damage value between 10 and 30 HP.\n"
        'JSON: { "description": "...", "damage": 20 }'
    )
