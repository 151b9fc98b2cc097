"""Racoon Arcade — game-session orchestration engine for community chat mini-games.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
