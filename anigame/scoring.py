"""Score formulas and achievement triggers.

Everything here is a pure function of terminal (or just-advanced) session
state: no clock, no randomness, no I/O.
"""

from __future__ import annotations

MAX_COMPARISON_SCORE = 10_000
ATTEMPT_PENALTY = 500
TIME_BLOCK_SECONDS = 30
TIME_BLOCK_PENALTY = 25

# rounds completed -> achievement id; awarded when the count is reached
CHAIN_MILESTONES: dict[int, str] = {
    1: "first_round",
    5: "round_5",
    10: "round_10",
    20: "round_20",
}

NO_HINTS_BEFORE = 10

ANONYMOUS = "Anonymous"


def chain_score(rounds_completed: int) -> int:
    return rounds_completed


def comparison_score(won: bool, attempts_used: int, elapsed_seconds: float) -> int:
    """Max 10000, -500 per attempt used, -25 per full 30 seconds. Zero on a loss."""
    if not won:
        return 0
    score = MAX_COMPARISON_SCORE
    score -= attempts_used * ATTEMPT_PENALTY
    score -= int(elapsed_seconds // TIME_BLOCK_SECONDS) * TIME_BLOCK_PENALTY
    return max(0, score)


def chain_achievements(rounds_completed: int) -> list[str]:
    """Achievements newly reached at exactly this round count."""
    achievement = CHAIN_MILESTONES.get(rounds_completed)
    return [achievement] if achievement else []


def comparison_achievements(won: bool, score: int, attempts_used: int, budget: int) -> list[str]:
    if not won:
        return []
    earned = ["first_guess"]
    if score == MAX_COMPARISON_SCORE:
        earned.append("perfect_score")
    if attempts_used < NO_HINTS_BEFORE:
        earned.append("no_hints")
    if attempts_used == budget:
        earned.append("last_chance")
    return earned


def can_earn_achievements(username: str | None) -> bool:
    return bool(username) and username != ANONYMOUS
