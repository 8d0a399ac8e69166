"""Progressive hint disclosure for comparison mode.

Tiers unlock by attempts used (guesses plus skipped attempts):

    tier 1   >= 10 used   cover image
    tier 2   >= 15 used   synopsis
    tier 3   >= 20 used   main character

A player may skip straight to the next tier by paying the attempts between
here and its threshold.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from anigame.models import Anime


@dataclass(frozen=True)
class HintTier:
    level: int
    threshold: int
    name: str


HINT_TIERS: tuple[HintTier, ...] = (
    HintTier(level=1, threshold=10, name="cover"),
    HintTier(level=2, threshold=15, name="synopsis"),
    HintTier(level=3, threshold=20, name="character"),
)

NO_SYNOPSIS = "No synopsis available."
NO_CHARACTER = "No character data available"


class HintScheduler:
    """Maps attempts used to a disclosure tier. Holds no session state."""

    def __init__(self, tiers: tuple[HintTier, ...] = HINT_TIERS) -> None:
        self._tiers = tuple(sorted(tiers, key=lambda t: t.threshold))

    @property
    def tiers(self) -> tuple[HintTier, ...]:
        return self._tiers

    @property
    def final_level(self) -> int:
        return self._tiers[-1].level if self._tiers else 0

    def tier(self, attempts_used: int) -> int:
        """Highest unlocked tier level, 0 when nothing is unlocked yet."""
        level = 0
        for t in self._tiers:
            if attempts_used >= t.threshold:
                level = t.level
        return level

    def unlocked(self, attempts_used: int) -> list[HintTier]:
        return [t for t in self._tiers if attempts_used >= t.threshold]

    def next_threshold(self, attempts_used: int) -> int | None:
        for t in self._tiers:
            if attempts_used < t.threshold:
                return t.threshold
        return None

    def skip_cost(self, attempts_used: int) -> int | None:
        """Attempts needed to reach the next tier; None past the final tier."""
        threshold = self.next_threshold(attempts_used)
        if threshold is None:
            return None
        return threshold - attempts_used

    def can_skip(self, attempts_used: int, attempts_remaining: int) -> bool:
        cost = self.skip_cost(attempts_used)
        return cost is not None and attempts_remaining - cost >= 0


def hint_content(tier: HintTier, target: Anime) -> Any:
    """What a tier discloses about the target."""
    if tier.name == "cover":
        return target.image
    if tier.name == "synopsis":
        return target.synopsis or NO_SYNOPSIS
    if tier.name == "character":
        if target.main_character is None:
            return {"name": NO_CHARACTER, "image": None}
        return {
            "name": target.main_character.name or "Unknown Character",
            "image": target.main_character.image,
        }
    raise ValueError(f"Unknown hint tier {tier.name!r}")
