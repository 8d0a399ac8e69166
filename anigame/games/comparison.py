"""Comparison mode: find the hidden anime within a fixed number of tries.

Each guess is compared attribute by attribute against the target. Matched
attributes join the revealed clue set, which only ever grows. Hints unlock
as tries are used, and a player may skip ahead to the next hint by paying
the tries in between.

The game ends on a correct guess (won) or when the tries run out (lost).
Either way the full clue board and every hint are revealed, and a winning
score is submitted to the leaderboard for the session's mode.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from anigame.catalog import Catalog, CatalogError, pick_best
from anigame.comparison import all_clues, clue_board, compare, matched_clues
from anigame.games.common import (
    GameStartError,
    full_details,
    report_achievements,
    report_score,
    search_with_fallback,
)
from anigame.hints import HintScheduler, hint_content
from anigame.models import (
    Anime,
    ComparisonMode,
    ComparisonSession,
    ComparisonState,
    GuessOutcome,
    GuessRecord,
    ScoreSubmission,
    SkipOutcome,
)
from anigame.scoring import ANONYMOUS, comparison_achievements, comparison_score

logger = logging.getLogger(__name__)

GAME_ID = "anidle"
DEFAULT_BUDGET = 21

EMPTY_GUESS_MESSAGE = "Please enter an anime name!"
UNKNOWN_TITLE_MESSAGE = "Anime not found. Try another title."
ALREADY_GUESSED_MESSAGE = "You already guessed that anime!"
INACTIVE_MESSAGE = "This game is over."


class ComparisonGameController:
    """Owns one comparison session.

    Args:
        catalog:  Source of the target, lookups and leaderboard writes.
        mode:     "daily" (shared target) or "unlimited" (random target).
        username: Reported with scores; "Anonymous" earns no achievements.
        budget:   Number of tries.
        hints:    Hint tier schedule.
        clock:    Seconds clock used for the elapsed-time penalty.
    """

    def __init__(
        self,
        catalog: Catalog,
        mode: ComparisonMode = "daily",
        username: str = ANONYMOUS,
        budget: int = DEFAULT_BUDGET,
        hints: HintScheduler | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._catalog = catalog
        self._mode = mode
        self._username = username
        self._budget = budget
        self._hints = hints or HintScheduler()
        self._clock = clock
        self._pool: list[Anime] = []
        self._by_id: dict[int, Anime] = {}
        self._session: ComparisonSession | None = None

    @property
    def session(self) -> ComparisonSession:
        if self._session is None:
            raise RuntimeError("Game has not been started")
        return self._session

    @property
    def started(self) -> bool:
        return self._session is not None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def start(self) -> ComparisonSession:
        """Fetch a target and open a session. Raises GameStartError on failure."""
        try:
            target = await self._catalog.fetch_target(self._mode)
            pool = await self._catalog.fetch_catalog()
        except CatalogError as e:
            raise GameStartError(f"Failed to load game: {e}") from e
        self._pool = pool
        self._by_id = {a.mal_id: a for a in pool}
        self._session = ComparisonSession(
            mode=self._mode,
            target=target,
            budget=self._budget,
            attempts_remaining=self._budget,
            started_at=self._clock(),
        )
        logger.info("Started %s comparison session %s", self._mode, self._session.session_id)
        return self._session

    async def submit_guess(self, title: str) -> GuessOutcome:
        session = self.session
        if session.terminal:
            return GuessOutcome(status="inactive", message=INACTIVE_MESSAGE)

        title = title.strip()
        if not title:
            return GuessOutcome(status="unknown_title", message=EMPTY_GUESS_MESSAGE)
        if any(r.anime.matches_title(title) for r in session.history):
            return GuessOutcome(status="already_guessed", message=ALREADY_GUESSED_MESSAGE)

        anime = await self._resolve(title)
        if anime is None:
            return GuessOutcome(status="unknown_title", message=UNKNOWN_TITLE_MESSAGE)
        if any(r.anime.mal_id == anime.mal_id for r in session.history):
            return GuessOutcome(status="already_guessed", message=ALREADY_GUESSED_MESSAGE, anime=anime)

        result = compare(session.target, anime)
        session.attempts_remaining -= 1
        session.history.append(GuessRecord(index=len(session.history), anime=anime, comparison=result))
        session.revealed |= matched_clues(result)
        self._refresh_hints()
        logger.debug(
            "Comparison session %s: guess %s, %d matches, %d tries left",
            session.session_id, anime.title, result.match_count, session.attempts_remaining,
        )

        if result.correct:
            await self._finish("won")
            return GuessOutcome(
                status="won", message=f"Correct! The anime was {session.target.display_title}.",
                anime=anime, comparison=result,
            )
        if session.attempts_remaining <= 0:
            await self._finish("lost")
            return GuessOutcome(
                status="lost", message=f"Out of tries! The anime was {session.target.display_title}.",
                anime=anime, comparison=result,
            )
        return GuessOutcome(
            status="miss", message=f"{session.attempts_remaining} tries left.",
            anime=anime, comparison=result,
        )

    async def request_skip(self) -> SkipOutcome:
        """Pay tries to jump to the next hint tier.

        Rejected, with no change, past the final tier or when the player
        cannot afford it.
        """
        session = self.session
        if session.terminal:
            return SkipOutcome(status="inactive", message=INACTIVE_MESSAGE)

        cost = self._hints.skip_cost(session.attempts_used)
        if cost is None:
            return SkipOutcome(
                status="rejected", tier=self._hints.tier(session.attempts_used),
                message="All hints are already unlocked.",
            )
        if session.attempts_remaining - cost < 0:
            return SkipOutcome(
                status="rejected", cost=cost, tier=self._hints.tier(session.attempts_used),
                message=f"Not enough tries left to skip ({cost} needed).",
            )

        session.attempts_remaining -= cost
        self._refresh_hints()
        tier = self._hints.tier(session.attempts_used)
        logger.info("Comparison session %s: skipped to hint %d for %d tries", session.session_id, tier, cost)
        if session.attempts_remaining <= 0:
            await self._finish("lost")
            return SkipOutcome(
                status="lost", cost=cost, tier=tier,
                message=f"Out of tries! The anime was {session.target.display_title}.",
            )
        return SkipOutcome(status="skipped", cost=cost, tier=tier, message=f"Hint {tier} unlocked.")

    async def suggest(self, query: str) -> list[Anime]:
        if not query.strip():
            return []
        return await search_with_fallback(self._catalog, self._pool, query.strip())

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def board(self) -> dict[str, Any]:
        session = self.session
        return clue_board(session.target, session.revealed)

    def elapsed(self) -> int:
        session = self.session
        if session.terminal:
            return session.elapsed_seconds
        return int(self._clock() - session.started_at)

    def hint_status(self) -> dict[str, Any]:
        used = self.session.attempts_used
        return {
            "tier": self._hints.tier(used),
            "final_tier": self._hints.final_level,
            "next_threshold": self._hints.next_threshold(used),
            "skip_cost": self._hints.skip_cost(used),
            "can_skip": self._hints.can_skip(used, self.session.attempts_remaining),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _resolve(self, title: str) -> Anime | None:
        results = await search_with_fallback(self._catalog, self._pool, title)
        best = pick_best(results, title)
        if best is None:
            return None
        return await full_details(self._catalog, self._by_id, best)

    def _refresh_hints(self) -> None:
        session = self.session
        for tier in self._hints.unlocked(session.attempts_used):
            if tier.name not in session.hints:
                session.hints[tier.name] = hint_content(tier, session.target)

    async def _finish(self, state: ComparisonState) -> None:
        session = self.session
        session.state = state
        session.elapsed_seconds = int(self._clock() - session.started_at)
        session.revealed |= all_clues(session.target)
        for tier in self._hints.tiers:
            if tier.name not in session.hints:
                session.hints[tier.name] = hint_content(tier, session.target)
        won = state == "won"
        session.score = comparison_score(won, session.attempts_used, session.elapsed_seconds)
        logger.info(
            "Comparison session %s ended: %s after %d tries, score %d",
            session.session_id, state, session.attempts_used, session.score,
        )
        if not won:
            return
        await report_score(self._catalog, ScoreSubmission(
            game_id=GAME_ID,
            board_id=session.mode,
            username=self._username,
            score=session.score,
            metadata={
                "attempts_used": session.attempts_used,
                "elapsed_seconds": session.elapsed_seconds,
            },
        ))
        await report_achievements(
            self._catalog, GAME_ID, self._username,
            comparison_achievements(won, session.score, session.attempts_used, session.budget),
        )
