"""Chain mode: keep naming anime that satisfy the current challenge.

Round flow:

    start()         load the catalog, resume a checkpoint or draw a reference
    submit_guess()  unknown / already used  -> re-prompt, nothing changes
                    satisfies the challenge -> +1 round, the guess becomes
                                               the next reference
                    misses                  -> failed, with a reason
    draw_round()    no unused anime can be drawn -> exhausted

Score is the number of rounds completed. Every live transition is
checkpointed; the slot is cleared once the game ends.
"""

from __future__ import annotations

import logging
import random

from anigame.catalog import Catalog, CatalogError
from anigame.challenges import evaluate, failure_reason, generate_challenge
from anigame.games.common import (
    GameStartError,
    full_details,
    report_achievements,
    report_score,
    search_with_fallback,
)
from anigame.models import Anime, ChainSession, ChainState, GuessOutcome, GuessRecord, ScoreSubmission
from anigame.persistence import SessionPersistence
from anigame.scoring import ANONYMOUS, chain_achievements, chain_score

logger = logging.getLogger(__name__)

GAME_ID = "anicom"
BOARD_ID = "high_score"
MAX_DRAW_ATTEMPTS = 100
MIN_SUGGEST_LENGTH = 2

EXHAUSTED_MESSAGE = "No more anime available! Amazing run!"
UNKNOWN_TITLE_MESSAGE = "Anime not found. Please select from the suggestions."
ALREADY_USED_MESSAGE = "This anime has already been used! Choose a different one."
INACTIVE_MESSAGE = "This game is over. Start a new one to keep playing."


class ChainGameController:
    """Owns one chain session and applies player commands to it.

    Args:
        catalog:     Where anime, searches, scores and achievements go.
        persistence: Checkpoint store; None disables save/resume.
        username:    Reported with scores; "Anonymous" earns no achievements.
        rng:         Source of randomness for draws and challenge picks.
    """

    def __init__(
        self,
        catalog: Catalog,
        persistence: SessionPersistence | None = None,
        username: str = ANONYMOUS,
        rng: random.Random | None = None,
    ) -> None:
        self._catalog = catalog
        self._persistence = persistence
        self._username = username
        self._rng = rng or random.Random()
        self._pool: list[Anime] = []
        self._by_id: dict[int, Anime] = {}
        self._session: ChainSession | None = None

    @property
    def session(self) -> ChainSession:
        if self._session is None:
            raise RuntimeError("Game has not been started")
        return self._session

    @property
    def started(self) -> bool:
        return self._session is not None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def start(self, resume: bool = False) -> ChainSession:
        """Begin a game, or continue the checkpointed one when resume is set.

        Raises GameStartError if the catalog cannot be loaded or is empty.
        """
        try:
            pool = await self._catalog.fetch_catalog()
        except CatalogError as e:
            raise GameStartError(f"Failed to load anime data: {e}") from e
        if not pool:
            raise GameStartError("Failed to load anime data: catalog is empty")
        self._pool = pool
        self._by_id = {a.mal_id: a for a in pool}

        if resume and self._persistence is not None:
            restored = self._persistence.restore()
            if restored is not None:
                self._session = restored
                logger.info(
                    "Resumed chain session %s at round %d",
                    restored.session_id, restored.rounds_completed,
                )
                return restored

        self._session = ChainSession()
        logger.info("Started chain session %s with %d anime", self._session.session_id, len(pool))
        await self.draw_round()
        return self._session

    async def draw_round(self) -> ChainSession:
        """Draw an unused reference and a challenge for it.

        Rejection sampling: up to MAX_DRAW_ATTEMPTS random picks. If none is
        unused the session ends as exhausted.
        """
        session = self.session
        if session.terminal:
            return session
        for _ in range(MAX_DRAW_ATTEMPTS):
            pick = self._rng.choice(self._pool)
            if pick.mal_id not in session.used_ids:
                self._begin_round(pick)
                self._checkpoint()
                return session
        logger.info("No unused anime found after %d draws", MAX_DRAW_ATTEMPTS)
        await self._finish("exhausted", EXHAUSTED_MESSAGE)
        return session

    async def submit_guess(self, guess: Anime | str) -> GuessOutcome:
        """Judge a guess against the active challenge.

        A string is resolved to a title first. Unknown or repeated titles
        leave the session untouched.
        """
        session = self.session
        if session.terminal:
            return GuessOutcome(status="inactive", message=INACTIVE_MESSAGE)

        anime = guess if isinstance(guess, Anime) else await self._resolve(guess)
        if anime is None:
            return GuessOutcome(status="unknown_title", message=UNKNOWN_TITLE_MESSAGE)
        if anime.mal_id in session.used_ids:
            return GuessOutcome(status="already_used", message=ALREADY_USED_MESSAGE, anime=anime)

        reference, challenge = session.reference, session.challenge
        accepted = evaluate(challenge, anime)
        session.history.append(GuessRecord(index=len(session.history), anime=anime, accepted=accepted))

        if not accepted:
            reason = failure_reason(challenge, reference, anime)
            logger.info("Chain session %s: %s rejected (%s)", session.session_id, anime.title, challenge.kind)
            await self._finish("failed", reason)
            return GuessOutcome(status="failed", message=reason, anime=anime)

        session.rounds_completed += 1
        session.score = chain_score(session.rounds_completed)
        self._begin_round(anime)
        logger.info(
            "Chain session %s: %s accepted, round %d",
            session.session_id, anime.title, session.rounds_completed,
        )
        await report_achievements(
            self._catalog, GAME_ID, self._username, chain_achievements(session.rounds_completed),
        )
        self._checkpoint()
        return GuessOutcome(status="accepted", message=session.challenge.text, anime=anime)

    def abandon(self) -> None:
        """Drop the current game and its checkpoint without reporting a score."""
        if self._persistence is not None:
            self._persistence.clear()
        if self._session is not None:
            logger.info("Abandoned chain session %s", self._session.session_id)
        self._session = None

    async def suggest(self, query: str) -> list[Anime]:
        """Autocomplete candidates for query, minus anime already used."""
        if len(query.strip()) < MIN_SUGGEST_LENGTH:
            return []
        exclude = self._session.used_ids if self._session is not None else set()
        return await search_with_fallback(self._catalog, self._pool, query.strip(), exclude=exclude)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _begin_round(self, reference: Anime) -> None:
        session = self.session
        session.reference = reference
        session.used_ids.add(reference.mal_id)
        session.challenge = generate_challenge(reference, self._rng)

    async def _resolve(self, title: str) -> Anime | None:
        """Exact title match: cached catalog first, then remote search."""
        title = title.strip()
        if not title:
            return None
        for anime in self._pool:
            if anime.matches_title(title):
                return anime
        results = await search_with_fallback(self._catalog, self._pool, title)
        for anime in results:
            if anime.matches_title(title):
                return await full_details(self._catalog, self._by_id, anime)
        return None

    def _checkpoint(self) -> None:
        if self._persistence is not None:
            self._persistence.save(self.session)

    async def _finish(self, state: ChainState, reason: str) -> None:
        session = self.session
        session.state = state
        session.reason = reason
        session.score = chain_score(session.rounds_completed)
        if self._persistence is not None:
            self._persistence.clear()
        logger.info(
            "Chain session %s ended: %s after %d rounds",
            session.session_id, state, session.rounds_completed,
        )
        await report_score(self._catalog, ScoreSubmission(
            game_id=GAME_ID,
            board_id=BOARD_ID,
            username=self._username,
            score=session.score,
            metadata={"rounds": session.rounds_completed},
        ))
