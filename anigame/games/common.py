"""Pieces shared by both game controllers: start errors, degraded-mode
search, and best-effort reporting to the backend."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from anigame.catalog import Catalog, CatalogError, search_cached
from anigame.models import AchievementUnlock, Anime, ScoreSubmission
from anigame.scoring import can_earn_achievements

logger = logging.getLogger(__name__)


class GameStartError(RuntimeError):
    """Raised when a game cannot begin; no session is created."""


async def search_with_fallback(
    catalog: Catalog,
    cached: Iterable[Anime],
    query: str,
    exclude: Iterable[int] = (),
) -> list[Anime]:
    """Remote search, or substring search over the cached catalog when the
    remote call fails or finds nothing."""
    skip = set(exclude)
    try:
        results = [a for a in await catalog.search_entities(query) if a.mal_id not in skip]
    except CatalogError as e:
        logger.warning("Search for %r failed (%s), using cached catalog", query, e)
        results = []
    if results:
        return results
    return search_cached(cached, query, exclude=skip)


async def full_details(catalog: Catalog, cached: Mapping[int, Anime], anime: Anime) -> Anime:
    """The complete record for anime: cached copy, remote detail, or as-is."""
    if anime.mal_id in cached:
        return cached[anime.mal_id]
    try:
        return await catalog.fetch_entity_detail(anime.mal_id)
    except CatalogError as e:
        logger.warning("Detail lookup for id=%d failed (%s), using search record", anime.mal_id, e)
        return anime


async def report_score(catalog: Catalog, submission: ScoreSubmission) -> bool:
    try:
        await catalog.submit_score(submission)
    except CatalogError as e:
        logger.warning("Failed to submit %s score for %s: %s", submission.game_id, submission.username, e)
        return False
    return True


async def report_achievements(
    catalog: Catalog, game_id: str, username: str, achievement_ids: Iterable[str]
) -> list[str]:
    """Unlock each achievement; returns the ids the backend reported as new."""
    if not can_earn_achievements(username):
        return []
    unlocked: list[str] = []
    for achievement_id in achievement_ids:
        unlock = AchievementUnlock(game_id=game_id, username=username, achievement_id=achievement_id)
        try:
            if await catalog.unlock_achievement(unlock):
                unlocked.append(achievement_id)
        except CatalogError as e:
            logger.warning("Failed to unlock %s/%s for %s: %s", game_id, achievement_id, username, e)
    if unlocked:
        logger.info("Achievements unlocked for %s: %s", username, ", ".join(unlocked))
    return unlocked
