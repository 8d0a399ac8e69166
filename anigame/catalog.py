"""Catalog client: the game engine's view of the REST backend.

The controllers depend on the Catalog protocol only:

    fetch_catalog()              every playable anime, full details
    fetch_entity_detail(mal_id)  one anime, full details
    fetch_target(mode)           hidden answer for comparison mode
    search_entities(query)       best-effort text search
    submit_score(submission)     leaderboard write
    unlock_achievement(unlock)   idempotent achievement write

Two implementations are provided:

    HttpCatalog    — real HTTP client for the site backend. Search goes to a
                     Jikan-compatible endpoint.
    StaticCatalog  — serves a fixed list from memory (or a JSON file) and
                     records writes. Used for offline play and in tests.

Every transport or protocol failure surfaces as CatalogError; deciding
whether that is fatal is the caller's business.
"""

from __future__ import annotations

import json
import logging
import random
from collections.abc import Iterable
from datetime import date
from pathlib import Path
from typing import Any, Callable, Protocol

import httpx
from pydantic import ValidationError

from anigame.models import AchievementUnlock, Anime, ComparisonMode, ScoreSubmission

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 15
CACHED_SEARCH_LIMIT = 10
SEARCHABLE_TYPES = {"TV", "Movie"}


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

class Catalog(Protocol):
    async def fetch_catalog(self) -> list[Anime]: ...

    async def fetch_entity_detail(self, mal_id: int) -> Anime: ...

    async def fetch_target(self, mode: ComparisonMode) -> Anime: ...

    async def search_entities(self, query: str) -> list[Anime]: ...

    async def submit_score(self, submission: ScoreSubmission) -> None: ...

    async def unlock_achievement(self, unlock: AchievementUnlock) -> bool: ...


# ---------------------------------------------------------------------------
# Local search helpers
# ---------------------------------------------------------------------------

def search_cached(
    catalog: Iterable[Anime],
    query: str,
    exclude: Iterable[int] = (),
    limit: int = CACHED_SEARCH_LIMIT,
) -> list[Anime]:
    """Case-insensitive substring match over both titles."""
    needle = query.strip().lower()
    if not needle:
        return []
    skip = set(exclude)
    matches: list[Anime] = []
    for anime in catalog:
        if anime.mal_id in skip:
            continue
        titles = (anime.title or "", anime.title_english or "")
        if any(needle in t.lower() for t in titles):
            matches.append(anime)
            if len(matches) >= limit:
                break
    return matches


def pick_best(results: list[Anime], query: str) -> Anime | None:
    """Exact title match if there is one, otherwise the top result."""
    for anime in results:
        if anime.matches_title(query):
            return anime
    return results[0] if results else None


def from_jikan(record: dict[str, Any]) -> Anime:
    """Map a Jikan v4 anime record onto the catalog shape."""
    studios = ", ".join(s["name"] for s in record.get("studios") or [] if s.get("name"))
    themes = (record.get("themes") or []) + (record.get("demographics") or [])
    aired_from = (record.get("aired") or {}).get("from")
    if record.get("year"):
        release_date = str(record["year"])
    elif aired_from:
        release_date = aired_from[:10]
    else:
        release_date = None
    image = ((record.get("images") or {}).get("jpg") or {}).get("image_url")
    return Anime(
        mal_id=record["mal_id"],
        title=record.get("title") or "",
        title_english=record.get("title_english"),
        score=record.get("score"),
        genres=[g["name"] for g in record.get("genres") or []],
        studio=studios or None,
        tags=[{"name": t["name"]} for t in themes if t.get("name")],
        source=record.get("source"),
        release_date=release_date,
        episodes=record.get("episodes"),
        image=image,
        synopsis=record.get("synopsis"),
    )


def _parse_list(payload: Any, what: str) -> list[Anime]:
    if not isinstance(payload, list):
        raise CatalogError(f"{what} must be a JSON array, got {type(payload).__name__}")
    out: list[Anime] = []
    for item in payload:
        try:
            out.append(Anime.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping malformed catalog record in %s: %s", what, e.errors()[:1])
    return out


def _parse_one(payload: Any, what: str) -> Anime:
    try:
        return Anime.model_validate(payload)
    except ValidationError as e:
        raise CatalogError(f"Malformed anime record from {what}") from e


# ---------------------------------------------------------------------------
# HttpCatalog — talks to the site backend
# ---------------------------------------------------------------------------

class HttpCatalog:
    """Async HTTP client for the game backend.

    Endpoints (relative to api_url):
      GET  /api/anidle/anime-full-list   -> [Anime, ...]
      GET  /api/anidle/anime/{mal_id}    -> Anime
      GET  /api/anidle/daily             -> Anime
      GET  /api/anidle/random            -> Anime
      POST /api/score                    {game_id, board_id, username, score, metadata}
      POST /api/achievements/unlock      {game_id, username, achievement_id}
                                         -> {"success": bool, "new_unlock": bool}

    Search uses search_url, a Jikan-compatible endpoint:
      GET  {search_url}?q=...&limit=15&sfw  -> {"data": [jikan record, ...]}

    Args:
        api_url:    Base URL of the backend, e.g. "http://localhost:8000".
        search_url: Full URL of the search endpoint.
        timeout:    HTTP timeout in seconds. Defaults to 10.
    """

    def __init__(
        self,
        api_url: str,
        search_url: str = "https://api.jikan.moe/v4/anime",
        timeout: float = 10.0,
    ) -> None:
        self._base_url = api_url.rstrip("/")
        self._search_url = search_url
        self._timeout = timeout

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        logger.debug("catalog %s %s", method, url)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                if method == "POST":
                    resp = await client.post(url, **kwargs)
                else:
                    resp = await client.get(url, **kwargs)
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise CatalogError(f"Cannot connect to catalog at {url}") from e
        except httpx.HTTPStatusError as e:
            raise CatalogError(f"Catalog returned HTTP {e.response.status_code} for {url}") from e
        except httpx.TimeoutException as e:
            raise CatalogError(f"Catalog timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise CatalogError(f"Catalog request failed: {e}") from e
        return resp

    def _json(self, resp: httpx.Response, what: str) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise CatalogError(f"Invalid JSON from {what}") from e

    async def fetch_catalog(self) -> list[Anime]:
        resp = await self._request("GET", f"{self._base_url}/api/anidle/anime-full-list")
        catalog = _parse_list(self._json(resp, "anime-full-list"), "anime-full-list")
        logger.info("Loaded %d anime with full details", len(catalog))
        return catalog

    async def fetch_entity_detail(self, mal_id: int) -> Anime:
        resp = await self._request("GET", f"{self._base_url}/api/anidle/anime/{mal_id}")
        return _parse_one(self._json(resp, f"anime/{mal_id}"), f"anime/{mal_id}")

    async def fetch_target(self, mode: ComparisonMode) -> Anime:
        endpoint = "daily" if mode == "daily" else "random"
        resp = await self._request("GET", f"{self._base_url}/api/anidle/{endpoint}")
        return _parse_one(self._json(resp, endpoint), endpoint)

    async def search_entities(self, query: str) -> list[Anime]:
        params = {"q": query, "limit": SEARCH_LIMIT, "sfw": "true"}
        resp = await self._request("GET", self._search_url, params=params)
        body = self._json(resp, "search")
        records = body.get("data") if isinstance(body, dict) else None
        if not isinstance(records, list):
            raise CatalogError("Unexpected response format from search endpoint")
        results: list[Anime] = []
        for record in records:
            if record.get("type") not in SEARCHABLE_TYPES:
                continue
            try:
                results.append(from_jikan(record))
            except (KeyError, ValidationError) as e:
                logger.debug("Skipping unusable search record: %s", e)
        return results

    async def submit_score(self, submission: ScoreSubmission) -> None:
        await self._request("POST", f"{self._base_url}/api/score", json=submission.model_dump())
        logger.info(
            "Score submitted game=%s board=%s score=%d",
            submission.game_id, submission.board_id, submission.score,
        )

    async def unlock_achievement(self, unlock: AchievementUnlock) -> bool:
        resp = await self._request(
            "POST", f"{self._base_url}/api/achievements/unlock", json=unlock.model_dump(),
        )
        try:
            body = resp.json()
        except ValueError:
            return False
        return bool(isinstance(body, dict) and body.get("new_unlock"))


# ---------------------------------------------------------------------------
# StaticCatalog — in-memory; no network calls
# ---------------------------------------------------------------------------

class StaticCatalog:
    """Serves a fixed anime list and records every write.

    The daily target is stable for a calendar day; the random target comes
    from the injected rng. Achievement unlocks are idempotent, like the real
    backend: unlocking twice reports new_unlock=False the second time.
    """

    def __init__(
        self,
        anime: Iterable[Anime],
        rng: random.Random | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._anime = list(anime)
        self._rng = rng or random.Random()
        self._today = today
        self.scores: list[ScoreSubmission] = []
        self.achievements: list[AchievementUnlock] = []

    @classmethod
    def from_file(cls, path: Path, **kwargs: Any) -> "StaticCatalog":
        try:
            payload = json.loads(Path(path).read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogError(f"Cannot read catalog file {path}") from e
        return cls(_parse_list(payload, str(path)), **kwargs)

    def _require_anime(self) -> None:
        if not self._anime:
            raise CatalogError("Catalog is empty")

    async def fetch_catalog(self) -> list[Anime]:
        return list(self._anime)

    async def fetch_entity_detail(self, mal_id: int) -> Anime:
        for anime in self._anime:
            if anime.mal_id == mal_id:
                return anime
        raise CatalogError(f"Unknown anime id {mal_id}")

    async def fetch_target(self, mode: ComparisonMode) -> Anime:
        self._require_anime()
        if mode == "daily":
            return self._anime[self._today().toordinal() % len(self._anime)]
        return self._rng.choice(self._anime)

    async def search_entities(self, query: str) -> list[Anime]:
        return search_cached(self._anime, query, limit=SEARCH_LIMIT)

    async def submit_score(self, submission: ScoreSubmission) -> None:
        self.scores.append(submission)

    async def unlock_achievement(self, unlock: AchievementUnlock) -> bool:
        if unlock in self.achievements:
            return False
        self.achievements.append(unlock)
        return True


# ---------------------------------------------------------------------------
# CatalogError — raised for all catalog connection and protocol failures
# ---------------------------------------------------------------------------

class CatalogError(RuntimeError):
    """Raised when the catalog cannot be reached or returns an error."""
