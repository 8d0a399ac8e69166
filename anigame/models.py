"""Core domain models.

Every engine component operates on these types. Pydantic is used for
validation and serialisation at every data boundary: catalog payloads,
session snapshots and API responses.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

ChallengeKind = Literal[
    "higher_score",
    "lower_score",
    "score_range",
    "has_genre",
    "different_genre",
    "multiple_genres",
    "same_studio",
    "different_studio",
    "has_tag",
    "same_source",
    "different_source",
    "same_year",
    "earlier_year",
    "later_year",
    "within_year_range",
    "more_episodes",
    "fewer_episodes",
    "any",
]

ChainState = Literal["active", "exhausted", "failed"]
ComparisonState = Literal["active", "won", "lost"]
ComparisonMode = Literal["daily", "unlimited"]
Direction = Literal["higher", "lower"]

GuessStatus = Literal[
    "accepted",         # chain: challenge satisfied, next round started
    "failed",           # chain: challenge missed, session over
    "miss",            # comparison: wrong guess, tries left
    "won",
    "lost",
    "unknown_title",
    "already_used",
    "already_guessed",
    "inactive",
]

SkipStatus = Literal["skipped", "rejected", "lost", "inactive"]

_YEAR_RE = re.compile(r"\s*(\d+)")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid4().hex


# ---------------------------------------------------------------------------
# Catalog entities
# ---------------------------------------------------------------------------

class Tag(BaseModel):
    """A theme/tag attached to an anime. Primary tags describe the show best."""

    model_config = ConfigDict(frozen=True)

    name: str
    primary: bool = False


class MainCharacter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str | None = None
    image: str | None = None


class Anime(BaseModel):
    """An anime record as served by the catalog. Never mutated by the engine."""

    model_config = ConfigDict(frozen=True)

    mal_id: int
    title: str
    title_english: str | None = None
    score: float | None = None
    genres: list[str] = Field(default_factory=list)
    studio: str | None = None
    tags: list[Tag] = Field(default_factory=list)
    source: str | None = None
    release_date: str | None = None
    episodes: int | None = None
    image: str | None = None
    synopsis: str | None = None
    main_character: MainCharacter | None = None

    @field_validator("genres", mode="before")
    @classmethod
    def _coerce_genres(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [g["name"] if isinstance(g, dict) else g for g in value]
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [{"name": t} if isinstance(t, str) else t for t in value]
        return value

    @field_validator("release_date", mode="before")
    @classmethod
    def _coerce_release_date(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    # -- derived attributes -------------------------------------------------
    # Each returns None (or empty) when the attribute is unknown. The catalog
    # uses 0 for "no score" / "no episode count", so those count as unknown.

    @property
    def display_title(self) -> str:
        return self.title_english or self.title

    @property
    def known_score(self) -> float | None:
        if self.score is None or self.score <= 0:
            return None
        return self.score

    @property
    def known_episodes(self) -> int | None:
        if self.episodes is None or self.episodes <= 0:
            return None
        return self.episodes

    @property
    def known_studio(self) -> str | None:
        return self.studio.strip() if self.studio and self.studio.strip() else None

    @property
    def known_source(self) -> str | None:
        return self.source.strip() if self.source and self.source.strip() else None

    @property
    def year(self) -> int | None:
        """Release year, from either "2020" or "2020-01-15"."""
        if not self.release_date:
            return None
        match = _YEAR_RE.match(self.release_date)
        if not match:
            return None
        year = int(match.group(1))
        return year or None

    @property
    def studios(self) -> set[str]:
        """Studio names; co-productions are stored comma-separated."""
        if not self.known_studio:
            return set()
        return {s.strip() for s in self.known_studio.split(",") if s.strip()}

    @property
    def tag_names(self) -> list[str]:
        return [t.name for t in self.tags]

    def matches_title(self, text: str) -> bool:
        """Case-insensitive exact match against either title."""
        needle = text.strip().lower()
        if not needle:
            return False
        if self.title.lower() == needle:
            return True
        return bool(self.title_english) and self.title_english.lower() == needle


# ---------------------------------------------------------------------------
# Challenges (chain mode)
# ---------------------------------------------------------------------------

class Challenge(BaseModel):
    """What the next guess must satisfy.

    Only kind + params are data. The predicate is looked up by kind in
    anigame.challenges, so a challenge round-trips through JSON unchanged.
    """

    model_config = ConfigDict(frozen=True)

    kind: ChallengeKind
    text: str
    params: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Comparison results (comparison mode)
# ---------------------------------------------------------------------------

class GenreOverlap(BaseModel):
    correct: list[str] = Field(default_factory=list)  # guessed genres the target has
    wrong: list[str] = Field(default_factory=list)    # guessed genres the target lacks
    total: int = 0                                    # size of the target's genre set

    @property
    def count(self) -> int:
        return len(self.correct)


class TagOverlap(BaseModel):
    primary: list[str] = Field(default_factory=list)
    secondary: list[str] = Field(default_factory=list)
    wrong: list[str] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.primary) + len(self.secondary)


class ComparisonResult(BaseModel):
    correct: bool = False
    score_match: bool = False
    score_direction: Direction | None = None
    studio_match: bool = False
    release_match: bool = False
    release_direction: Direction | None = None
    source_match: bool = False
    genres: GenreOverlap = Field(default_factory=GenreOverlap)
    tags: TagOverlap = Field(default_factory=TagOverlap)

    @property
    def match_count(self) -> int:
        """How many headline attributes matched; 3+ marks a close guess."""
        return sum([
            self.score_match,
            self.studio_match,
            self.source_match,
            self.genres.count > 0,
        ])


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

class GuessRecord(BaseModel):
    """One entry in a session's append-only guess history."""

    index: int
    anime: Anime
    accepted: bool | None = None                # chain mode
    comparison: ComparisonResult | None = None  # comparison mode
    at: datetime = Field(default_factory=_now)


class ChainSession(BaseModel):
    session_id: str = Field(default_factory=_new_id)
    mode: Literal["chain"] = "chain"
    state: ChainState = "active"
    reference: Anime | None = None
    challenge: Challenge | None = None
    used_ids: set[int] = Field(default_factory=set)
    rounds_completed: int = 0
    score: int = 0
    history: list[GuessRecord] = Field(default_factory=list)
    reason: str | None = None  # set on termination
    created_at: datetime = Field(default_factory=_now)

    @property
    def terminal(self) -> bool:
        return self.state != "active"


class ComparisonSession(BaseModel):
    session_id: str = Field(default_factory=_new_id)
    mode: ComparisonMode = "daily"
    state: ComparisonState = "active"
    target: Anime
    budget: int = 21
    attempts_remaining: int = 21
    history: list[GuessRecord] = Field(default_factory=list)
    revealed: set[str] = Field(default_factory=set)
    hints: dict[str, Any] = Field(default_factory=dict)
    started_at: float = 0.0
    elapsed_seconds: int = 0
    score: int = 0
    created_at: datetime = Field(default_factory=_now)

    @property
    def attempts_used(self) -> int:
        return self.budget - self.attempts_remaining

    @property
    def terminal(self) -> bool:
        return self.state != "active"


class SavedChallenge(BaseModel):
    kind: ChallengeKind
    params: dict[str, Any] = Field(default_factory=dict)


class ChainSnapshot(BaseModel):
    """Durable form of a chain session. Holds no callables."""

    session_id: str
    reference: Anime
    challenge: SavedChallenge
    used_ids: list[int]
    rounds_completed: int
    score: int
    terminal: bool = False
    saved_at: float


# ---------------------------------------------------------------------------
# Collaborator payloads
# ---------------------------------------------------------------------------

class ScoreSubmission(BaseModel):
    game_id: str
    board_id: str
    username: str
    score: int
    metadata: dict[str, Any] = Field(default_factory=dict)


class AchievementUnlock(BaseModel):
    game_id: str
    username: str
    achievement_id: str


# ---------------------------------------------------------------------------
# Command results
# ---------------------------------------------------------------------------

class GuessOutcome(BaseModel):
    status: GuessStatus
    message: str = ""
    anime: Anime | None = None
    comparison: ComparisonResult | None = None

    @property
    def changed_state(self) -> bool:
        return self.status not in {"unknown_title", "already_used", "already_guessed", "inactive"}


class SkipOutcome(BaseModel):
    status: SkipStatus
    cost: int = 0
    tier: int = 0
    message: str = ""
