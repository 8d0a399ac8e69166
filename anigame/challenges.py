"""Challenge generation and evaluation for chain mode.

A challenge is plain data: {kind, text, params}. Everything that acts on a
challenge is looked up by kind in the tables below:

    _PREDICATES   (params, candidate) -> bool
    _TEXTS        params -> prompt shown to the player
    _REASONS      (params, reference, candidate) -> why a guess failed

so a challenge restored from a snapshot behaves exactly like a freshly
generated one. Adding a kind means one entry in each table plus a line in
eligible_challenges() stating its precondition.

Predicates never treat a missing attribute as a value: a candidate without a
score fails every score challenge, a candidate without a studio is not
"from a different studio", and so on.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Callable

from anigame.models import Anime, Challenge

logger = logging.getLogger(__name__)

SCORE_FLOOR = 1.0
SCORE_CEILING = 10.0
SCORE_RANGE_SPREAD = 0.5
YEAR_RANGE_SPREAD = 2
MIN_SHARED_GENRES = 2

Params = dict[str, Any]
Predicate = Callable[[Params, Anime], bool]


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def _shared_genres(params: Params, candidate: Anime) -> list[str]:
    wanted = set(params["genres"])
    return [g for g in candidate.genres if g in wanted]


def _higher_score(params: Params, candidate: Anime) -> bool:
    score = candidate.known_score
    return score is not None and score > params["score"]


def _lower_score(params: Params, candidate: Anime) -> bool:
    score = candidate.known_score
    return score is not None and score < params["score"]


def _score_range(params: Params, candidate: Anime) -> bool:
    score = candidate.known_score
    return score is not None and params["low"] <= score <= params["high"]


def _has_genre(params: Params, candidate: Anime) -> bool:
    return params["genre"] in candidate.genres


def _different_genre(params: Params, candidate: Anime) -> bool:
    return bool(candidate.genres) and not _shared_genres(params, candidate)


def _multiple_genres(params: Params, candidate: Anime) -> bool:
    return len(set(_shared_genres(params, candidate))) >= params.get("minimum", MIN_SHARED_GENRES)


def _same_studio(params: Params, candidate: Anime) -> bool:
    return candidate.known_studio == params["studio"]


def _different_studio(params: Params, candidate: Anime) -> bool:
    studio = candidate.known_studio
    return studio is not None and studio != params["studio"]


def _has_tag(params: Params, candidate: Anime) -> bool:
    return params["tag"] in candidate.tag_names


def _same_source(params: Params, candidate: Anime) -> bool:
    return candidate.known_source == params["source"]


def _different_source(params: Params, candidate: Anime) -> bool:
    source = candidate.known_source
    return source is not None and source != params["source"]


def _same_year(params: Params, candidate: Anime) -> bool:
    return candidate.year == params["year"]


def _earlier_year(params: Params, candidate: Anime) -> bool:
    year = candidate.year
    return year is not None and year < params["year"]


def _later_year(params: Params, candidate: Anime) -> bool:
    year = candidate.year
    return year is not None and year > params["year"]


def _within_year_range(params: Params, candidate: Anime) -> bool:
    year = candidate.year
    return year is not None and params["low"] <= year <= params["high"]


def _more_episodes(params: Params, candidate: Anime) -> bool:
    episodes = candidate.known_episodes
    return episodes is not None and episodes > params["episodes"]


def _fewer_episodes(params: Params, candidate: Anime) -> bool:
    episodes = candidate.known_episodes
    return episodes is not None and episodes < params["episodes"]


def _anything(params: Params, candidate: Anime) -> bool:
    return True


_PREDICATES: dict[str, Predicate] = {
    "higher_score": _higher_score,
    "lower_score": _lower_score,
    "score_range": _score_range,
    "has_genre": _has_genre,
    "different_genre": _different_genre,
    "multiple_genres": _multiple_genres,
    "same_studio": _same_studio,
    "different_studio": _different_studio,
    "has_tag": _has_tag,
    "same_source": _same_source,
    "different_source": _different_source,
    "same_year": _same_year,
    "earlier_year": _earlier_year,
    "later_year": _later_year,
    "within_year_range": _within_year_range,
    "more_episodes": _more_episodes,
    "fewer_episodes": _fewer_episodes,
    "any": _anything,
}


# ---------------------------------------------------------------------------
# Prompt texts
# ---------------------------------------------------------------------------

_TEXTS: dict[str, Callable[[Params], str]] = {
    "higher_score": lambda p: f"Choose an anime with a HIGHER MAL score than {p['score']:.2f}",
    "lower_score": lambda p: f"Choose an anime with a LOWER MAL score than {p['score']:.2f}",
    "score_range": lambda p: f"Choose an anime with a score between {p['low']:.2f} and {p['high']:.2f}",
    "has_genre": lambda p: f"Choose an anime that HAS the genre: {p['genre']}",
    "different_genre": lambda p: (
        f"Choose an anime that does NOT have any of these genres: {', '.join(p['genres'])}"
    ),
    "multiple_genres": lambda p: (
        f"Choose an anime that shares at least TWO genres with {p['title']}"
    ),
    "same_studio": lambda p: f"Choose an anime made by: {p['studio']}",
    "different_studio": lambda p: f"Choose an anime NOT made by: {p['studio']}",
    "has_tag": lambda p: f"Choose an anime that HAS the tag: {p['tag']}",
    "same_source": lambda p: f"Choose an anime with the same source material: {p['source']}",
    "different_source": lambda p: f"Choose an anime with a DIFFERENT source than: {p['source']}",
    "same_year": lambda p: f"Choose an anime released in the SAME YEAR: {p['year']}",
    "earlier_year": lambda p: f"Choose an anime released BEFORE {p['year']}",
    "later_year": lambda p: f"Choose an anime released AFTER {p['year']}",
    "within_year_range": lambda p: f"Choose an anime released between {p['low']} and {p['high']}",
    "more_episodes": lambda p: f"Choose an anime with MORE episodes than {p['episodes']}",
    "fewer_episodes": lambda p: f"Choose an anime with FEWER episodes than {p['episodes']}",
    "any": lambda p: "Choose any anime to continue",
}


# ---------------------------------------------------------------------------
# Failure reasons
# ---------------------------------------------------------------------------

def _fmt_score(score: float | None) -> str:
    return "unknown" if score is None else f"{score:.2f}"


def _list_or(values: list[str], empty: str) -> str:
    return ", ".join(values) if values else empty


def _reason_score(direction: str) -> Callable[[Params, Anime, Anime], str]:
    def reason(params: Params, reference: Anime, candidate: Anime) -> str:
        required = _fmt_score(params["score"])
        if candidate.known_score is None:
            return f"{candidate.title} has an unknown score, required: {direction} than {required}."
        return (
            f"{candidate.title} has a score of {_fmt_score(candidate.known_score)}, "
            f"not {direction} than {required}."
        )
    return reason


def _reason_score_range(params: Params, reference: Anime, candidate: Anime) -> str:
    if candidate.known_score is None:
        return f"{candidate.title} has an unknown score."
    return (
        f"{candidate.title} has a score of {_fmt_score(candidate.known_score)}, "
        f"not between {params['low']:.2f} and {params['high']:.2f}."
    )


def _reason_has_genre(params: Params, reference: Anime, candidate: Anime) -> str:
    genres = _list_or(candidate.genres, "no genres")
    return f"{candidate.title} has genres: {genres}, not {params['genre']}."


def _reason_different_genre(params: Params, reference: Anime, candidate: Anime) -> str:
    if not candidate.genres:
        return f"{candidate.title} has no known genres."
    shared = _list_or(_shared_genres(params, candidate), "unknown genres")
    return f"{candidate.title} shares genre(s): {shared} with {reference.title}."


def _reason_multiple_genres(params: Params, reference: Anime, candidate: Anime) -> str:
    genres = _list_or(candidate.genres, "no genres")
    shared = _shared_genres(params, candidate)
    minimum = params.get("minimum", MIN_SHARED_GENRES)
    if not shared:
        return (
            f"{candidate.title} has genres: {genres}, but shares no genres with "
            f"{params['title']} (required: at least {minimum})."
        )
    return (
        f"{candidate.title} has genres: {genres}, only {len(shared)} genre(s) match with "
        f"{params['title']} (required: at least {minimum})."
    )


def _reason_same_studio(params: Params, reference: Anime, candidate: Anime) -> str:
    studio = candidate.known_studio or "unknown studio"
    return f"{candidate.title} is made by {studio}, not {params['studio']}."


def _reason_different_studio(params: Params, reference: Anime, candidate: Anime) -> str:
    if candidate.known_studio is None:
        return f"{candidate.title} has an unknown studio, required: not {params['studio']}."
    return f"{candidate.title} is made by {candidate.known_studio}, same as {reference.title} ({params['studio']})."


def _reason_has_tag(params: Params, reference: Anime, candidate: Anime) -> str:
    tags = _list_or(candidate.tag_names, "no tags")
    return f"{candidate.title} has tags: {tags}, not {params['tag']}."


def _reason_same_source(params: Params, reference: Anime, candidate: Anime) -> str:
    source = candidate.known_source or "Unknown"
    return f"{candidate.title} has source: {source}, not {params['source']}."


def _reason_different_source(params: Params, reference: Anime, candidate: Anime) -> str:
    if candidate.known_source is None:
        return f"{candidate.title} has an unknown source, required: not {params['source']}."
    return f"{candidate.title} has source: {candidate.known_source}, same as {reference.title} ({params['source']})."


def _reason_year(relation: str) -> Callable[[Params, Anime, Anime], str]:
    def reason(params: Params, reference: Anime, candidate: Anime) -> str:
        required = f"{relation} {params['year']}".strip()
        if candidate.year is None:
            return f"{candidate.title} has an unknown release date, required: {required}."
        return f"{candidate.title} was released in {candidate.year}, not {required}."
    return reason


def _reason_year_range(params: Params, reference: Anime, candidate: Anime) -> str:
    if candidate.year is None:
        return f"{candidate.title} has an unknown release date."
    return (
        f"{candidate.title} was released in {candidate.year}, "
        f"not between {params['low']} and {params['high']}."
    )


def _reason_episodes(relation: str) -> Callable[[Params, Anime, Anime], str]:
    def reason(params: Params, reference: Anime, candidate: Anime) -> str:
        if candidate.known_episodes is None:
            return (
                f"{candidate.title} has an unknown episode count, "
                f"required: {relation} than {params['episodes']}."
            )
        return (
            f"{candidate.title} has {candidate.known_episodes} episodes, "
            f"not {relation} than {params['episodes']}."
        )
    return reason


_REASONS: dict[str, Callable[[Params, Anime, Anime], str]] = {
    "higher_score": _reason_score("higher"),
    "lower_score": _reason_score("lower"),
    "score_range": _reason_score_range,
    "has_genre": _reason_has_genre,
    "different_genre": _reason_different_genre,
    "multiple_genres": _reason_multiple_genres,
    "same_studio": _reason_same_studio,
    "different_studio": _reason_different_studio,
    "has_tag": _reason_has_tag,
    "same_source": _reason_same_source,
    "different_source": _reason_different_source,
    "same_year": _reason_year(""),
    "earlier_year": _reason_year("before"),
    "later_year": _reason_year("after"),
    "within_year_range": _reason_year_range,
    "more_episodes": _reason_episodes("more"),
    "fewer_episodes": _reason_episodes("fewer"),
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def challenge_from_params(kind: str, params: Params) -> Challenge:
    """Build a challenge (including its prompt text) from durable data.

    Raises:
        ValueError: kind is not a known challenge kind, or params are
            missing a key the prompt needs.
    """
    if kind not in _PREDICATES:
        raise ValueError(f"Unknown challenge kind {kind!r}")
    try:
        text = _TEXTS[kind](params)
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid params for challenge {kind!r}: {params!r}") from e
    return Challenge(kind=kind, text=text, params=dict(params))


def eligible_challenges(anime: Anime, rng: random.Random | None = None) -> list[Challenge]:
    """Every challenge the reference anime can support.

    A kind is only offered when the reference actually has the attribute it
    compares against. "Fewer episodes than 1" can never be satisfied, so
    fewer_episodes needs at least two episodes.
    """
    rng = rng or random.Random()
    out: list[Challenge] = []

    def add(kind: str, **params: Any) -> None:
        out.append(challenge_from_params(kind, params))

    score = anime.known_score
    if score is not None:
        add("higher_score", score=score)
        add("lower_score", score=score)
        add(
            "score_range",
            low=max(SCORE_FLOOR, score - SCORE_RANGE_SPREAD),
            high=min(SCORE_CEILING, score + SCORE_RANGE_SPREAD),
        )

    if anime.genres:
        genres = list(dict.fromkeys(anime.genres))
        add("has_genre", genre=rng.choice(genres))
        add("different_genre", genres=genres)
        if len(genres) >= MIN_SHARED_GENRES:
            add("multiple_genres", genres=genres, title=anime.title, minimum=MIN_SHARED_GENRES)

    studio = anime.known_studio
    if studio is not None:
        add("same_studio", studio=studio)
        add("different_studio", studio=studio)

    if anime.tags:
        add("has_tag", tag=rng.choice(anime.tag_names))

    source = anime.known_source
    if source is not None:
        add("same_source", source=source)
        add("different_source", source=source)

    year = anime.year
    if year is not None:
        add("same_year", year=year)
        add("earlier_year", year=year)
        add("later_year", year=year)
        add("within_year_range", low=year - YEAR_RANGE_SPREAD, high=year + YEAR_RANGE_SPREAD)

    episodes = anime.known_episodes
    if episodes is not None:
        add("more_episodes", episodes=episodes)
        if episodes > 1:
            add("fewer_episodes", episodes=episodes)

    return out


def generate_challenge(anime: Anime, rng: random.Random | None = None) -> Challenge:
    """Pick one eligible challenge uniformly, or the catch-all if none apply."""
    rng = rng or random.Random()
    pool = eligible_challenges(anime, rng)
    if not pool:
        logger.info("No usable attributes on %s (id=%d), falling back to 'any'", anime.title, anime.mal_id)
        return challenge_from_params("any", {})
    challenge = rng.choice(pool)
    logger.debug("challenge kind=%s params=%s for id=%d", challenge.kind, challenge.params, anime.mal_id)
    return challenge


def evaluate(challenge: Challenge, candidate: Anime) -> bool:
    """Return True if candidate satisfies the challenge."""
    return _PREDICATES[challenge.kind](challenge.params, candidate)


def failure_reason(challenge: Challenge, reference: Anime, candidate: Anime) -> str:
    """Explain, deterministically, why candidate does not satisfy challenge."""
    reason = _REASONS.get(challenge.kind)
    if reason is None:
        return "The selected anime does not meet the challenge requirements."
    return reason(challenge.params, reference, candidate)
