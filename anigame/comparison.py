"""Attribute-by-attribute diff between a guess and the hidden target.

compare() is pure: the same (target, guess) pair always yields the same
result, so a clue revealed by one guess is never contradicted by another.

Revealed clues are tracked as string keys:

    score, studio, release, source   headline attributes
    genre:<name>                     one of the target's genres
    tag:<name>                       one of the target's tags

A session only ever unions new keys into its set.
"""

from __future__ import annotations

from typing import Any

from anigame.models import Anime, ComparisonResult, Direction, GenreOverlap, TagOverlap

SCORE_TOLERANCE = 0.1

HEADLINE_CLUES = ("score", "studio", "release", "source")


def _direction(target: float | None, guess: float | None) -> Direction | None:
    """Where the target lies relative to the guess."""
    if target is None or guess is None or target == guess:
        return None
    return "higher" if target > guess else "lower"


def compare(target: Anime, guess: Anime) -> ComparisonResult:
    target_score = target.known_score
    guess_score = guess.known_score
    score_match = (
        target_score is not None
        and guess_score is not None
        and abs(target_score - guess_score) <= SCORE_TOLERANCE
    )

    target_year = target.year
    guess_year = guess.year
    release_match = target_year is not None and target_year == guess_year

    source_match = (
        target.known_source is not None
        and target.known_source == guess.known_source
    )

    target_genres = set(target.genres)
    guessed_genres = list(dict.fromkeys(guess.genres))
    genres = GenreOverlap(
        correct=[g for g in guessed_genres if g in target_genres],
        wrong=[g for g in guessed_genres if g not in target_genres],
        total=len(target_genres),
    )

    target_tags = {t.name: t.primary for t in target.tags}
    primary: list[str] = []
    secondary: list[str] = []
    wrong: list[str] = []
    for name in dict.fromkeys(guess.tag_names):
        if name not in target_tags:
            wrong.append(name)
        elif target_tags[name]:
            primary.append(name)
        else:
            secondary.append(name)

    return ComparisonResult(
        correct=target.mal_id == guess.mal_id,
        score_match=score_match,
        score_direction=None if score_match else _direction(target_score, guess_score),
        studio_match=bool(target.studios & guess.studios),
        release_match=release_match,
        release_direction=None if release_match else _direction(target_year, guess_year),
        source_match=source_match,
        genres=genres,
        tags=TagOverlap(primary=primary, secondary=secondary, wrong=wrong),
    )


def matched_clues(result: ComparisonResult) -> set[str]:
    """Clue keys a comparison result reveals about the target."""
    keys: set[str] = set()
    if result.score_match:
        keys.add("score")
    if result.studio_match:
        keys.add("studio")
    if result.release_match:
        keys.add("release")
    if result.source_match:
        keys.add("source")
    keys.update(f"genre:{g}" for g in result.genres.correct)
    keys.update(f"tag:{t}" for t in result.tags.primary + result.tags.secondary)
    return keys


def all_clues(target: Anime) -> set[str]:
    """Every clue key the target has; used for the end-of-game full reveal."""
    keys = set(HEADLINE_CLUES)
    keys.update(f"genre:{g}" for g in target.genres)
    keys.update(f"tag:{t}" for t in target.tag_names)
    return keys


def clue_board(target: Anime, revealed: set[str]) -> dict[str, Any]:
    """Target values for the revealed clues; None marks a still-hidden one."""
    def show(key: str, value: Any) -> Any:
        return value if key in revealed else None

    return {
        "score": show("score", target.known_score),
        "studio": show("studio", target.known_studio),
        "release": show("release", target.release_date),
        "source": show("source", target.known_source),
        "genres": [g if f"genre:{g}" in revealed else None for g in target.genres],
        "tags": [t if f"tag:{t}" in revealed else None for t in target.tag_names],
    }
