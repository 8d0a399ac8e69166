"""Tests for anigame.challenges — generation, predicates, failure reasons."""

import random

import pytest

from anigame.challenges import (
    challenge_from_params,
    eligible_challenges,
    evaluate,
    failure_reason,
    generate_challenge,
)
from anigame.models import Anime


def _kinds(anime: Anime) -> set[str]:
    return {c.kind for c in eligible_challenges(anime, random.Random(0))}


def _challenge(anime: Anime, kind: str):
    for c in eligible_challenges(anime, random.Random(0)):
        if c.kind == kind:
            return c
    raise AssertionError(f"{kind} not eligible for {anime.title}")


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------

class TestEligibility:
    def test_full_record_offers_every_kind_but_any(self, by_title) -> None:
        kinds = _kinds(by_title["Fullmetal Alchemist: Brotherhood"])
        assert kinds == {
            "higher_score", "lower_score", "score_range",
            "has_genre", "different_genre", "multiple_genres",
            "same_studio", "different_studio", "has_tag",
            "same_source", "different_source",
            "same_year", "earlier_year", "later_year", "within_year_range",
            "more_episodes", "fewer_episodes",
        }

    def test_single_episode_never_offers_fewer_episodes(self, make_anime) -> None:
        for seed in range(20):
            anime = make_anime(episodes=1, score=7.0, genres=["Drama"])
            kinds = {c.kind for c in eligible_challenges(anime, random.Random(seed))}
            assert "fewer_episodes" not in kinds
            assert "more_episodes" in kinds

    def test_unknown_score_offers_no_score_challenges(self, make_anime) -> None:
        kinds = _kinds(make_anime(score=0, genres=["Drama"]))
        assert not kinds & {"higher_score", "lower_score", "score_range"}

    def test_single_genre_skips_multiple_genres(self, make_anime) -> None:
        kinds = _kinds(make_anime(genres=["Drama"]))
        assert "has_genre" in kinds
        assert "multiple_genres" not in kinds

    def test_duplicate_genres_count_once(self, make_anime) -> None:
        kinds = _kinds(make_anime(genres=["Drama", "Drama"]))
        assert "multiple_genres" not in kinds

    def test_no_attributes_means_no_eligible_challenges(self, make_anime) -> None:
        assert eligible_challenges(make_anime()) == []

    def test_generate_falls_back_to_any(self, make_anime) -> None:
        challenge = generate_challenge(make_anime(), random.Random(0))
        assert challenge.kind == "any"
        assert challenge.text == "Choose any anime to continue"
        assert evaluate(challenge, make_anime(mal_id=2))

    def test_generate_picks_from_eligible(self, by_title) -> None:
        anime = by_title["Steins;Gate"]
        eligible = _kinds(anime)
        for seed in range(30):
            assert generate_challenge(anime, random.Random(seed)).kind in eligible

    def test_score_range_clamped(self, make_anime) -> None:
        c = _challenge(make_anime(score=9.8), "score_range")
        assert c.params["low"] == pytest.approx(9.3)
        assert c.params["high"] == 10.0
        c = _challenge(make_anime(score=1.2), "score_range")
        assert c.params["low"] == 1.0


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

class TestScorePredicates:
    def test_higher_score_boundary(self, make_anime) -> None:
        c = _challenge(make_anime(score=8.0), "higher_score")
        assert evaluate(c, make_anime(mal_id=2, score=8.01))
        assert not evaluate(c, make_anime(mal_id=2, score=8.0))
        assert not evaluate(c, make_anime(mal_id=2, score=7.5))

    def test_higher_score_rejects_unknown(self, make_anime) -> None:
        c = _challenge(make_anime(score=8.0), "higher_score")
        assert not evaluate(c, make_anime(mal_id=2))
        assert not evaluate(c, make_anime(mal_id=2, score=0))

    def test_lower_score(self, make_anime) -> None:
        c = _challenge(make_anime(score=8.0), "lower_score")
        assert evaluate(c, make_anime(mal_id=2, score=7.9))
        assert not evaluate(c, make_anime(mal_id=2, score=8.0))
        assert not evaluate(c, make_anime(mal_id=2))

    def test_score_range_inclusive(self, make_anime) -> None:
        c = challenge_from_params("score_range", {"low": 7.5, "high": 8.5})
        assert evaluate(c, make_anime(score=7.5))
        assert evaluate(c, make_anime(score=8.5))
        assert not evaluate(c, make_anime(score=8.6))


class TestGenrePredicates:
    def test_has_genre(self, make_anime) -> None:
        c = challenge_from_params("has_genre", {"genre": "Action"})
        assert evaluate(c, make_anime(genres=["Comedy", "Action"]))
        assert not evaluate(c, make_anime(genres=["Comedy"]))

    def test_different_genre_needs_known_genres(self, make_anime) -> None:
        c = challenge_from_params("different_genre", {"genres": ["Action", "Drama"]})
        assert evaluate(c, make_anime(genres=["Comedy"]))
        assert not evaluate(c, make_anime(genres=["Comedy", "Drama"]))
        assert not evaluate(c, make_anime(genres=[]))

    def test_multiple_genres_needs_two_shared(self, make_anime) -> None:
        c = challenge_from_params(
            "multiple_genres", {"genres": ["Action", "Drama", "Fantasy"], "title": "FMA", "minimum": 2},
        )
        assert evaluate(c, make_anime(genres=["Drama", "Fantasy", "Romance"]))
        assert not evaluate(c, make_anime(genres=["Drama", "Romance"]))


class TestOtherPredicates:
    def test_same_studio(self, make_anime) -> None:
        c = challenge_from_params("same_studio", {"studio": "Bones"})
        assert evaluate(c, make_anime(studio="Bones"))
        assert not evaluate(c, make_anime(studio="Sunrise"))

    def test_different_studio_rejects_unknown(self, make_anime) -> None:
        c = challenge_from_params("different_studio", {"studio": "Bones"})
        assert evaluate(c, make_anime(studio="Sunrise"))
        assert not evaluate(c, make_anime(studio="Bones"))
        assert not evaluate(c, make_anime())

    def test_has_tag(self, make_anime) -> None:
        c = challenge_from_params("has_tag", {"tag": "Space"})
        assert evaluate(c, make_anime(tags=["Space"]))
        assert not evaluate(c, make_anime(tags=["Heist"]))

    def test_sources(self, make_anime) -> None:
        same = challenge_from_params("same_source", {"source": "Manga"})
        different = challenge_from_params("different_source", {"source": "Manga"})
        assert evaluate(same, make_anime(source="Manga"))
        assert evaluate(different, make_anime(source="Original"))
        assert not evaluate(different, make_anime())

    def test_years(self, make_anime) -> None:
        earlier = challenge_from_params("earlier_year", {"year": 2010})
        later = challenge_from_params("later_year", {"year": 2010})
        window = challenge_from_params("within_year_range", {"low": 2008, "high": 2012})
        assert evaluate(earlier, make_anime(release_date="2009-01-01"))
        assert not evaluate(earlier, make_anime(release_date="2010"))
        assert evaluate(later, make_anime(release_date="2011"))
        assert not evaluate(later, make_anime())
        assert evaluate(window, make_anime(release_date="2012-12-31"))
        assert not evaluate(window, make_anime(release_date="2013-01-01"))

    def test_episodes(self, make_anime) -> None:
        more = challenge_from_params("more_episodes", {"episodes": 12})
        fewer = challenge_from_params("fewer_episodes", {"episodes": 12})
        assert evaluate(more, make_anime(episodes=13))
        assert not evaluate(more, make_anime(episodes=12))
        assert evaluate(fewer, make_anime(episodes=11))
        assert not evaluate(fewer, make_anime(episodes=0))


# ---------------------------------------------------------------------------
# Rebuilding from durable data
# ---------------------------------------------------------------------------

class TestChallengeFromParams:
    def test_rebuilt_challenge_matches_generated(self, by_title) -> None:
        anime = by_title["Cowboy Bebop"]
        for original in eligible_challenges(anime, random.Random(3)):
            rebuilt = challenge_from_params(original.kind, original.params)
            assert rebuilt == original

    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(ValueError):
            challenge_from_params("same_director", {})

    def test_missing_params_rejected(self) -> None:
        with pytest.raises(ValueError):
            challenge_from_params("higher_score", {})

    def test_prompt_text(self) -> None:
        c = challenge_from_params("higher_score", {"score": 8.0})
        assert c.text == "Choose an anime with a HIGHER MAL score than 8.00"


# ---------------------------------------------------------------------------
# Failure reasons
# ---------------------------------------------------------------------------

class TestFailureReason:
    def test_higher_score_reason(self, make_anime) -> None:
        reference = make_anime(mal_id=1, title="A", score=8.0)
        candidate = make_anime(mal_id=3, title="C", score=7.0)
        c = _challenge(reference, "higher_score")
        assert failure_reason(c, reference, candidate) == "C has a score of 7.00, not higher than 8.00."

    def test_unknown_score_reason(self, make_anime) -> None:
        reference = make_anime(mal_id=1, title="A", score=8.0)
        candidate = make_anime(mal_id=3, title="C")
        c = _challenge(reference, "lower_score")
        assert "unknown score" in failure_reason(c, reference, candidate)

    def test_different_genre_names_shared_genres(self, make_anime) -> None:
        reference = make_anime(mal_id=1, title="A", genres=["Action", "Drama"])
        candidate = make_anime(mal_id=2, title="B", genres=["Drama", "Comedy"])
        c = challenge_from_params("different_genre", {"genres": ["Action", "Drama"]})
        assert failure_reason(c, reference, candidate) == "B shares genre(s): Drama with A."

    def test_reason_is_deterministic(self, make_anime) -> None:
        reference = make_anime(mal_id=1, title="A", studio="Bones")
        candidate = make_anime(mal_id=2, title="B", studio="Sunrise")
        c = challenge_from_params("same_studio", {"studio": "Bones"})
        assert failure_reason(c, reference, candidate) == failure_reason(c, reference, candidate)
        assert failure_reason(c, reference, candidate) == "B is made by Sunrise, not Bones."

    def test_year_reason(self, make_anime) -> None:
        reference = make_anime(mal_id=1, title="A", release_date="2010")
        candidate = make_anime(mal_id=2, title="B", release_date="2012-01-01")
        c = challenge_from_params("earlier_year", {"year": 2010})
        assert failure_reason(c, reference, candidate) == "B was released in 2012, not before 2010."
