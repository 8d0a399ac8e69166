"""Tests for anigame.models."""

import pytest
from pydantic import ValidationError

from anigame.models import Anime, ChainSession, ComparisonSession, GuessOutcome, Tag


class TestAnime:
    def test_required_fields(self) -> None:
        a = Anime(mal_id=1, title="Cowboy Bebop")
        assert a.mal_id == 1
        assert a.title == "Cowboy Bebop"
        assert a.genres == []
        assert a.tags == []

    def test_missing_title_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Anime.model_validate({"mal_id": 1})

    def test_is_frozen(self) -> None:
        a = Anime(mal_id=1, title="x")
        with pytest.raises(ValidationError):
            a.title = "y"

    def test_genre_dicts_coerced_to_names(self) -> None:
        a = Anime.model_validate({"mal_id": 1, "title": "x", "genres": [{"name": "Action"}, "Drama"]})
        assert a.genres == ["Action", "Drama"]

    def test_tag_strings_coerced(self) -> None:
        a = Anime.model_validate({"mal_id": 1, "title": "x", "tags": ["Space", {"name": "Heist", "primary": True}]})
        assert a.tags == [Tag(name="Space"), Tag(name="Heist", primary=True)]
        assert a.tag_names == ["Space", "Heist"]

    def test_null_lists_become_empty(self) -> None:
        a = Anime.model_validate({"mal_id": 1, "title": "x", "genres": None, "tags": None})
        assert a.genres == []
        assert a.tags == []

    def test_integer_release_date_accepted(self) -> None:
        a = Anime.model_validate({"mal_id": 1, "title": "x", "release_date": 2016})
        assert a.release_date == "2016"
        assert a.year == 2016


class TestAnimeDerived:
    def test_year_from_full_date(self) -> None:
        assert Anime(mal_id=1, title="x", release_date="2009-04-05").year == 2009

    def test_year_unknown(self) -> None:
        assert Anime(mal_id=1, title="x").year is None
        assert Anime(mal_id=1, title="x", release_date="TBA").year is None

    def test_zero_score_is_unknown(self) -> None:
        assert Anime(mal_id=1, title="x", score=0).known_score is None
        assert Anime(mal_id=1, title="x", score=7.5).known_score == 7.5

    def test_zero_episodes_is_unknown(self) -> None:
        assert Anime(mal_id=1, title="x", episodes=0).known_episodes is None

    def test_blank_studio_is_unknown(self) -> None:
        a = Anime(mal_id=1, title="x", studio="  ")
        assert a.known_studio is None
        assert a.studios == set()

    def test_co_production_studios_split(self) -> None:
        a = Anime(mal_id=1, title="x", studio="Bones, Sunrise")
        assert a.studios == {"Bones", "Sunrise"}

    def test_display_title_prefers_english(self) -> None:
        a = Anime(mal_id=1, title="Kimi no Na wa.", title_english="Your Name.")
        assert a.display_title == "Your Name."
        assert Anime(mal_id=2, title="Monster").display_title == "Monster"

    def test_matches_title_either_title_case_insensitive(self) -> None:
        a = Anime(mal_id=1, title="Kimi no Na wa.", title_english="Your Name.")
        assert a.matches_title("kimi no na wa.")
        assert a.matches_title("  YOUR NAME. ")
        assert not a.matches_title("Your Name")
        assert not a.matches_title("")


class TestSessions:
    def test_chain_session_defaults(self) -> None:
        s = ChainSession()
        assert s.state == "active"
        assert not s.terminal
        assert s.used_ids == set()
        assert s.rounds_completed == 0
        assert len(s.session_id) == 32

    def test_session_ids_unique(self) -> None:
        assert ChainSession().session_id != ChainSession().session_id

    def test_comparison_attempts_used(self) -> None:
        s = ComparisonSession(target=Anime(mal_id=1, title="x"), budget=21, attempts_remaining=16)
        assert s.attempts_used == 5

    def test_comparison_terminal(self) -> None:
        s = ComparisonSession(target=Anime(mal_id=1, title="x"), state="won")
        assert s.terminal

    def test_invalid_state_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ChainSession(state="paused")


class TestGuessOutcome:
    def test_reprompts_do_not_change_state(self) -> None:
        for status in ("unknown_title", "already_used", "already_guessed", "inactive"):
            assert not GuessOutcome(status=status).changed_state

    def test_judged_guesses_change_state(self) -> None:
        for status in ("accepted", "failed", "miss", "won", "lost"):
            assert GuessOutcome(status=status).changed_state
