import random
from pathlib import Path

import pytest

from anigame.catalog import StaticCatalog
from anigame.models import Anime
from anigame.storage import Storage

ANIME_RECORDS = [
    {
        "mal_id": 5114,
        "title": "Fullmetal Alchemist: Brotherhood",
        "score": 9.1,
        "genres": ["Action", "Adventure", "Drama", "Fantasy"],
        "studio": "Bones",
        "tags": [{"name": "Military", "primary": True}, {"name": "Adult Cast"}],
        "source": "Manga",
        "release_date": "2009-04-05",
        "episodes": 64,
        "image": "https://cdn.example/fmab.jpg",
        "synopsis": "Two brothers search for the Philosopher's Stone.",
        "main_character": {"name": "Edward Elric", "image": "https://cdn.example/ed.jpg"},
    },
    {
        "mal_id": 9253,
        "title": "Steins;Gate",
        "score": 9.07,
        "genres": ["Drama", "Sci-Fi", "Suspense"],
        "studio": "White Fox",
        "tags": [{"name": "Time Travel", "primary": True}, {"name": "Psychological"}],
        "source": "Visual novel",
        "release_date": "2011-04-06",
        "episodes": 24,
    },
    {
        "mal_id": 1,
        "title": "Cowboy Bebop",
        "score": 8.75,
        "genres": ["Action", "Award Winning", "Sci-Fi"],
        "studio": "Sunrise",
        "tags": [{"name": "Space", "primary": True}, {"name": "Adult Cast"}],
        "source": "Original",
        "release_date": "1998-04-03",
        "episodes": 26,
    },
    {
        "mal_id": 32182,
        "title": "Mob Psycho 100",
        "score": 8.48,
        "genres": ["Action", "Comedy", "Supernatural"],
        "studio": "Bones",
        "tags": [{"name": "Super Power", "primary": True}],
        "source": "Web manga",
        "release_date": "2016-07-11",
        "episodes": 12,
    },
    {
        "mal_id": 32281,
        "title": "Kimi no Na wa.",
        "title_english": "Your Name.",
        "score": 8.83,
        "genres": ["Award Winning", "Drama", "Supernatural"],
        "studio": "CoMix Wave Films",
        "tags": [{"name": "Time Travel"}],
        "source": "Original",
        "release_date": "2016-08-26",
        "episodes": 1,
    },
]


@pytest.fixture
def anime_list() -> list[Anime]:
    return [Anime.model_validate(r) for r in ANIME_RECORDS]


@pytest.fixture
def by_title(anime_list):
    return {a.title: a for a in anime_list}


@pytest.fixture
def make_anime():
    """Factory for one-off anime; unspecified attributes are unknown."""
    def make(mal_id: int = 100, title: str = "Test Anime", **fields) -> Anime:
        return Anime(mal_id=mal_id, title=title, **fields)
    return make


@pytest.fixture
def catalog(anime_list) -> StaticCatalog:
    return StaticCatalog(anime_list, rng=random.Random(7))


@pytest.fixture
def data_dir(tmp_path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def storage(data_dir) -> Storage:
    return Storage(data_dir)
