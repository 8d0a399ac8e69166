"""Runtime settings: collaborator URLs, data directory, timeouts.

Values come from the process environment, after loading .env from the
repository root. Game rules (tries budget, hint thresholds, TTL) are not
configurable and live as constants in the modules that own them.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

ROOT = Path(__file__).parent.parent
DEFAULT_DATA_DIR = ROOT / "data"

load_dotenv(ROOT / ".env")


class Settings(BaseModel):
    api_url: str = "http://localhost:8000"
    search_url: str = "https://api.jikan.moe/v4/anime"
    http_timeout: float = 10.0
    data_dir: Path = DEFAULT_DATA_DIR
    catalog_file: Path | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        catalog_file = os.getenv("ANIGAME_CATALOG_FILE", "")
        return cls(
            api_url=os.getenv("ANIGAME_API_URL", cls.model_fields["api_url"].default),
            search_url=os.getenv("ANIGAME_SEARCH_URL", cls.model_fields["search_url"].default),
            http_timeout=float(os.getenv("ANIGAME_HTTP_TIMEOUT", "10")),
            data_dir=Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR))),
            catalog_file=Path(catalog_file) if catalog_file else None,
        )
