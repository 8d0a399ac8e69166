"""JSON file storage for resumable game sessions.

All durable state lives in flat JSON files under a configurable base
directory. There is no database; reads and writes go through plain helper
methods that load and dump JSON.

Directory layout:

    {base}/
      slots/
        {slot}.json     ← one saved session per named slot
"""

from __future__ import annotations

import json
import re
import unicodedata
from pathlib import Path
from typing import Any

_SLOT_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def slugify(text: str) -> str:
    """Convert a player name to a slot-safe slug.

    "Rei Ayanami" → "rei-ayanami"
    """
    text = unicodedata.normalize("NFKD", text)
    text = text.encode("ascii", "ignore").decode("ascii")
    text = text.lower()
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-")


def slot_name(game_id: str, username: str) -> str:
    """Slot for one player's saved game, e.g. "anicom-rei-ayanami"."""
    slug = slugify(username)
    return f"{game_id}-{slug}" if slug else game_id


class Storage:
    def __init__(self, base_path: Path) -> None:
        self._slots_root = base_path / "slots"
        self._slots_root.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal path helpers
    # ------------------------------------------------------------------

    def _slot_file(self, slot: str) -> Path:
        if not _SLOT_RE.match(slot):
            raise ValueError(f"Invalid slot name {slot!r}")
        return self._slots_root / f"{slot}.json"

    def _read_json(self, path: Path) -> Any:
        return json.loads(path.read_text())

    def _write_json(self, path: Path, data: Any) -> None:
        # write-then-rename: readers never see a half-written slot
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(data, indent=2))
        tmp.replace(path)

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    def write_slot(self, slot: str, data: dict[str, Any]) -> None:
        """Overwrite a slot. Last write wins."""
        self._write_json(self._slot_file(slot), data)

    def read_slot(self, slot: str) -> Any | None:
        """Return the slot's decoded JSON, or None if the slot is empty.

        Raises ValueError for a corrupted slot (bad JSON or bad UTF-8);
        callers decide whether that is worth more than discarding it.
        """
        path = self._slot_file(slot)
        if not path.is_file():
            return None
        return self._read_json(path)

    def delete_slot(self, slot: str) -> bool:
        path = self._slot_file(slot)
        if not path.is_file():
            return False
        path.unlink()
        return True

    def list_slots(self) -> list[str]:
        return sorted(p.stem for p in self._slots_root.glob("*.json"))
