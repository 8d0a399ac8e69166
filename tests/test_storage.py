"""Tests for anigame.storage — slot files and slug helpers."""

import json

import pytest

from anigame.storage import Storage, slot_name, slugify


def test_slugify_basic():
    assert slugify("Spike Spiegel") == "spike-spiegel"


def test_slugify_unicode():
    assert slugify("Rémi Müller") == "remi-muller"


def test_slot_name_per_player():
    assert slot_name("anicom", "Spike Spiegel") == "anicom-spike-spiegel"


def test_slot_name_without_usable_name():
    assert slot_name("anicom", "!!!") == "anicom"


def test_creates_slots_dir(data_dir):
    Storage(data_dir)
    assert (data_dir / "slots").is_dir()


def test_write_then_read(storage):
    storage.write_slot("anicom", {"rounds": 3})
    assert storage.read_slot("anicom") == {"rounds": 3}


def test_read_missing_slot(storage):
    assert storage.read_slot("nothing") is None


def test_last_write_wins(storage):
    storage.write_slot("anicom", {"rounds": 1})
    storage.write_slot("anicom", {"rounds": 2})
    assert storage.read_slot("anicom") == {"rounds": 2}


def test_no_temp_file_left(storage, data_dir):
    storage.write_slot("anicom", {"rounds": 1})
    assert [p.name for p in (data_dir / "slots").iterdir()] == ["anicom.json"]


def test_corrupted_slot_raises(storage, data_dir):
    (data_dir / "slots" / "anicom.json").write_text("{not json")
    with pytest.raises(json.JSONDecodeError):
        storage.read_slot("anicom")


def test_delete_slot(storage):
    storage.write_slot("anicom", {})
    assert storage.delete_slot("anicom") is True
    assert storage.delete_slot("anicom") is False


def test_list_slots(storage):
    storage.write_slot("b", {})
    storage.write_slot("a", {})
    assert storage.list_slots() == ["a", "b"]


@pytest.mark.parametrize("slot", ["../escape", "", ".hidden", "a/b"])
def test_invalid_slot_names_rejected(storage, slot):
    with pytest.raises(ValueError):
        storage.write_slot(slot, {})
