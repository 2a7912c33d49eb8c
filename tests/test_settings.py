from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from glucose_log.settings import (
    DATA_DIR_ENV,
    AppSettings,
    SettingsStore,
    _parse_enum,
    default_data_dir,
)
from glucose_log.sorting import SortDirection, SortKey


def test_defaults_when_nothing_saved(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "cfg" / "settings.sqlite3")
    assert store.load() == AppSettings()


def test_save_and_load(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "settings.sqlite3")
    settings = AppSettings(
        page_size=20,
        font_size="large",
        colour_scheme="dark",
        sort_key=SortKey.GLUCOSE,
        sort_direction=SortDirection.ASC,
    )
    store.save(settings)
    assert SettingsStore(tmp_path / "settings.sqlite3").load() == settings


def test_invalid_stored_values_fall_back_to_defaults(tmp_path: Path) -> None:
    db_path = tmp_path / "settings.sqlite3"
    SettingsStore(db_path)
    with sqlite3.connect(db_path) as conn:
        conn.executemany(
            "INSERT INTO app_config(key, value) VALUES(?, ?)",
            [
                ("page_size", "many"),
                ("font_size", "huge"),
                ("colour_scheme", "purple"),
                ("sort_key", "note"),
                ("sort_direction", "sideways"),
            ],
        )
        conn.commit()
    assert SettingsStore(db_path).load() == AppSettings()


def test_non_positive_page_size_falls_back(tmp_path: Path) -> None:
    db_path = tmp_path / "settings.sqlite3"
    SettingsStore(db_path)
    with sqlite3.connect(db_path) as conn:
        conn.execute("INSERT INTO app_config(key, value) VALUES('page_size', '0')")
        conn.commit()
    assert SettingsStore(db_path).load().page_size == 5


def test_default_data_dir_from_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path / "custom"))
    assert default_data_dir() == tmp_path / "custom"


def test_default_data_dir_in_home(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(DATA_DIR_ENV, raising=False)
    assert default_data_dir() == Path.home() / ".glucose_log"


def test_parse_enum_falls_back_on_unknown_or_missing_value() -> None:
    assert _parse_enum("glucose", SortKey, SortKey.TIME) is SortKey.GLUCOSE
    assert _parse_enum("bogus", SortKey, SortKey.TIME) is SortKey.TIME
    assert _parse_enum(None, SortDirection, SortDirection.DESC) is SortDirection.DESC
