"""Persistencia SQLite de la configuracion de la app."""

from __future__ import annotations

import logging
import os
import sqlite3
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TypeVar

from glucose_log.sorting import SortDirection, SortKey

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

SETTINGS_FILENAME = "settings.sqlite3"
DATA_DIR_ENV = "GLUCOSE_LOG_DIR"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS app_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

PAGE_SIZE_CHOICES: tuple[int, ...] = (5, 10, 20, 50)
FONT_SIZES: tuple[str, ...] = ("small", "medium", "large")
COLOUR_SCHEMES: tuple[str, ...] = ("light", "dark", "system")


@dataclass(frozen=True)
class AppSettings:
    """Configuracion persistida de la app."""

    page_size: int = 5
    font_size: str = "medium"
    colour_scheme: str = "system"
    sort_key: SortKey = SortKey.TIME
    sort_direction: SortDirection = SortDirection.DESC


def default_data_dir() -> Path:
    """$GLUCOSE_LOG_DIR if set, else ~/.glucose_log."""
    env = os.environ.get(DATA_DIR_ENV)
    if env:
        return Path(env).expanduser()
    return Path.home() / ".glucose_log"


class SettingsStore:
    """Repositorio SQLite key/value para la configuracion."""

    def __init__(self, db_path: Path) -> None:
        """Create store and ensure schema exists."""
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()

    def load(self) -> AppSettings:
        """Devuelve configuracion guardada o defaults."""
        with self._connect() as conn:
            rows = conn.execute("SELECT key, value FROM app_config").fetchall()
        values = {row["key"]: row["value"] for row in rows}
        defaults = AppSettings()
        return AppSettings(
            page_size=_parse_page_size(values.get("page_size"), defaults.page_size),
            font_size=_parse_choice(
                values.get("font_size"), FONT_SIZES, defaults.font_size
            ),
            colour_scheme=_parse_choice(
                values.get("colour_scheme"), COLOUR_SCHEMES, defaults.colour_scheme
            ),
            sort_key=_parse_enum(values.get("sort_key"), SortKey, defaults.sort_key),
            sort_direction=_parse_enum(
                values.get("sort_direction"), SortDirection, defaults.sort_direction
            ),
        )

    def save(self, settings: AppSettings) -> None:
        """Guarda la configuracion en tabla key/value."""
        payload = {
            "page_size": str(settings.page_size),
            "font_size": settings.font_size,
            "colour_scheme": settings.colour_scheme,
            "sort_key": settings.sort_key.value,
            "sort_direction": settings.sort_direction.value,
        }
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO app_config(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                payload.items(),
            )
            conn.commit()
        logger.debug("Saved settings to %s", self._db_path)


def _parse_page_size(raw: str | None, default: int) -> int:
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring invalid page_size %r", raw)
        return default
    return value if value >= 1 else default


def _parse_choice(raw: str | None, choices: tuple[str, ...], default: str) -> str:
    return raw if raw in choices else default


def _parse_enum(raw: str | None, enum_cls: type[E], default: E) -> E:
    try:
        return enum_cls(raw)
    except ValueError:
        return default
