"""Persistencia de lecturas en un unico documento JSON.

El documento es un array plano de objetos lectura, sin cabecera ni version.
Cada mutacion lee el array completo, lo modifica y lo vuelve a escribir
entero; las lecturas mas nuevas van al principio.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any

from glucose_log.errors import (
    StorageReadFailure,
    StorageUnavailable,
    StorageWriteFailure,
)
from glucose_log.model import Page, Reading, new_id
from glucose_log.sorting import paginate

logger = logging.getLogger(__name__)

READINGS_FILENAME = "glucose.json"


class ReadingStore:
    """Single-file document store for glucose readings.

    One instance per running application; build it at startup, call
    ``initialize`` once, and hand it to whoever needs it. Mutations are
    serialized by an in-process lock so concurrent callers cannot lose
    each other's updates. Access from several processes is not supported.
    """

    def __init__(self, path: Path) -> None:
        """Create the store; nothing touches the disk until initialize()."""
        self._path = path
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def initialize(self) -> None:
        """Ensure the document exists and is readable, creating ``[]`` if absent.

        Safe to call more than once.

        Raises:
            StorageUnavailable: If the document cannot be created or read.
        """
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                if self._path.is_file():
                    self._path.read_bytes()
                    return
                self._write_raw([])
            except OSError as exc:
                logger.error("Readings store unavailable at %s: %s", self._path, exc)
                raise StorageUnavailable(self._path, str(exc)) from exc
            logger.info("Created empty readings store at %s", self._path)

    def append(self, reading: Reading) -> Reading:
        """Store a reading at the front of the collection.

        A reading without an id, or with an id already in the store, gets a
        fresh one.

        Returns:
            The reading as stored.

        Raises:
            StorageReadFailure: If the current document cannot be read.
            StorageWriteFailure: If the new document cannot be written.
        """
        with self._lock:
            items = self._load()
            taken = {item.id for item in items}
            stored = reading
            while not stored.id or stored.id in taken:
                stored = replace(stored, id=new_id())
            self._write([stored, *items])
        logger.info("Stored reading %s (%s mg/dL)", stored.id, stored.glucose)
        return stored

    def list_all(self) -> list[Reading]:
        """Every reading, newest first; an unreadable store yields []."""
        try:
            return self._load()
        except StorageReadFailure as exc:
            logger.warning("Reading the store failed, showing no readings: %s", exc)
            return []

    def list_page(self, page: int, page_size: int) -> Page:
        """One 1-based page of the insertion-ordered collection.

        Args:
            page: Page number, starting at 1.
            page_size: Readings per page.

        Returns:
            The page items plus the size of the whole collection.

        Raises:
            ValueError: If ``page`` or ``page_size`` is below 1.
        """
        if page < 1:
            raise ValueError("page must be >= 1")
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        return paginate(self.list_all(), page, page_size)

    def delete_by_id(self, reading_id: str) -> None:
        """Remove the reading with ``reading_id``; unknown ids are ignored."""
        with self._lock:
            items = self._load()
            kept = [item for item in items if item.id != reading_id]
            if len(kept) == len(items):
                logger.debug("Delete of unknown reading %s ignored", reading_id)
                return
            self._write(kept)
        logger.info("Deleted reading %s", reading_id)

    def clear_all(self) -> None:
        with self._lock:
            self._write([])
        logger.info("Cleared all readings in %s", self._path)

    def verify(self) -> None:
        """Raise StorageReadFailure if the document is missing its array shape.

        list_all() hides read errors; call this first to tell a broken
        store apart from an empty one.
        """
        if not self._path.exists():
            raise StorageReadFailure(self._path, "file does not exist")
        self._load()

    def _load(self) -> list[Reading]:
        if not self._path.exists():
            return []
        try:
            text = self._path.read_text(encoding="utf-8")
            raw: Any = json.loads(text) if text.strip() else []
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise StorageReadFailure(self._path, str(exc)) from exc
        if not isinstance(raw, list):
            raise StorageReadFailure(self._path, "content is not a JSON array")

        out: list[Reading] = []
        for item in raw:
            reading = Reading.from_dict(item)
            if reading is not None:
                out.append(reading)
        if len(out) != len(raw):
            logger.debug("Skipped %d malformed readings", len(raw) - len(out))
        return out

    def _write(self, items: list[Reading]) -> None:
        try:
            self._write_raw([item.to_dict() for item in items])
        except OSError as exc:
            logger.error("Writing %s failed: %s", self._path, exc)
            raise StorageWriteFailure(self._path, str(exc)) from exc

    def _write_raw(self, payload: list[dict[str, Any]]) -> None:
        # Write beside the target, then swap in one rename.
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            tmp_path.write_text(
                json.dumps(payload, ensure_ascii=False), encoding="utf-8"
            )
            os.replace(tmp_path, self._path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
