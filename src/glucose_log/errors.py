"""Excepciones del almacenamiento de lecturas y de la carga de datos."""

from __future__ import annotations

from pathlib import Path


class GlucoseLogError(Exception):
    """Base class for errors raised by glucose_log."""


class StorageError(GlucoseLogError):
    """A storage operation on the readings document failed."""

    action = "access"

    def __init__(self, path: Path, reason: str = "") -> None:
        self.path = path
        self.reason = reason
        message = f"Could not {self.action} {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class StorageUnavailable(StorageError):
    """The readings document cannot be created or opened."""

    action = "initialize"


class StorageReadFailure(StorageError):
    """The readings document cannot be read or is not a JSON array."""

    action = "read"


class StorageWriteFailure(StorageError):
    """Writing the readings document failed; nothing was persisted."""

    action = "write"


class InvalidGlucose(ValueError):
    """Glucose text entered by the user is not a positive number."""
