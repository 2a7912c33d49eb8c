"""Punto de entrada de la app Kivy."""

from __future__ import annotations

from glucose_log.app import run_app
from glucose_log.log import setup_logging


def main() -> int:
    """Run app entrypoint."""
    setup_logging()
    try:
        return run_app()
    except ImportError as exc:
        print(f"No se pudo iniciar Kivy: {exc}")
        print("Instala dependencias de GUI: pip install 'glucose-log[gui]'")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
