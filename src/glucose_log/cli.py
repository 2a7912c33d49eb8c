"""CLI para cargar, listar, borrar y exportar lecturas de glucosa."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from glucose_log.errors import InvalidGlucose, StorageError
from glucose_log.export import ExcelLayout, readings_to_frame, write_readings_xlsx
from glucose_log.log import setup_logging
from glucose_log.model import Reading
from glucose_log.settings import (
    COLOUR_SCHEMES,
    DATA_DIR_ENV,
    FONT_SIZES,
    SETTINGS_FILENAME,
    SettingsStore,
    default_data_dir,
)
from glucose_log.sorting import SortDirection, SortKey, sort_readings, sorted_page
from glucose_log.storage import READINGS_FILENAME, ReadingStore
from glucose_log.viewstate import EntryForm

logger = logging.getLogger(__name__)

SORT_CHOICES: dict[str, SortKey] = {
    "time": SortKey.TIME,
    "glucose": SortKey.GLUCOSE,
    "spot": SortKey.PUNCTURE_SPOT,
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        prog="glucose-log",
        description="Registro de lecturas de glucosa en sangre.",
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        help=f"Directorio de datos (default: ${DATA_DIR_ENV} o ~/.glucose_log).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Mas detalle en el log (-v INFO, -vv DEBUG).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Crea el almacenamiento si no existe.")

    add = sub.add_parser("add", help="Guarda una lectura nueva.")
    add.add_argument("glucose", help="Glucosa en mg/dL.")
    add.add_argument("--note", default="")
    add.add_argument("--spot", default="", help="Sitio de puncion.")

    lst = sub.add_parser("list", help="Lista lecturas.")
    lst.add_argument("--page", type=int, default=None)
    lst.add_argument("--page-size", type=int, default=None)
    lst.add_argument("--sort", choices=sorted(SORT_CHOICES), default=None)
    lst.add_argument("--desc", action="store_true", help="Orden descendente.")
    lst.add_argument(
        "--strict",
        action="store_true",
        help="Falla si el almacenamiento no se puede leer.",
    )

    delete = sub.add_parser("delete", help="Borra una lectura por id.")
    delete.add_argument("id")

    clear = sub.add_parser("clear", help="Borra todas las lecturas.")
    clear.add_argument("--yes", action="store_true", help="Confirma el borrado.")

    export = sub.add_parser("export", help="Exporta las lecturas a Excel.")
    export.add_argument("out", help="Archivo .xlsx de salida.")

    settings = sub.add_parser("settings", help="Muestra o cambia la configuracion.")
    settings.add_argument("--page-size", type=int, default=None)
    settings.add_argument("--font-size", choices=FONT_SIZES, default=None)
    settings.add_argument("--colour-scheme", choices=COLOUR_SCHEMES, default=None)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        Exit code: 0 on success, 1 on storage errors, 2 on invalid input.
    """
    ns = parse_args(argv)
    setup_logging(ns.verbose)
    data_dir = (
        Path(ns.data_dir).expanduser() if ns.data_dir else default_data_dir()
    )
    store = ReadingStore(data_dir / READINGS_FILENAME)
    try:
        store.initialize()
        return _COMMANDS[ns.command](ns, store, data_dir)
    except InvalidGlucose as exc:
        print(f"Invalid glucose: {exc}", file=sys.stderr)
        return 2
    except ValueError as exc:
        print(f"Invalid argument: {exc}", file=sys.stderr)
        return 2
    except StorageError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1


def _cmd_init(ns: argparse.Namespace, store: ReadingStore, data_dir: Path) -> int:
    print(f"OK: store at {store.path}")
    return 0


def _cmd_add(ns: argparse.Namespace, store: ReadingStore, data_dir: Path) -> int:
    form = EntryForm(glucose=ns.glucose, note=ns.note, puncture_spot=ns.spot)
    stored = form.submit(store)
    print(f"Saved: glucose {form.last_submitted} mg/dL (id {stored.id})")
    return 0


def _cmd_list(ns: argparse.Namespace, store: ReadingStore, data_dir: Path) -> int:
    if ns.strict:
        store.verify()
    settings = SettingsStore(data_dir / SETTINGS_FILENAME).load()
    page_size = ns.page_size if ns.page_size is not None else settings.page_size
    key = SORT_CHOICES[ns.sort] if ns.sort else None
    direction = SortDirection.DESC if ns.desc else SortDirection.ASC

    if ns.page is None:
        readings = store.list_all()
        if key is not None:
            readings = sort_readings(readings, key, direction)
        _print_rows(readings)
        print(f"Total: {len(readings)}")
        return 0

    if key is None:
        page = store.list_page(ns.page, page_size)
    else:
        page = sorted_page(store.list_all(), ns.page, page_size, key, direction)
    _print_rows(page.items)
    print(f"Page {ns.page}/{max(page.page_count(page_size), 1)} (total {page.total})")
    return 0


def _cmd_delete(ns: argparse.Namespace, store: ReadingStore, data_dir: Path) -> int:
    store.delete_by_id(ns.id)
    print(f"OK: deleted {ns.id} (if it existed)")
    return 0


def _cmd_clear(ns: argparse.Namespace, store: ReadingStore, data_dir: Path) -> int:
    if not ns.yes:
        print("Refusing to delete every reading without --yes.", file=sys.stderr)
        return 2
    store.clear_all()
    print("OK: all readings deleted")
    return 0


def _cmd_export(ns: argparse.Namespace, store: ReadingStore, data_dir: Path) -> int:
    out_path = Path(ns.out).expanduser()
    readings = store.list_all()
    write_readings_xlsx(readings_to_frame(readings), out_path, ExcelLayout())
    print(f"OK: {len(readings)} readings -> {out_path}")
    return 0


def _cmd_settings(ns: argparse.Namespace, store: ReadingStore, data_dir: Path) -> int:
    settings_store = SettingsStore(data_dir / SETTINGS_FILENAME)
    current = settings_store.load()
    changes: dict[str, object] = {}
    if ns.page_size is not None:
        if ns.page_size < 1:
            raise ValueError("page size must be >= 1")
        changes["page_size"] = ns.page_size
    if ns.font_size is not None:
        changes["font_size"] = ns.font_size
    if ns.colour_scheme is not None:
        changes["colour_scheme"] = ns.colour_scheme
    if changes:
        current = replace(current, **changes)
        settings_store.save(current)
        logger.info("Settings updated: %s", ", ".join(sorted(changes)))
    print(f"page_size: {current.page_size}")
    print(f"font_size: {current.font_size}")
    print(f"colour_scheme: {current.colour_scheme}")
    return 0


def _print_rows(readings: list[Reading]) -> None:
    if not readings:
        print("No readings yet.")
        return
    for r in readings:
        print(
            "\t".join(
                [
                    r.id,
                    r.time,
                    f"{r.glucose:g}",
                    r.note or "-",
                    r.puncture_spot or "-",
                ]
            )
        )


_COMMANDS = {
    "init": _cmd_init,
    "add": _cmd_add,
    "list": _cmd_list,
    "delete": _cmd_delete,
    "clear": _cmd_clear,
    "export": _cmd_export,
    "settings": _cmd_settings,
}
