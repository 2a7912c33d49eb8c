"""Exportacion de lecturas a un Excel formateado para entrega medica."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, Side

from glucose_log.model import Reading
from glucose_log.timestamps import to_datetime

FRAME_COLUMNS: list[str] = [
    "datetime",
    "date",
    "glucose_mg_dl",
    "note",
    "puncture_spot",
    "id",
]

_WEEKDAYS: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_HEADER_MAP: dict[str, str] = {
    "weekday": "Day",
    "datetime": "Date / Time",
    "glucose_mg_dl": "Glucose (mg/dL)",
    "note": "Note",
    "puncture_spot": "Puncture spot",
}


@dataclass(frozen=True)
class ExcelLayout:
    """Layout/formatting configuration for the readings sheet."""

    sheet_name: str = "Glucose readings"


def readings_to_frame(
    readings: Sequence[Reading], zone: tzinfo | None = None
) -> pd.DataFrame:
    """Convert readings to a DataFrame ordered by measurement time.

    ``datetime`` holds naive local wall time (NaT when the reading time
    cannot be parsed); unparseable readings go first.
    """
    rows = []
    for r in readings:
        moment = to_datetime(r.time, zone)
        local = moment.replace(tzinfo=None) if moment is not None else None
        rows.append(
            {
                "datetime": local,
                "date": local.date() if local is not None else None,
                "glucose_mg_dl": r.glucose,
                "note": r.note,
                "puncture_spot": r.puncture_spot,
                "id": r.id,
            }
        )
    if not rows:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    df["datetime"] = pd.to_datetime(df["datetime"], errors="coerce")
    return df.sort_values("datetime", kind="stable", na_position="first").reset_index(
        drop=True
    )


def _weekday_label(i: object) -> str:
    """Convierte índice 0-6 (lunes-domingo) a etiqueta de 3 letras."""
    try:
        if i is None or (isinstance(i, float) and pd.isna(i)):
            return ""
        if isinstance(i, int | float):
            idx = int(i)
            return _WEEKDAYS[idx] if 0 <= idx < 7 else ""
        return ""
    except (ValueError, TypeError):
        return ""


def _add_weekday_column(export_df: pd.DataFrame) -> pd.DataFrame:
    if "datetime" not in export_df.columns or export_df.empty:
        return export_df
    weekday_series = pd.to_datetime(export_df["datetime"], errors="coerce").dt.weekday
    export_df = export_df.copy()
    export_df["weekday"] = weekday_series.map(_weekday_label)
    cols = ["weekday"] + [c for c in export_df.columns if c != "weekday"]
    return export_df[cols]


def write_readings_xlsx(
    df: pd.DataFrame, out_path: Path, layout: ExcelLayout | None = None
) -> None:
    """Write a formatted Excel file suitable for printing.

    Args:
        df: Frame built by readings_to_frame.
        out_path: Output path for the XLSX file.
        layout: Excel layout parameters.
    """
    layout = layout or ExcelLayout()
    out_path.parent.mkdir(parents=True, exist_ok=True)

    export_df = _add_weekday_column(df)
    export_df = export_df.drop(
        columns=[c for c in ("date", "id") if c in export_df.columns]
    )
    export_df = export_df.rename(columns=_HEADER_MAP)

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        export_df.to_excel(writer, index=False, sheet_name=layout.sheet_name)
        ws = writer.book[layout.sheet_name]
        _format_sheet(ws)


def _style_header_row(ws: Any) -> None:
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for cell in ws[1]:
        cell.font = header_font
        cell.alignment = center
        cell.border = border


def _style_body_rows(ws: Any) -> None:
    """Borders on every data cell; free-text columns stay left aligned."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    center = Alignment(horizontal="center", vertical="center")
    left = Alignment(horizontal="left", vertical="center", wrap_text=True)
    text_headers = {"Note", "Puncture spot"}
    headers = [str(cell.value) for cell in ws[1]]
    for row in ws.iter_rows(min_row=2):
        for header, cell in zip(headers, row):
            cell.alignment = left if header in text_headers else center
            cell.border = border


def _get_header_col_index(ws: Any) -> dict[str, int]:
    """Devuelve mapa nombre de cabecera -> índice de columna (1-based)."""
    headers = [str(cell.value) for cell in ws[1]]
    return {name: idx + 1 for idx, name in enumerate(headers)}


def _apply_column_widths(ws: Any, col_index: dict[str, int]) -> None:
    widths = [
        ("Day", 6),
        ("Date / Time", 18),
        ("Glucose (mg/dL)", 14),
        ("Note", 30),
        ("Puncture spot", 16),
    ]
    for header, width in widths:
        idx = col_index.get(header)
        if idx is not None:
            letter = ws.cell(row=1, column=idx).column_letter
            ws.column_dimensions[letter].width = width


def _apply_number_formats(ws: Any, col_index: dict[str, int]) -> None:
    fmt_map: dict[str, str] = {
        "Date / Time": "dd/mm/yyyy hh:mm",
        "Glucose (mg/dL)": "0.0",
    }
    for row in ws.iter_rows(min_row=2):
        for header, fmt in fmt_map.items():
            idx = col_index.get(header)
            if idx is not None:
                row[idx - 1].number_format = fmt


def _format_sheet(ws: Any) -> None:
    """Apply borders, widths and number formats to a worksheet.

    Args:
        ws: openpyxl worksheet.
    """
    _style_header_row(ws)
    _style_body_rows(ws)
    col_index = _get_header_col_index(ws)
    _apply_column_widths(ws, col_index)
    _apply_number_formats(ws, col_index)
