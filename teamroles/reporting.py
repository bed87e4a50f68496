"""Utilities for exporting the flattened table to disk."""

from __future__ import annotations

import io
import json
import logging
from pathlib import Path
from typing import Dict, Sequence

import pandas as pd
from openpyxl.utils import get_column_letter

from .config import OutputConfig
from .flatten import FlatRow, TableLayout, rows_to_frame
from .records import Team, teams_to_payload
from .tsv import serialize_rows

logger = logging.getLogger(__name__)

SHEET_NAME = "Teams & Roles"


def rows_to_excel_bytes(
    rows: Sequence[FlatRow],
    layout: TableLayout,
    sheet_name: str = SHEET_NAME,
) -> bytes:
    """Serialize rows to an XLSX workbook held in memory."""

    buffer = io.BytesIO()
    safe_sheet = sheet_name[:31] or "Data"
    frame = rows_to_frame(rows, layout)
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        frame.to_excel(writer, index=False, sheet_name=safe_sheet)
        worksheet = writer.sheets[safe_sheet]
        for index, label in enumerate(frame.columns):
            widest = max([len(label), *(len(str(value)) for value in frame[label])])
            worksheet.column_dimensions[get_column_letter(index + 1)].width = min(widest + 2, 60)
    buffer.seek(0)
    return buffer.getvalue()


def teams_preview_json(teams: Sequence[Team]) -> str:
    return json.dumps(teams_to_payload(teams), ensure_ascii=False, indent=2)


def export_rows(
    rows: Sequence[FlatRow],
    layout: TableLayout,
    teams: Sequence[Team],
    output: OutputConfig,
) -> Dict[str, Path]:
    """Persist the TSV payload, the workbook and the JSON preview."""

    output_dir = output.directory
    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Writing %d rows to %s", len(rows), output_dir)

    paths: Dict[str, Path] = {}

    tsv_path = output_dir / output.tsv_report
    tsv_path.write_text(serialize_rows(rows, layout), encoding="utf-8")
    paths["tsv"] = tsv_path

    xlsx_path = output_dir / output.xlsx_report
    xlsx_path.write_bytes(rows_to_excel_bytes(rows, layout))
    paths["xlsx"] = xlsx_path

    preview_path = output_dir / output.json_preview
    preview_path.write_text(teams_preview_json(teams), encoding="utf-8")
    paths["preview"] = preview_path

    return paths


__all__ = ["SHEET_NAME", "export_rows", "rows_to_excel_bytes", "teams_preview_json"]
