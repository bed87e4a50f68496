"""Tab separated payloads that paste cleanly into a spreadsheet."""

from __future__ import annotations

import re
from typing import Iterable, List, Sequence

from .flatten import EMBEDDED_LAYOUT, FlatRow, TableLayout

FIELD_SEPARATOR = "\t"
LINE_SEPARATOR = "\n"

_LINE_BREAK = re.compile(r"\r?\n")


def sanitize_value(value: str) -> str:
    """Replace tabs and line breaks with a space and strip the result."""

    if value is None:
        return ""
    text = str(value).replace(FIELD_SEPARATOR, " ")
    text = _LINE_BREAK.sub(" ", text)
    return text.strip()


def format_header(header: Iterable[str]) -> str:
    return FIELD_SEPARATOR.join(header).rstrip()


def format_row(values: Iterable[str]) -> str:
    return FIELD_SEPARATOR.join(sanitize_value(value) for value in values)


def serialize(header: Sequence[str], rows: Sequence[FlatRow]) -> str:
    """Build the clipboard payload: header line, then one line per row.

    Row fields are taken in their stored order, which matches the header
    when the rows come from :func:`teamroles.flatten.flatten`.  Callers
    skip the export when there are no rows; an empty ``rows`` yields the
    header line alone.
    """

    lines: List[str] = [format_header(header)]
    lines.extend(format_row(row.values()) for row in rows)
    return LINE_SEPARATOR.join(lines)


def serialize_rows(rows: Sequence[FlatRow], layout: TableLayout = EMBEDDED_LAYOUT) -> str:
    """Serialize rows using ``layout`` for both the header and field order."""

    header = layout.header
    ordered = [{key: row.get(key, "") for key in layout.keys} for row in rows]
    return serialize(header, ordered)


__all__ = [
    "FIELD_SEPARATOR",
    "LINE_SEPARATOR",
    "format_header",
    "format_row",
    "sanitize_value",
    "serialize",
    "serialize_rows",
]
