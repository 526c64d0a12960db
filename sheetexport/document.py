# -*- coding: utf-8 -*-
"""
Document model + builder.

Hard rules:
- No I/O and no openpyxl workbook objects here (the sheet sink owns those).
- Row 1 is the header, data starts at row 2, the subtotal row follows the data.
- Identical inputs produce identical Document values.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils import get_column_letter

from .errors import RenderError
from .layout import ColumnSpec

Value = Union[str, int, float, bool, None]

HEADER_ROW = 1
MAX_COLUMNS = 16384
FIRST_DATA_ROW = 2
MIN_COLUMN_WIDTH = 10
MAX_CONTENT_WIDTH = 100
WIDTH_PADDING = 2

# SUBTOTAL function 9 sums visible cells only (rows hidden by the filter are skipped).
SUBTOTAL_SUM = 9

HEADER_FILL = "FFCCFFCC"
SUBTOTAL_FILL = "FFFFCC00"


@dataclass(frozen=True)
class RowStyle:
    bold: bool
    horizontal: str
    vertical: str
    fill: str


HEADER_STYLE = RowStyle(bold=True, horizontal="center", vertical="center", fill=HEADER_FILL)
SUBTOTAL_STYLE = RowStyle(bold=True, horizontal="center", vertical="center", fill=SUBTOTAL_FILL)


@dataclass(frozen=True)
class DocumentColumn:
    key: str
    label: str
    letter: str
    width: int
    formula: Optional[str] = None


@dataclass(frozen=True)
class Document:
    sheet_title: str
    columns: Tuple[DocumentColumn, ...]
    rows: Tuple[Tuple[Value, ...], ...]
    auto_filter: str
    has_subtotal: bool

    @property
    def last_data_row(self) -> int:
        return HEADER_ROW + len(self.rows)

    @property
    def subtotal_row(self) -> Optional[int]:
        return self.last_data_row + 1 if self.has_subtotal else None


def clean_text(text: str) -> str:
    """Drop characters the xlsx format cannot store."""
    return ILLEGAL_CHARACTERS_RE.sub("", text)


def coerce_value(value: Any) -> Value:
    if isinstance(value, str):
        return clean_text(value)
    if value is None or isinstance(value, (bool, int)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else str(value)
    if isinstance(value, (dict, list, tuple)):
        return clean_text(json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str))
    return clean_text(str(value))


def cell_text(value: Value) -> str:
    """Text used to measure a cell for column sizing."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def header_width(label: str) -> int:
    return max(len(label) + 2, MIN_COLUMN_WIDTH)


def final_width(label: str, values: Sequence[Value]) -> int:
    longest = max((len(cell_text(v)) for v in values), default=0)
    return min(max(header_width(label), longest), MAX_CONTENT_WIDTH) + WIDTH_PADDING


def subtotal_formula(letter: str, first_row: int, last_row: int) -> str:
    return f"=SUBTOTAL({SUBTOTAL_SUM},{letter}{first_row}:{letter}{last_row})"


def materialize_rows(rows: Sequence[Mapping[str, Any]], layout: Sequence[ColumnSpec]) -> Tuple[Tuple[Value, ...], ...]:
    return tuple(
        tuple(coerce_value(row.get(col.key)) for col in layout)
        for row in rows
    )


def build_document(
    rows: Sequence[Mapping[str, Any]],
    layout: Sequence[ColumnSpec],
    *,
    sheet_title: str = "Data",
) -> Document:
    if not layout:
        raise RenderError("Column layout is empty; nothing to render.")
    if len(layout) > MAX_COLUMNS:
        raise RenderError(f"Too many columns ({len(layout)}); the sheet holds at most {MAX_COLUMNS}.")

    body = materialize_rows(rows, layout)
    last_data_row = HEADER_ROW + len(body)
    # With no data rows the range still points at a single (empty) row.
    range_end = max(last_data_row, FIRST_DATA_ROW)
    has_subtotal = any(col.summable for col in layout)

    columns = []
    for index, col in enumerate(layout):
        letter = get_column_letter(index + 1)
        label = clean_text(col.label)
        values = [r[index] for r in body]
        columns.append(
            DocumentColumn(
                key=col.key,
                label=label,
                letter=letter,
                width=final_width(label, values),
                formula=subtotal_formula(letter, FIRST_DATA_ROW, range_end) if col.summable else None,
            )
        )

    auto_filter = f"{columns[0].letter}{HEADER_ROW}:{columns[-1].letter}{HEADER_ROW}"

    return Document(
        sheet_title=sheet_title,
        columns=tuple(columns),
        rows=body,
        auto_filter=auto_filter,
        has_subtotal=has_subtotal,
    )
