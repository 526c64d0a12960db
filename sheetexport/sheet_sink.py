# -*- coding: utf-8 -*-
"""
Sheet sink: the only place that touches the spreadsheet file format.

The document builder produces a plain Document; write_document() replays it
into a SheetSink. OpenpyxlSheetSink is the concrete .xlsx writer.
"""

from __future__ import annotations

import io
from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from .document import HEADER_ROW, HEADER_STYLE, SUBTOTAL_STYLE, Document, RowStyle, Value, clean_text

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class SheetSink(ABC):
    @abstractmethod
    def declare_columns(self, columns: Sequence[Tuple[str, str, float]]) -> None:
        """Write the header row from (key, header, width) triples."""

    @abstractmethod
    def style_row(self, row: int, style: RowStyle) -> None:
        ...

    @abstractmethod
    def append_row(self, values: Mapping[str, Value]) -> int:
        """Append key -> value pairs as the next row; returns its 1-based row number."""

    @abstractmethod
    def set_formula(self, row: int, key: str, formula: str) -> None:
        ...

    @abstractmethod
    def set_auto_filter(self, ref: str) -> None:
        ...

    @abstractmethod
    def to_bytes(self) -> bytes:
        ...


class OpenpyxlSheetSink(SheetSink):
    def __init__(self, title: str = "Data") -> None:
        self._wb = Workbook()
        self._ws = self._wb.active
        self._ws.title = title
        self._columns: Dict[str, int] = {}
        self._last_row = 0

    def declare_columns(self, columns: Sequence[Tuple[str, str, float]]) -> None:
        for index, (key, header, width) in enumerate(columns, start=1):
            self._columns[key] = index
            cell = self._ws.cell(row=HEADER_ROW, column=index, value=clean_text(header))
            self._ws.column_dimensions[cell.column_letter].width = width
        self._last_row = HEADER_ROW

    def style_row(self, row: int, style: RowStyle) -> None:
        font = Font(bold=style.bold)
        alignment = Alignment(horizontal=style.horizontal, vertical=style.vertical)
        fill = PatternFill(fill_type="solid", fgColor=style.fill)
        for index in self._columns.values():
            cell = self._ws.cell(row=row, column=index)
            cell.font = font
            cell.alignment = alignment
            cell.fill = fill

    def append_row(self, values: Mapping[str, Value]) -> int:
        self._last_row += 1
        row = self._last_row
        for key, index in self._columns.items():
            value = values.get(key)
            if value is None:
                continue
            cell = self._ws.cell(row=row, column=index)
            if isinstance(value, str):
                cell.value = clean_text(value)
                # Data is literal text; only set_formula() writes formulas.
                cell.data_type = "s"
            else:
                cell.value = value
        return row

    def set_formula(self, row: int, key: str, formula: str) -> None:
        index = self._columns[key]
        self._ws.cell(row=row, column=index).value = formula

    def set_auto_filter(self, ref: str) -> None:
        self._ws.auto_filter.ref = ref

    def to_bytes(self) -> bytes:
        buf = io.BytesIO()
        self._wb.save(buf)
        return buf.getvalue()


def write_document(document: Document, sink: Optional[SheetSink] = None) -> bytes:
    if sink is None:
        sink = OpenpyxlSheetSink(document.sheet_title)

    sink.declare_columns([(c.key, c.label, c.width) for c in document.columns])
    sink.style_row(HEADER_ROW, HEADER_STYLE)
    sink.set_auto_filter(document.auto_filter)

    keys = [c.key for c in document.columns]
    for values in document.rows:
        sink.append_row(dict(zip(keys, values)))

    if document.has_subtotal:
        sink.append_row({})
        row = document.subtotal_row
        for col in document.columns:
            if col.formula:
                sink.set_formula(row, col.key, col.formula)
        sink.style_row(row, SUBTOTAL_STYLE)

    return sink.to_bytes()
