# -*- coding: utf-8 -*-
"""
Column layout resolution.

Rules:
- A non-empty list of column descriptors is used as given (key required, label
  defaults to the capitalized key, summable defaults to False).
- Anything else (missing, empty, not a list) falls back to the first row's keys.
- Pure: no I/O, no shared state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .errors import InvalidInputError


@dataclass(frozen=True)
class ColumnSpec:
    key: str
    label: str
    summable: bool = False


ColumnLayout = Tuple[ColumnSpec, ...]


def label_for_key(key: str) -> str:
    return key[:1].upper() + key[1:]


def _validate_rows(rows: Any) -> List[Mapping[str, Any]]:
    if not isinstance(rows, list) or not rows:
        raise InvalidInputError("Invalid data")
    for i, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise InvalidInputError(f"Invalid data: row {i} is not an object")
    return rows


def _column_from_descriptor(i: int, entry: Any) -> ColumnSpec:
    if not isinstance(entry, Mapping):
        raise InvalidInputError(f"Invalid config: entry {i} is not an object")

    key = entry.get("key")
    if not isinstance(key, str) or not key:
        raise InvalidInputError(f"Invalid config: entry {i} is missing 'key'")

    label = entry.get("label")
    if label is None or label == "":
        label = label_for_key(key)

    return ColumnSpec(key=key, label=str(label), summable=bool(entry.get("summable", False)))


def _explicit_layout(config: Sequence[Any]) -> ColumnLayout:
    columns = [_column_from_descriptor(i, entry) for i, entry in enumerate(config)]

    seen = set()
    for col in columns:
        if col.key in seen:
            raise InvalidInputError(f"Invalid config: duplicate key {col.key!r}")
        seen.add(col.key)
    return tuple(columns)


def infer_layout(first_row: Mapping[str, Any]) -> ColumnLayout:
    columns = tuple(
        ColumnSpec(key=key, label=label_for_key(key))
        for key in first_row
        if isinstance(key, str) and key
    )
    if not columns:
        raise InvalidInputError("Invalid data: first row has no fields")
    return columns


def resolve_layout(rows: Any, explicit_config: Optional[Any] = None) -> ColumnLayout:
    """
    Produce the ordered column layout for a request.

    Rows whose keys differ from the layout are accepted: missing keys render
    empty and extra keys are ignored when the document is built.
    """
    valid_rows = _validate_rows(rows)

    if isinstance(explicit_config, list) and explicit_config:
        return _explicit_layout(explicit_config)

    return infer_layout(valid_rows[0])
