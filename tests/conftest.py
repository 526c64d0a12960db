from __future__ import annotations

import io

import pytest
from openpyxl import load_workbook

from sheetexport.layout import ColumnSpec


@pytest.fixture
def employee_rows() -> list[dict]:
    return [
        {"name": "Ada", "dept": "Eng", "salary": 120},
        {"name": "Grace", "dept": "Ops", "salary": 95.5},
        {"name": "Linus", "salary": 80, "badge": "X-1"},
    ]


@pytest.fixture
def employee_layout() -> tuple[ColumnSpec, ...]:
    return (
        ColumnSpec(key="name", label="Name"),
        ColumnSpec(key="dept", label="Department"),
        ColumnSpec(key="salary", label="Salary", summable=True),
    )


@pytest.fixture
def open_xlsx():
    def _open(payload: bytes):
        return load_workbook(io.BytesIO(payload)).active

    return _open
