from __future__ import annotations

import pytest

from sheetexport.errors import InvalidInputError
from sheetexport.layout import ColumnSpec, label_for_key, resolve_layout


def test_inferred_layout_follows_first_row_key_order() -> None:
    rows = [{"firstName": "Ada", "age": 36, "city": "London"}, {"city": "Paris"}]

    layout = resolve_layout(rows)

    assert [c.key for c in layout] == ["firstName", "age", "city"]
    assert [c.label for c in layout] == ["FirstName", "Age", "City"]
    assert not any(c.summable for c in layout)


def test_label_only_uppercases_first_character() -> None:
    assert label_for_key("eMAIL") == "EMAIL"
    assert label_for_key("snake_case") == "Snake_case"
    assert label_for_key("1st") == "1st"
    assert label_for_key("x") == "X"


def test_explicit_config_is_used_verbatim() -> None:
    rows = [{"a": 1, "b": 2}]
    config = [
        {"key": "b", "label": "Bee", "summable": True},
        {"key": "zz", "label": "Not in data"},
    ]

    layout = resolve_layout(rows, config)

    assert layout == (
        ColumnSpec(key="b", label="Bee", summable=True),
        ColumnSpec(key="zz", label="Not in data", summable=False),
    )


def test_explicit_entry_without_label_gets_capitalized_key() -> None:
    layout = resolve_layout([{"amount": 1}], [{"key": "amount"}])
    assert layout[0].label == "Amount"


@pytest.mark.parametrize("config", ["bogus", [], None, {"key": "a"}, 42])
def test_config_that_is_not_a_non_empty_list_falls_back_to_inference(config) -> None:
    layout = resolve_layout([{"a": 1}], config)
    assert layout == (ColumnSpec(key="a", label="A"),)


@pytest.mark.parametrize(
    "config",
    [
        [{"label": "No key"}],
        [{"key": "", "label": "Empty key"}],
        [{"key": 7, "label": "Numeric key"}],
        ["a"],
    ],
)
def test_malformed_config_entries_are_rejected(config) -> None:
    with pytest.raises(InvalidInputError):
        resolve_layout([{"a": 1}], config)


def test_duplicate_keys_are_rejected() -> None:
    with pytest.raises(InvalidInputError, match="duplicate"):
        resolve_layout([{"a": 1}], [{"key": "a", "label": "A"}, {"key": "a", "label": "Again"}])


@pytest.mark.parametrize("rows", [[], None, "rows", {"a": 1}])
def test_empty_or_non_list_rows_are_rejected(rows) -> None:
    with pytest.raises(InvalidInputError, match="Invalid data"):
        resolve_layout(rows)


def test_non_object_row_is_rejected() -> None:
    with pytest.raises(InvalidInputError):
        resolve_layout([{"a": 1}, ["not", "an", "object"]])


def test_first_row_without_fields_cannot_be_inferred() -> None:
    with pytest.raises(InvalidInputError):
        resolve_layout([{}, {"a": 1}])


def test_resolution_is_deterministic(employee_rows) -> None:
    config = [{"key": "salary", "label": "Pay", "summable": True}, {"key": "name", "label": "Who"}]
    assert resolve_layout(employee_rows, config) == resolve_layout(employee_rows, config)
    assert resolve_layout(employee_rows) == resolve_layout(employee_rows)
