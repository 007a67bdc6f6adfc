"""Unit tests for quarter label helpers and LLM JSON parsing."""
from datetime import date

import pytest

from src.core.exceptions import MalformedQuarterLabel, MalformedResponse
from src.core.utils import (
    find_quarter_label,
    last_completed_quarter,
    parse_llm_json,
    parse_quarter,
    quarters_before,
    sanitize_file_name,
)


@pytest.mark.parametrize("label,expected", [
    ("Q1 2024", (1, 2024)),
    ("q4 2023", (4, 2023)),
    ("  Q2   2025 ", (2, 2025)),
])
def test_parse_quarter(label, expected):
    assert parse_quarter(label) == expected


@pytest.mark.parametrize("label", ["Quarter One 2024", "Q5 2024", "Q1-2024", "2024 Q1", "", "Q1 24"])
def test_parse_quarter_rejects(label):
    with pytest.raises(MalformedQuarterLabel):
        parse_quarter(label)


def test_find_quarter_label_in_title():
    assert find_quarter_label("NVIDIA Corporation (NVDA) Q3 2025 Earnings Call Transcript") == "Q3 2025"
    assert find_quarter_label("nvda q2 FY2024 results") == "Q2 2024"
    assert find_quarter_label("Annual meeting") is None


def test_quarters_before_wraps_year():
    assert quarters_before("Q2 2024", 3) == ["Q2 2024", "Q1 2024", "Q4 2023"]


@pytest.mark.parametrize("today,expected", [
    (date(2024, 2, 10), "Q4 2023"),
    (date(2024, 4, 1), "Q1 2024"),
    (date(2024, 12, 31), "Q3 2024"),
])
def test_last_completed_quarter(today, expected):
    assert last_completed_quarter(today) == expected


def test_sanitize_file_name():
    assert sanitize_file_name("Q3 2024") == "q3_2024"


def test_parse_llm_json_plain_and_fenced():
    assert parse_llm_json('{"a": 1}') == {"a": 1}
    assert parse_llm_json('```json\n{"a": 1}\n```') == {"a": 1}


def test_parse_llm_json_repairs_trailing_comma():
    assert parse_llm_json('{"a": 1, "b": [1, 2,],}') == {"a": 1, "b": [1, 2]}


@pytest.mark.parametrize("raw", ["", "   ", "[1, 2]", '"just a string"'])
def test_parse_llm_json_rejects(raw):
    with pytest.raises(MalformedResponse):
        parse_llm_json(raw)
