"""
Shared utilities.
"""
import json
import re
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from json_repair import repair_json

from src.core.exceptions import MalformedQuarterLabel, MalformedResponse

QUARTER_PATTERN = re.compile(r"^\s*Q([1-4])\s+(\d{4})\s*$", re.IGNORECASE)
QUARTER_IN_TEXT_PATTERN = re.compile(r"\bQ([1-4])\s+(?:FY\s?)?(\d{4})\b", re.IGNORECASE)


def parse_quarter(label: str) -> Tuple[int, int]:
    """
    Parse a quarter label like "Q3 2024" into (quarter_number, year).
    Raises MalformedQuarterLabel for anything else.
    """
    match = QUARTER_PATTERN.match(label or "")
    if not match:
        raise MalformedQuarterLabel(label)
    return int(match.group(1)), int(match.group(2))


def format_quarter(quarter_number: int, year: int) -> str:
    return f"Q{quarter_number} {year}"


def find_quarter_label(text: str) -> Optional[str]:
    """Find the first quarter mention ("Q2 2024", "q2 FY2025") in free text, normalized."""
    match = QUARTER_IN_TEXT_PATTERN.search(text or "")
    if not match:
        return None
    return format_quarter(int(match.group(1)), int(match.group(2)))


def quarters_before(current_quarter: str, count: int = 4) -> List[str]:
    """
    Return `count` quarter labels counting back from current_quarter (inclusive).
    quarters_before("Q2 2024", 3) -> ["Q2 2024", "Q1 2024", "Q4 2023"]
    """
    q, year = parse_quarter(current_quarter)
    quarters = []
    for _ in range(count):
        quarters.append(format_quarter(q, year))
        q -= 1
        if q == 0:
            q = 4
            year -= 1
    return quarters


def last_completed_quarter(today: Optional[date] = None) -> str:
    """The most recent calendar quarter that has fully ended."""
    today = today or date.today()
    q = (today.month - 1) // 3 + 1
    year = today.year
    q -= 1
    if q == 0:
        q = 4
        year -= 1
    return format_quarter(q, year)


def sanitize_file_name(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "_", name, flags=re.IGNORECASE).lower()


def parse_llm_json(raw: str) -> Dict[str, Any]:
    """
    Parse an LLM response that should be a single JSON object.
    Tolerates markdown fences and the usual trailing-comma style damage.
    Raises MalformedResponse when no JSON object can be recovered.
    """
    text = (raw or "").strip()
    text = text.replace("```json", "").replace("```", "").strip()
    if not text:
        raise MalformedResponse("Empty response from analysis service")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        try:
            parsed = json.loads(repair_json(text))
        except (json.JSONDecodeError, ValueError) as e:
            raise MalformedResponse(f"Response is not valid JSON: {text[:120]!r}") from e

    if not isinstance(parsed, dict):
        raise MalformedResponse(f"Expected a JSON object, got {type(parsed).__name__}: {text[:120]!r}")
    return parsed
