"""
Heuristic row extraction.
Turns one spreadsheet row of arbitrary cells into a candidate problem:
the link is the first URL-looking cell, the name is the longest descriptive
text cell, and topic/difficulty come from the remaining cells.
"""

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, List, Optional
from urllib.parse import urlparse

from ..errors import ParseFailure
from .topic_service import UNCATEGORIZED, TopicNormalizer, get_topic_normalizer

DIFFICULTIES = ("Easy", "Medium", "Hard")
DEFAULT_DIFFICULTY = "Medium"

# Cells that carry status/difficulty rather than a problem title
NAME_STOPLIST = frozenset({"easy", "medium", "hard", "done", "pending", "yes", "no"})

# Joined row text containing one of these is a header row
HEADER_MARKERS = ("problem name",)

DIFFICULTY_PATTERN = re.compile(r"^(easy|medium|hard)$", re.IGNORECASE)
NUMERIC_PATTERN = re.compile(r"^\d+$")

RELAXED_MIN_NAME_LENGTH = 2
STRICT_MIN_NAME_LENGTH = 3


@dataclass(frozen=True)
class RowPolicy:
    """Row acceptance policy.

    strict: require names of at least 3 characters instead of 2.
    placeholder_names: when no name can be found or derived from the link,
        emit "Problem Row N" instead of discarding the row.
    """
    strict: bool = False
    placeholder_names: bool = False

    @property
    def min_name_length(self) -> int:
        return STRICT_MIN_NAME_LENGTH if self.strict else RELAXED_MIN_NAME_LENGTH


@dataclass
class ExtractedRow:
    """Candidate problem fields pulled out of a single row."""
    name: str
    link: str
    topic: str
    difficulty: str


def _row_values(row: Any) -> List[Any]:
    if isinstance(row, Mapping):
        return list(row.values())
    if isinstance(row, (str, bytes)) or not isinstance(row, Sequence):
        raise ParseFailure(f"Unsupported row type: {type(row).__name__}")
    return list(row)


def _is_blank(cell: Any) -> bool:
    return cell is None or str(cell).strip() == ""


def _find_link(cells: List[Any]) -> str:
    for cell in cells:
        if cell is not None and "http" in str(cell):
            return str(cell).strip()
    return ""


def _find_difficulty(cells: List[Any]) -> str:
    for cell in cells:
        if cell is None:
            continue
        text = str(cell).strip()
        if DIFFICULTY_PATTERN.match(text):
            return text.title()
    return DEFAULT_DIFFICULTY


def _name_candidates(cells: List[Any], min_length: int) -> List[str]:
    candidates = []
    for cell in cells:
        # Numbers and booleans never name a problem
        if not isinstance(cell, str):
            continue
        text = cell.strip()
        if "http" in text or NUMERIC_PATTERN.match(text):
            continue
        if len(text) < min_length or text.lower() in NAME_STOPLIST:
            continue
        candidates.append(text)
    return candidates


def name_from_link(link: str) -> str:
    """Derive a readable name from the last path segment of a problem URL."""
    if not link:
        return ""
    path = urlparse(link).path
    segments = [s for s in path.split("/") if s.strip()]
    if not segments:
        return ""
    return segments[-1].replace("-", " ").strip()


def is_header_row(cells: List[Any]) -> bool:
    joined = " ".join(str(c) for c in cells if c is not None).lower()
    return any(marker in joined for marker in HEADER_MARKERS)


def extract_row(
    row: Any,
    row_index: int = 0,
    policy: RowPolicy = RowPolicy(),
    normalizer: Optional[TopicNormalizer] = None,
) -> Optional[ExtractedRow]:
    """
    Extract a candidate problem from one row.

    Args:
        row: Sequence of cells, or a mapping whose values are the cells
        row_index: 0-based position of the row in its sheet
        policy: Row acceptance policy
        normalizer: Topic normalizer (defaults to the canonical table)

    Returns:
        ExtractedRow, or None when the row carries no usable problem

    Raises:
        ParseFailure: if the row is not a sequence or mapping of cells
    """
    if normalizer is None:
        normalizer = get_topic_normalizer()

    cells = _row_values(row)
    if not cells or all(_is_blank(c) for c in cells):
        return None
    if is_header_row(cells):
        return None

    link = _find_link(cells)
    candidates = _name_candidates(cells, policy.min_name_length)

    name = ""
    name_position = None
    if candidates:
        # Longest wins; sorted() is stable so earlier cells win ties
        ranked = sorted(range(len(candidates)), key=lambda i: len(candidates[i]), reverse=True)
        name_position = ranked[0]
        name = candidates[name_position]
    else:
        name = name_from_link(link)
        if not name and policy.placeholder_names:
            name = f"Problem Row {row_index + 1}"

    if not name:
        return None

    topic = UNCATEGORIZED
    for position, candidate in enumerate(candidates):
        if position == name_position:
            continue
        normalized = normalizer.normalize(candidate)
        if normalized != UNCATEGORIZED:
            topic = normalized
            break

    return ExtractedRow(
        name=name,
        link=link,
        topic=topic,
        difficulty=_find_difficulty(cells),
    )
