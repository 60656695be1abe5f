"""
Problem aggregation service.
Merges rows extracted from several sheets into one problem per distinct name
and summarizes the resulting problem set per topic.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..errors import ParseFailure
from ..telemetry import emit_event
from .row_extractor import DEFAULT_DIFFICULTY, RowPolicy, extract_row
from .topic_service import UNCATEGORIZED, TopicNormalizer, get_topic_normalizer

logger = logging.getLogger(__name__)

DEFAULT_MAX_PROBLEMS = 5000

SOURCE_SUFFIX_PATTERN = re.compile(r"\.(csv|xlsx|xls)$", re.IGNORECASE)


@dataclass
class Problem:
    """Problem data class."""
    name: str
    link: str = ""
    topic: str = UNCATEGORIZED
    difficulty: str = DEFAULT_DIFFICULTY
    source: str = ""


@dataclass
class _Accumulator:
    link: str
    topic: str
    difficulty: str
    # dict keeps insertion order and ignores repeated labels
    sources: Dict[str, None] = field(default_factory=dict)


def clean_source_label(label: str) -> str:
    """Strip spreadsheet extensions from a file name used as a source label."""
    return SOURCE_SUFFIX_PATTERN.sub("", (label or "").strip()).strip()


class ProblemAggregator:
    """Accumulates problems across sources, keyed by trimmed name."""

    def __init__(
        self,
        policy: RowPolicy = RowPolicy(),
        normalizer: Optional[TopicNormalizer] = None,
    ):
        self.policy = policy
        self.normalizer = normalizer or get_topic_normalizer()
        self._problems: Dict[str, _Accumulator] = {}
        self.skipped_rows = 0

    def add_source(self, label: str, rows: Iterable[Any]) -> int:
        """
        Add every row of one source.

        Returns:
            Number of rows that produced a problem
        """
        source = clean_source_label(label)
        accepted = 0
        skipped = 0

        for index, row in enumerate(rows):
            try:
                extracted = extract_row(row, index, self.policy, self.normalizer)
            except ParseFailure as e:
                logger.debug("Skipping row %d of %s: %s", index, source, e)
                skipped += 1
                continue
            if extracted is None:
                skipped += 1
                continue

            name = extracted.name.strip()
            entry = self._problems.get(name)
            if entry is None:
                entry = _Accumulator(
                    link=extracted.link,
                    topic=extracted.topic,
                    difficulty=extracted.difficulty,
                )
                self._problems[name] = entry
            elif entry.topic == UNCATEGORIZED and extracted.topic != UNCATEGORIZED:
                entry.topic = extracted.topic

            entry.sources[source] = None
            accepted += 1

        self.skipped_rows += skipped
        if skipped:
            emit_event("rows_skipped", source=source, skipped=skipped, accepted=accepted)
        return accepted

    def results(self, max_problems: int = DEFAULT_MAX_PROBLEMS) -> List[Problem]:
        """Return problems in first-seen order, truncated to max_problems."""
        names = list(self._problems.keys())
        if len(names) > max_problems:
            logger.info("Truncating %d unique problems to %d", len(names), max_problems)
            names = names[:max_problems]

        problems = []
        for name in names:
            entry = self._problems[name]
            problems.append(
                Problem(
                    name=name,
                    link=entry.link,
                    topic=self.normalizer.normalize(entry.topic),
                    difficulty=entry.difficulty,
                    source=", ".join(entry.sources),
                )
            )
        return problems


def aggregate_problems(
    sources: Iterable[Tuple[str, Iterable[Any]]],
    max_problems: int = DEFAULT_MAX_PROBLEMS,
    policy: RowPolicy = RowPolicy(),
) -> List[Problem]:
    """
    Merge rows from several sources into unique problems.

    Args:
        sources: (source label, rows) pairs, processed in order
        max_problems: Cap on the number of unique problems returned
        policy: Row acceptance policy

    Returns:
        One Problem per distinct trimmed name, in first-seen order
    """
    aggregator = ProblemAggregator(policy=policy)
    for label, rows in sources:
        aggregator.add_source(label, rows)
    return aggregator.results(max_problems)


def summarize_topics(problems: Iterable[Problem]) -> Dict[str, Dict[str, int]]:
    """Count problems per topic and difficulty."""
    summary: Dict[str, Dict[str, int]] = {}
    for problem in problems:
        topic = problem.topic or UNCATEGORIZED
        counts = summary.setdefault(topic, {"easy": 0, "medium": 0, "hard": 0})
        difficulty = (problem.difficulty or DEFAULT_DIFFICULTY).lower()
        if difficulty in counts:
            counts[difficulty] += 1
    return summary
