from __future__ import annotations

from dsaplanner.services.problem_service import (
    Problem,
    ProblemAggregator,
    aggregate_problems,
    clean_source_label,
    summarize_topics,
)
from dsaplanner.services.row_extractor import RowPolicy


def test_duplicate_names_merge_their_sources() -> None:
    problems = aggregate_problems(
        [
            ("Blind 75.csv", [["Two Sum", "https://leetcode.com/problems/two-sum/", "Easy"]]),
            ("Striver SDE.xlsx", [["Two Sum ", "https://example.com/other", "Medium"]]),
        ]
    )
    assert len(problems) == 1
    problem = problems[0]
    assert problem.name == "Two Sum"
    # first-seen link and difficulty win
    assert problem.link == "https://leetcode.com/problems/two-sum/"
    assert problem.difficulty == "Easy"
    assert problem.source == "Blind 75, Striver SDE"


def test_repeated_source_is_listed_once() -> None:
    problems = aggregate_problems([("Sheet", [["Two Sum"], ["Two Sum"]])])
    assert problems[0].source == "Sheet"


def test_uncategorized_topic_is_upgraded_by_later_rows() -> None:
    problems = aggregate_problems(
        [
            ("A", [["Number of Islands"]]),
            ("B", [["Number of Islands", "Graph"]]),
            ("C", [["Number of Islands", "Arrays"]]),
        ]
    )
    assert problems[0].topic == "Graphs"


def test_first_seen_order_and_truncation() -> None:
    rows = [[f"Problem number {i}"] for i in range(10)]
    problems = aggregate_problems([("Sheet", rows)], max_problems=3)
    assert [p.name for p in problems] == ["Problem number 0", "Problem number 1", "Problem number 2"]


def test_bad_rows_are_counted_and_skipped(events) -> None:
    aggregator = ProblemAggregator()
    accepted = aggregator.add_source("Sheet.csv", [["Two Sum"], "not a row", [], ["Problem Name"]])
    assert accepted == 1
    assert aggregator.skipped_rows == 3
    assert [e.name for e in events] == ["rows_skipped"]
    assert events[0].payload["source"] == "Sheet"


def test_policy_is_applied_to_rows() -> None:
    problems = aggregate_problems([("Sheet", [["1", "Easy"]])], policy=RowPolicy(placeholder_names=True))
    assert problems[0].name == "Problem Row 1"


def test_clean_source_label() -> None:
    assert clean_source_label("Blind 75.CSV") == "Blind 75"
    assert clean_source_label(" sheet.xls ") == "sheet"
    assert clean_source_label("notes.txt") == "notes.txt"


def test_summarize_topics() -> None:
    problems = [
        Problem(name="a", topic="Arrays", difficulty="Easy"),
        Problem(name="b", topic="Arrays", difficulty="Hard"),
        Problem(name="c", topic="Graphs", difficulty="Medium"),
        Problem(name="d", topic="Graphs", difficulty="Unknown"),
    ]
    summary = summarize_topics(problems)
    assert summary["Arrays"] == {"easy": 1, "medium": 0, "hard": 1}
    assert summary["Graphs"] == {"easy": 0, "medium": 1, "hard": 0}
