from __future__ import annotations

from collections import Counter

from dsaplanner.services.problem_service import Problem
from dsaplanner.services.schedule_service import (
    build_schedule,
    distribute_topic,
    problem_weight,
    schedule_from_data,
    schedule_to_data,
)


def _p(name: str, topic: str = "Arrays", difficulty: str = "Medium") -> Problem:
    return Problem(name=name, topic=topic, difficulty=difficulty, source="Sheet")


def test_heaviest_problem_fills_the_first_day() -> None:
    schedule = build_schedule(
        [_p("A", difficulty="Hard"), _p("B", difficulty="Easy")],
        topic_days={"Arrays": 2},
    )
    assert [(d.day, [p.name for p in d.problems]) for d in schedule] == [(1, ["A"]), (2, ["B"])]


def test_single_day_takes_everything() -> None:
    problems = [_p(f"P{i}", difficulty=d) for i, d in enumerate(["Easy", "Hard", "Medium", "Hard"])]
    buckets = distribute_topic(problems, 1)
    assert len(buckets) == 1
    assert [p.name for p in buckets[0]] == ["P1", "P3", "P2", "P0"]


def test_more_days_than_problems_drops_empty_days() -> None:
    schedule = build_schedule([_p("A"), _p("B")], topic_days={"Arrays": 5})
    assert len(schedule) == 2
    assert all(len(day.problems) == 1 for day in schedule)


def test_every_problem_scheduled_exactly_once() -> None:
    difficulties = ["Easy", "Medium", "Hard"]
    problems = [
        _p(f"{topic}-{i}", topic=topic, difficulty=difficulties[i % 3])
        for topic in ("Arrays", "Graphs", "Trees")
        for i in range(11)
    ]
    schedule = build_schedule(problems, topic_days={"Arrays": 4, "Graphs": 2, "Trees": 7})

    scheduled = Counter(p.name for day in schedule for p in day.problems)
    assert scheduled == Counter(p.name for p in problems)
    for day in schedule:
        assert all(p.topic == day.topic for p in day.problems)
        assert all(p.completed is False for p in day.problems)


def test_days_are_contiguous_from_one() -> None:
    problems = [_p("A", topic="Graphs"), _p("B", topic="Arrays"), _p("C", topic="Trees")]
    schedule = build_schedule(problems, topic_days={"Graphs": 4, "Arrays": 2, "Trees": 1})
    assert [d.day for d in schedule] == list(range(1, len(schedule) + 1))


def test_topic_order_then_first_seen() -> None:
    problems = [
        _p("g", topic="Graphs"),
        _p("s", topic="Strings"),
        _p("a", topic="Arrays"),
        _p("t", topic="Trees"),
    ]
    schedule = build_schedule(problems, topic_days={}, topic_order={"Trees": 1, "Arrays": 2})
    assert [d.topic for d in schedule] == ["Trees", "Arrays", "Graphs", "Strings"]


def test_missing_or_invalid_day_counts_use_default() -> None:
    problems = [_p(f"A{i}", difficulty="Medium") for i in range(6)]
    assert len(build_schedule(problems)) == 3
    assert len(build_schedule(problems, topic_days={"Arrays": 0})) == 3
    assert len(build_schedule(problems, topic_days={"Arrays": "two"})) == 3
    assert len(build_schedule(problems, topic_days={"Arrays": "2"})) == 2
    assert len(build_schedule(problems, default_days=6)) == 6


def test_equal_weights_keep_input_order() -> None:
    buckets = distribute_topic([_p("first"), _p("second"), _p("third")], 3)
    assert [[p.name for p in b] for b in buckets] == [["first"], ["second"], ["third"]]


def test_unknown_difficulty_weighs_like_medium() -> None:
    assert problem_weight("Unknown") == problem_weight("Medium") == 2
    assert problem_weight(None) == 2


def test_empty_input_gives_empty_schedule(events) -> None:
    assert build_schedule([]) == []
    assert events[-1].name == "schedule_built"
    assert events[-1].payload["days"] == 0


def test_schedule_data_round_trip_keeps_completion() -> None:
    schedule = build_schedule([_p("A", difficulty="Hard"), _p("B", difficulty="Easy")], topic_days={"Arrays": 2})
    data = schedule_to_data(schedule)
    data[1]["problems"][0]["completed"] = True
    restored = schedule_from_data(data)
    assert restored[1].problems[0].completed is True
    assert restored[0].problems[0].name == "A"


def test_difficulties_are_canonical_in_the_schedule() -> None:
    problems = [_p("A", difficulty="hard"), _p("B", difficulty="Unknown"), _p("C", difficulty=" easy ")]
    schedule = build_schedule(problems, topic_days={"Arrays": 1})
    by_name = {p.name: p.difficulty for day in schedule for p in day.problems}
    assert by_name == {"A": "Hard", "B": "Medium", "C": "Easy"}
    # lowercase "hard" still weighs as Hard and goes first
    assert schedule[0].problems[0].name == "A"
    assert problem_weight("hard") == 4


def test_huge_day_allocation_returns_immediately() -> None:
    schedule = build_schedule([_p("A")], topic_days={"Arrays": 10**12})
    assert [(d.day, [p.name for p in d.problems]) for d in schedule] == [(1, ["A"])]
