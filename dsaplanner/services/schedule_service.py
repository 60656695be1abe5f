"""
Schedule generation service.
Groups classified problems by topic, orders topics by the user's preference
and spreads each topic over its allotted days so that every day carries a
similar difficulty-weighted workload.
"""

import logging
import math
import sys
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..telemetry import emit_event
from .problem_service import Problem
from .row_extractor import DEFAULT_DIFFICULTY, DIFFICULTIES
from .topic_service import UNCATEGORIZED

logger = logging.getLogger(__name__)

DEFAULT_DAYS_PER_TOPIC = 3

# Points used to balance daily workload
DIFFICULTY_WEIGHTS = {"Hard": 4, "Medium": 2, "Easy": 1}

# Rank given to topics the user did not order; sorts after every ranked topic
UNRANKED = sys.maxsize


@dataclass
class ScheduledProblem:
    name: str
    link: str
    topic: str
    difficulty: str
    source: str
    completed: bool = False


@dataclass
class ScheduleDay:
    day: int
    topic: str
    problems: List[ScheduledProblem] = field(default_factory=list)


def canonical_difficulty(difficulty: Optional[str]) -> str:
    """Title-case a known difficulty; anything else is Medium."""
    value = str(difficulty or "").strip().title()
    return value if value in DIFFICULTIES else DEFAULT_DIFFICULTY


def problem_weight(difficulty: Optional[str]) -> int:
    return DIFFICULTY_WEIGHTS[canonical_difficulty(difficulty)]


def _days_for_topic(topic: str, topic_days: Mapping[str, Any], default_days: int) -> int:
    value = topic_days.get(topic)
    if value is None:
        return default_days
    try:
        days = int(value)
    except (TypeError, ValueError):
        return default_days
    return days if days > 0 else default_days


def _rank_for_topic(topic: str, topic_order: Mapping[str, Any]) -> int:
    value = topic_order.get(topic)
    if value is None:
        return UNRANKED
    try:
        return int(value)
    except (TypeError, ValueError):
        return UNRANKED


def _schedule(problem: Problem, topic: str) -> ScheduledProblem:
    return ScheduledProblem(
        name=problem.name,
        link=problem.link or "",
        topic=topic,
        difficulty=canonical_difficulty(problem.difficulty),
        source=problem.source,
        completed=False,
    )


def distribute_topic(problems: List[Problem], days_allocated: int) -> List[List[Problem]]:
    """
    Split one topic's problems into at most days_allocated day buckets.

    Heaviest problems go first. Each day takes problems until its points reach
    ceil(total / days); the last day takes whatever is left. Greedy, not an
    optimal partition. Empty buckets are dropped.
    """
    ordered = sorted(problems, key=lambda p: problem_weight(p.difficulty), reverse=True)
    total_points = sum(problem_weight(p.difficulty) for p in ordered)
    target_per_day = math.ceil(total_points / days_allocated) if days_allocated else total_points

    buckets: List[List[Problem]] = []
    index = 0
    for day in range(days_allocated):
        if index >= len(ordered):
            break
        is_last = day == days_allocated - 1
        bucket: List[Problem] = []
        points = 0

        while index < len(ordered) and (is_last or points < target_per_day):
            problem = ordered[index]
            bucket.append(problem)
            points += problem_weight(problem.difficulty)
            index += 1

        if bucket:
            buckets.append(bucket)

    return buckets


def build_schedule(
    problems: Iterable[Problem],
    topic_days: Optional[Mapping[str, Any]] = None,
    topic_order: Optional[Mapping[str, Any]] = None,
    default_days: int = DEFAULT_DAYS_PER_TOPIC,
) -> List[ScheduleDay]:
    """
    Build a day-by-day study schedule.

    Args:
        problems: Classified problems
        topic_days: Days allotted per topic (missing/non-positive -> default_days)
        topic_order: Rank per topic, lower first; unranked topics keep their
            first-seen order after all ranked topics
        default_days: Days for topics without an allotment

    Returns:
        ScheduleDay list with contiguous day numbers starting at 1
    """
    topic_days = topic_days or {}
    topic_order = topic_order or {}
    if default_days <= 0:
        default_days = DEFAULT_DAYS_PER_TOPIC

    # Group by topic, first-seen order
    by_topic: Dict[str, List[Problem]] = {}
    for problem in problems:
        topic = problem.topic or UNCATEGORIZED
        by_topic.setdefault(topic, []).append(problem)

    sorted_topics = sorted(by_topic.keys(), key=lambda t: _rank_for_topic(t, topic_order))

    schedule: List[ScheduleDay] = []
    for topic in sorted_topics:
        days_allocated = _days_for_topic(topic, topic_days, default_days)
        for bucket in distribute_topic(by_topic[topic], days_allocated):
            schedule.append(
                ScheduleDay(
                    day=len(schedule) + 1,
                    topic=topic,
                    problems=[_schedule(p, topic) for p in bucket],
                )
            )

    emit_event(
        "schedule_built",
        topics=len(sorted_topics),
        days=len(schedule),
        problems=sum(len(d.problems) for d in schedule),
    )
    return schedule


def schedule_to_data(schedule: List[ScheduleDay]) -> List[Dict[str, Any]]:
    """Convert a schedule to its persisted JSON layout."""
    return [asdict(day) for day in schedule]


def schedule_from_data(data: Iterable[Mapping[str, Any]]) -> List[ScheduleDay]:
    """Rebuild a schedule from its persisted JSON layout."""
    schedule = []
    for item in data:
        topic = item.get("topic") or UNCATEGORIZED
        schedule.append(
            ScheduleDay(
                day=int(item["day"]),
                topic=topic,
                problems=[
                    ScheduledProblem(
                        name=p.get("name", ""),
                        link=p.get("link") or "",
                        topic=p.get("topic") or topic,
                        difficulty=canonical_difficulty(p.get("difficulty")),
                        source=p.get("source") or "",
                        completed=bool(p.get("completed", False)),
                    )
                    for p in item.get("problems", [])
                ],
            )
        )
    return schedule
