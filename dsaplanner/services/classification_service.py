"""
Problem classification service.
Sends fixed-size batches of extracted problems to the completion API, merges
the returned topic/difficulty/link/name back onto each problem by its
batch-local index, and falls back to the extracted values when the classifier
has nothing usable.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, NewType, Optional, Sequence
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, ValidationError

from ..config import Settings, get_settings
from ..errors import ClassificationFailure
from ..telemetry import emit_event
from .llm_service import CompletionClient, parse_json_content
from .problem_service import Problem
from .row_extractor import DEFAULT_DIFFICULTY, DIFFICULTIES
from .topic_service import CANONICAL_TOPICS, UNCATEGORIZED, TopicNormalizer, get_topic_normalizer

logger = logging.getLogger(__name__)

# Batch-local position of a problem; the classifier echoes it back as the key
BatchIndex = NewType("BatchIndex", int)

MAX_BATCH_SIZE = 25
INVALID_TOPIC = "Invalid"
# Classifier topics that mean "no answer"
UNUSABLE_TOPICS = frozenset({"none", "unknown", "invalid"})
# Shorter links are treated as missing
MIN_LINK_LENGTH = 6


class Classification(BaseModel):
    """Classifier output for one problem."""
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Optional[str] = None
    link: Optional[str] = None


@dataclass
class BatchFailure:
    batch_number: int
    start: int
    size: int
    error: str


@dataclass
class ClassificationRun:
    """Outcome of classifying a full problem list."""
    problems: List[Problem] = field(default_factory=list)
    failed_batches: List[BatchFailure] = field(default_factory=list)
    total_batches: int = 0

    @property
    def partial(self) -> bool:
        return bool(self.failed_batches)


def build_system_prompt(topics: Sequence[str] = CANONICAL_TOPICS) -> str:
    return f"""You are an expert DSA Study Planner.
I will provide a JSON list of coding problems, each with an integer "id", a "name" and possibly a "link".
For EACH problem you MUST:
1. Pick the Topic from this exact list: {json.dumps(list(topics))}
2. Identify the Difficulty: one of "Easy", "Medium", "Hard".
3. Find or generate the LeetCode URL when the link is missing.
4. If the name is garbled but recognizable, give the canonical problem title as "name".

Rules:
- Return a JSON object with a "classifications" key.
- The keys inside "classifications" MUST be the ids provided (0, 1, 2...).
- Do NOT skip any problems.
- Do NOT use "Uncategorized". Pick the closest topic from the list.
- Do NOT return "Unknown" for difficulty. Guess based on the problem name if needed.
- If an entry is clearly not a coding problem, use the topic "{INVALID_TOPIC}".

Output JSON format:
{{
  "classifications": {{
    "0": {{"name": "Two Sum", "topic": "Arrays", "difficulty": "Easy", "link": "https://leetcode.com/problems/two-sum/"}}
  }}
}}"""


def build_user_prompt(problems: Sequence[Problem]) -> str:
    payload = [
        {"id": index, "name": problem.name, "link": problem.link}
        for index, problem in enumerate(problems)
    ]
    return f"Classify these problems:\n{json.dumps(payload, ensure_ascii=False)}"


def parse_classifications(data: Dict[str, Any]) -> Dict[BatchIndex, Classification]:
    """
    Convert the classifier's string-keyed mapping into index-keyed classifications.
    Entries with non-integer keys or malformed values are ignored.

    Raises:
        ClassificationFailure: if the response has no classifications mapping
    """
    raw = data.get("classifications")
    if not isinstance(raw, dict):
        raise ClassificationFailure("AI response is missing the 'classifications' object")

    parsed: Dict[BatchIndex, Classification] = {}
    for key, value in raw.items():
        try:
            index = BatchIndex(int(str(key).strip()))
        except ValueError:
            logger.debug("Ignoring classification with non-integer key %r", key)
            continue
        if not isinstance(value, dict):
            continue
        try:
            parsed[index] = Classification.model_validate(value)
        except ValidationError as e:
            logger.debug("Ignoring malformed classification %r: %s", key, e)
    return parsed


def _plausible_link(link: Optional[str]) -> bool:
    return bool(link) and len(link.strip()) >= MIN_LINK_LENGTH


def _valid_difficulty(value: Optional[str]) -> Optional[str]:
    return value if value in DIFFICULTIES else None


class ClassificationBatcher:
    """Drives batched classification through a CompletionClient."""

    def __init__(
        self,
        client: CompletionClient,
        settings: Settings,
        normalizer: Optional[TopicNormalizer] = None,
    ):
        self.client = client
        self.settings = settings
        self.normalizer = normalizer or get_topic_normalizer()
        self.system_prompt = build_system_prompt(self.normalizer.canonical_topics)

    def fallback_problem(self, problem: Problem) -> Problem:
        """Pre-classification values with topic normalized and difficulty validated."""
        return Problem(
            name=problem.name,
            link=problem.link or "",
            topic=self.normalizer.normalize(problem.topic),
            difficulty=_valid_difficulty(problem.difficulty) or DEFAULT_DIFFICULTY,
            source=problem.source,
        )

    def merge(self, problem: Problem, classification: Optional[Classification]) -> Problem:
        """Apply one classification onto a problem."""
        if classification is None:
            classification = Classification()

        raw_topic = (classification.topic or "").strip()
        if not raw_topic or raw_topic.lower() in UNUSABLE_TOPICS:
            raw_topic = problem.topic or UNCATEGORIZED
        topic = self.normalizer.normalize(raw_topic)

        difficulty = (
            _valid_difficulty(classification.difficulty)
            or _valid_difficulty(problem.difficulty)
            or DEFAULT_DIFFICULTY
        )

        if _plausible_link(problem.link):
            link = problem.link
        else:
            link = (classification.link or "").strip()

        name = (classification.name or "").strip() or problem.name

        return Problem(
            name=name,
            link=link,
            topic=topic,
            difficulty=difficulty,
            source=problem.source,
        )

    def _link_allowed(self, link: str) -> bool:
        host = (urlparse(link).hostname or "").lower()
        if not host:
            return False
        return any(
            host == domain or host.endswith("." + domain)
            for domain in self.settings.allowed_link_domains
        )

    def _is_invalid(self, classification: Optional[Classification], merged: Problem) -> bool:
        if classification is not None and (classification.topic or "").strip().lower() == INVALID_TOPIC.lower():
            return True
        return not self._link_allowed(merged.link)

    async def classify_batch(
        self,
        problems: Sequence[Problem],
        api_key: Optional[str] = None,
    ) -> List[Problem]:
        """
        Classify one batch.

        Args:
            problems: Batch of problems (ids are their positions in this batch)
            api_key: Optional user-supplied completion API key

        Returns:
            Merged problems in input order (invalid ones dropped when the
            drop_invalid_problems policy is active)

        Raises:
            ClassificationFailure: if the call fails or its response is unusable
        """
        if not problems:
            return []

        result = await self.client.complete_json(
            self.system_prompt,
            build_user_prompt(problems),
            api_key=api_key,
        )
        classifications = parse_classifications(parse_json_content(result.content))

        missing = len(problems) - sum(1 for i in range(len(problems)) if BatchIndex(i) in classifications)
        if missing:
            logger.info("Classifier (%s) skipped %d of %d problems", result.model, missing, len(problems))

        merged_problems = []
        for index, problem in enumerate(problems):
            classification = classifications.get(BatchIndex(index))
            merged = self.merge(problem, classification)
            if self.settings.drop_invalid_problems and self._is_invalid(classification, merged):
                logger.debug("Dropping invalid problem %r", merged.name)
                continue
            merged_problems.append(merged)
        return merged_problems

    async def classify_problems(
        self,
        problems: Sequence[Problem],
        batch_size: Optional[int] = None,
        api_key: Optional[str] = None,
        concurrency: Optional[int] = None,
    ) -> ClassificationRun:
        """
        Classify a full problem list batch by batch.

        A failed batch keeps its pre-classification values, is recorded in
        failed_batches and does not stop the remaining batches.
        """
        size = max(1, min(batch_size or self.settings.batch_size, MAX_BATCH_SIZE))
        batches = [list(problems[i:i + size]) for i in range(0, len(problems), size)]
        semaphore = asyncio.Semaphore(max(1, concurrency or self.settings.batch_concurrency))

        results: List[List[Problem]] = [[] for _ in batches]
        failures: List[BatchFailure] = []

        async def run(number: int, batch: List[Problem]) -> None:
            async with semaphore:
                try:
                    results[number] = await self.classify_batch(batch, api_key=api_key)
                    emit_event(
                        "classification_batch_completed",
                        batch=number,
                        size=len(batch),
                        kept=len(results[number]),
                    )
                except ClassificationFailure as e:
                    logger.warning("Batch %d failed, using extracted values: %s", number, e)
                    results[number] = [self.fallback_problem(p) for p in batch]
                    failures.append(BatchFailure(number, number * size, len(batch), str(e)))
                    emit_event("classification_batch_failed", batch=number, size=len(batch), error=str(e))

        await asyncio.gather(*(run(n, b) for n, b in enumerate(batches)))

        failures.sort(key=lambda f: f.batch_number)
        return ClassificationRun(
            problems=[p for batch in results for p in batch],
            failed_batches=failures,
            total_batches=len(batches),
        )


# Singleton instance
_batcher: Optional[ClassificationBatcher] = None


def get_classification_batcher() -> ClassificationBatcher:
    """Get the singleton batcher configured from the environment."""
    global _batcher
    if _batcher is None:
        settings = get_settings()
        _batcher = ClassificationBatcher(CompletionClient(settings), settings)
    return _batcher
