"""
Topic normalization.
Maps free-text topic guesses (sheet columns, classifier output) onto the fixed
set of canonical study topics.
"""

from typing import Iterable, Optional, Sequence, Tuple

UNCATEGORIZED = "Uncategorized"

CANONICAL_TOPICS: Tuple[str, ...] = (
    "Arrays",
    "Strings",
    "Linked Lists",
    "Stacks",
    "Queues",
    "Trees",
    "Binary Search Trees (BST)",
    "Heaps / Priority Queues",
    "Hashing",
    "Recursion & Backtracking",
    "Graphs",
    "Dynamic Programming",
    "Greedy Algorithms",
    "Bit Manipulation",
    "Sliding Window / Two Pointers",
    "Trie",
    "Segment Tree / Fenwick Tree (Advanced)",
)

# Order matters: specific structures must be checked before the generic
# keyword they contain (segment tree before tree, bst before tree,
# priority queue before queue).
TOPIC_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("segment", "fenwick"), "Segment Tree / Fenwick Tree (Advanced)"),
    (("trie",), "Trie"),
    (("sliding", "pointer"), "Sliding Window / Two Pointers"),
    (("bit",), "Bit Manipulation"),
    (("greedy",), "Greedy Algorithms"),
    (("dp", "dynamic"), "Dynamic Programming"),
    (("graph", "bfs", "dfs"), "Graphs"),
    (("recursion", "backtrack"), "Recursion & Backtracking"),
    (("hash", "map", "set"), "Hashing"),
    (("heap", "priority"), "Heaps / Priority Queues"),
    (("bst", "binary search tree"), "Binary Search Trees (BST)"),
    (("tree",), "Trees"),
    (("queue",), "Queues"),
    (("stack",), "Stacks"),
    (("linked list",), "Linked Lists"),
    (("string",), "Strings"),
    (("array",), "Arrays"),
)


class TopicNormalizer:
    """Ordered substring matcher over a (keywords -> topic) rule table."""

    def __init__(
        self,
        rules: Sequence[Tuple[Iterable[str], str]] = TOPIC_RULES,
        canonical_topics: Iterable[str] = CANONICAL_TOPICS,
    ):
        self.rules = [(tuple(k.lower() for k in keywords), topic) for keywords, topic in rules]
        self.canonical_topics = tuple(canonical_topics)
        self._canonical_by_lower = {t.lower(): t for t in self.canonical_topics}

    def normalize(self, value: Optional[str]) -> str:
        if value is None:
            return UNCATEGORIZED
        lower = str(value).strip().lower()
        if not lower:
            return UNCATEGORIZED

        # Already canonical
        if lower in self._canonical_by_lower:
            return self._canonical_by_lower[lower]

        for keywords, topic in self.rules:
            if any(keyword in lower for keyword in keywords):
                return topic

        return UNCATEGORIZED

    def is_canonical(self, topic: str) -> bool:
        return topic in self.canonical_topics


_default_normalizer = TopicNormalizer()


def normalize_topic(value: Optional[str]) -> str:
    """Normalize a topic guess with the default rule table."""
    return _default_normalizer.normalize(value)


def get_topic_normalizer() -> TopicNormalizer:
    return _default_normalizer
