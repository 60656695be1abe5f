from __future__ import annotations

import pytest

from dsaplanner.errors import ParseFailure
from dsaplanner.services.row_extractor import RowPolicy, extract_row, name_from_link


def test_longest_text_cell_is_the_name() -> None:
    row = ["1", "Arrays", "Two Sum Problem", "https://leetcode.com/problems/two-sum/", "Easy"]
    extracted = extract_row(row)
    assert extracted is not None
    assert extracted.name == "Two Sum Problem"
    assert extracted.link == "https://leetcode.com/problems/two-sum/"
    assert extracted.topic == "Arrays"
    assert extracted.difficulty == "Easy"


def test_ties_keep_the_earlier_cell() -> None:
    extracted = extract_row(["abcd", "wxyz"])
    assert extracted is not None
    assert extracted.name == "abcd"


def test_stoplist_and_numbers_never_name_a_problem() -> None:
    extracted = extract_row(["42", "Medium", "Done", "Valid Parentheses"])
    assert extracted is not None
    assert extracted.name == "Valid Parentheses"
    assert extracted.difficulty == "Medium"


def test_non_text_cells_are_ignored_for_names() -> None:
    extracted = extract_row([12, 3.5, True, "Reverse Linked List"])
    assert extracted is not None
    assert extracted.name == "Reverse Linked List"


def test_difficulty_defaults_to_medium_and_is_title_cased() -> None:
    assert extract_row(["Merge Intervals"]).difficulty == "Medium"
    assert extract_row(["Merge Intervals", "HARD"]).difficulty == "Hard"


def test_name_derived_from_link_when_no_text_cell() -> None:
    extracted = extract_row(["7", "https://leetcode.com/problems/house-robber/"])
    assert extracted is not None
    assert extracted.name == "house robber"


def test_row_without_name_or_link_is_discarded() -> None:
    assert extract_row(["1", "Easy", ""]) is None


def test_placeholder_name_when_policy_allows() -> None:
    policy = RowPolicy(placeholder_names=True)
    extracted = extract_row(["1", "Easy"], row_index=4, policy=policy)
    assert extracted is not None
    assert extracted.name == "Problem Row 5"


def test_strict_policy_requires_longer_names() -> None:
    assert extract_row(["DP"]).name == "DP"
    assert extract_row(["DP"], policy=RowPolicy(strict=True)) is None


def test_blank_and_header_rows_are_skipped() -> None:
    assert extract_row([]) is None
    assert extract_row(["", None, "  "]) is None
    assert extract_row(["#", "Problem Name", "Link", "Difficulty"]) is None


def test_topic_comes_from_first_recognizable_other_cell() -> None:
    extracted = extract_row(["Find the Duplicate Number", "Medium", "Misc", "Linked List"])
    assert extracted is not None
    assert extracted.topic == "Linked Lists"


def test_topic_is_uncategorized_without_hint() -> None:
    assert extract_row(["Find the Duplicate Number"]).topic == "Uncategorized"


def test_mapping_rows_use_their_values() -> None:
    extracted = extract_row({"Problem": "Climbing Stairs", "Topic": "DP", "Level": "easy"})
    assert extracted is not None
    assert extracted.name == "Climbing Stairs"
    assert extracted.topic == "Dynamic Programming"
    assert extracted.difficulty == "Easy"


@pytest.mark.parametrize("row", ["Two Sum", b"Two Sum", 42, None])
def test_unsupported_row_types_raise(row) -> None:
    with pytest.raises(ParseFailure):
        extract_row(row)


def test_name_from_link() -> None:
    assert name_from_link("https://leetcode.com/problems/two-sum/") == "two sum"
    assert name_from_link("https://example.com") == ""
    assert name_from_link("") == ""
