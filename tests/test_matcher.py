import pytest

from reference_converter.matcher import (
    parse_year,
    score_candidate,
    select_best,
    token_set_similarity,
)
from reference_converter.models import Candidate


def test_token_set_similarity_is_intersection_over_union():
    assert token_set_similarity("Deep Learning", "deep learning") == 1.0
    assert token_set_similarity("Deep Learning: A Survey", "deep learning survey methods") == pytest.approx(3 / 5)
    assert token_set_similarity("", "anything") == 0.0


def test_score_uses_only_components_present_on_both_sides():
    candidate = Candidate(title="Graph Methods in Practice")

    assert score_candidate(candidate, "Graph Methods in Practice", ["Müller, Hans"], 2019) == 1.0


def test_score_blends_title_author_and_year():
    candidate = Candidate(title="Deep Learning for Citation Parsing", authors=["Jane Doe"], year=2023)

    score = score_candidate(candidate, "Deep Learning for Citation Parsing", ["Doe, Jane"], 2021)

    assert score == pytest.approx(0.6 + 0.3 + 0.0)


def test_year_within_one_counts_as_match():
    candidate = Candidate(title="Same", year=2020)

    assert score_candidate(candidate, "Same", [], 2021) == pytest.approx(1.0)


def test_threshold_is_strictly_greater_than():
    candidates = [Candidate(title="a"), Candidate(title="b")]

    def at_boundary(candidate, *_):
        return 0.70

    def just_above(candidate, *_):
        return 0.71 if candidate.title == "b" else 0.5

    assert select_best(candidates, "x", scorer=at_boundary) is None
    best, score = select_best(candidates, "x", scorer=just_above)
    assert best.title == "b"
    assert score == 0.71


def test_only_top_candidate_is_considered():
    candidates = [
        Candidate(title="Citation Parsing Revisited"),
        Candidate(title="Deep Learning for Citation Parsing"),
    ]

    best, score = select_best(candidates, "Deep Learning for Citation Parsing")

    assert best is candidates[1]
    assert score == 1.0


def test_no_candidates_means_no_match():
    assert select_best([], "anything") is None


def test_parse_year():
    assert parse_year(2020) == 2020
    assert parse_year("c. 1999") == 1999
    assert parse_year("") is None
