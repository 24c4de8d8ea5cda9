"""Unit tests for tier assignment of pairwise comparison brackets."""

import itertools
import random

import pytest

from plotexp.distributions.algorithms.tier_assignment import (
    Comparison,
    Span,
    assign_tiers,
    category_index,
    max_overlap,
    tiers_per_facet,
)
from plotexp.distributions.errors import (
    InvalidComparisonError,
    MalformedFacetKeyError,
    UnknownCategoryError,
)

AXIS = ["a", "b", "c", "d"]


def _tiers(assignments):
    return {(a.comparison.left, a.comparison.right): a.tier for a in assignments}


def _check_no_overlap(assignments, touching_overlaps=True):
    for x, y in itertools.combinations(assignments, 2):
        if x.comparison.facet_key == y.comparison.facet_key and x.tier == y.tier:
            assert not x.span.overlaps(y.span, touching_overlaps), (x, y)


def test_worked_example():
    """(a,b),(c,d) share tier 0, (b,c) goes to tier 1, (a,d) to tier 2."""
    comparisons = [
        Comparison("a", "b", "*"),
        Comparison("b", "c", "*"),
        Comparison("a", "d", "**"),
        Comparison("c", "d", "*"),
    ]
    result = assign_tiers(comparisons, AXIS)
    assert _tiers(result) == {("a", "b"): 0, ("b", "c"): 1, ("a", "d"): 2, ("c", "d"): 0}
    assert tiers_per_facet(result) == {(): 3}


def test_output_in_input_order_with_spans():
    comparisons = [Comparison("d", "a", "x"), Comparison("b", "a", "y")]
    result = assign_tiers(comparisons, AXIS)
    assert [a.comparison for a in result] == comparisons
    # Endpoints keep their order; the span is normalized
    assert result[0].span == Span(0, 3)
    assert result[1].span == Span(0, 1)


def test_touching_spans_overlap_by_default():
    """[0,2] and [2,3] meet at category c and need separate tiers."""
    comparisons = [Comparison("a", "c", "*"), Comparison("c", "d", "*")]
    result = assign_tiers(comparisons, AXIS)
    assert sorted(a.tier for a in result) == [0, 1]


def test_touching_spans_share_tier_when_disabled():
    comparisons = [Comparison("a", "c", "*"), Comparison("c", "d", "*")]
    result = assign_tiers(comparisons, AXIS, touching_overlaps=False)
    assert [a.tier for a in result] == [0, 0]


def test_excluded_labels_take_no_tier():
    comparisons = [
        Comparison("a", "b", "ns"),
        Comparison("a", "c", "*"),
    ]
    result = assign_tiers(comparisons, AXIS, excluded_labels={"ns"})
    assert len(result) == 1
    assert result[0].comparison.label == "*"
    assert result[0].tier == 0


def test_empty_and_all_excluded_return_empty_layout():
    assert assign_tiers([], AXIS) == []
    assert assign_tiers([Comparison("a", "b", "ns")], AXIS, ["ns"]) == []


def test_facets_are_independent():
    """Tier numbering restarts per facet even when category indices coincide."""
    comparisons = [
        Comparison("a", "b", "*", ("F",)),
        Comparison("a", "b", "*", ("M",)),
        Comparison("a", "c", "*", ("F",)),
    ]
    result = assign_tiers(comparisons, AXIS)
    assert [a.tier for a in result] == [0, 0, 1]
    assert tiers_per_facet(result) == {("F",): 2, ("M",): 1}


def test_per_facet_category_axes():
    axes = {("F",): ["a", "b"], ("M",): ["c", "a"]}
    result = assign_tiers(
        [Comparison("a", "b", "*", ("F",)), Comparison("a", "c", "*", ("M",))],
        axes,
    )
    assert [a.span for a in result] == [Span(0, 1), Span(0, 1)]


def test_unknown_category_raises():
    with pytest.raises(UnknownCategoryError) as exc_info:
        assign_tiers([Comparison("a", "b", "*"), Comparison("a", "z", "*")], AXIS)
    assert "'z'" in str(exc_info.value)
    assert exc_info.value.category == "z"


def test_unknown_category_in_excluded_comparison_is_ignored():
    result = assign_tiers([Comparison("a", "z", "ns")], AXIS, {"ns"})
    assert result == []


def test_facet_missing_from_axis_mapping_raises():
    with pytest.raises(MalformedFacetKeyError):
        assign_tiers([Comparison("a", "b", "*", ("X",))], {("F",): AXIS})


def test_unhashable_facet_key_raises():
    with pytest.raises(MalformedFacetKeyError):
        assign_tiers([Comparison("a", "b", "*", ["F"])], AXIS)


def test_same_category_comparison_raises():
    with pytest.raises(InvalidComparisonError):
        assign_tiers([Comparison("b", "b", "*")], AXIS)


def test_category_index_matches_string_form():
    assert category_index(["1", "2", "3"], 2) == 1
    assert category_index(AXIS, "d") == 3
    with pytest.raises(UnknownCategoryError):
        category_index(AXIS, "e")


def test_max_overlap_policies():
    spans = [Span(0, 2), Span(2, 4), Span(4, 6)]
    assert max_overlap(spans) == 2
    assert max_overlap(spans, touching_overlaps=False) == 1
    assert max_overlap([]) == 0


def test_width_first_falls_back_to_left_endpoint_sweep():
    """Narrow-first placement would need 3 tiers here; the minimum is 2."""
    axis = list("abcdefgh")
    comparisons = [
        Comparison("a", "b", "x"),  # [0,1]
        Comparison("b", "e", "w"),  # [1,4]
        Comparison("e", "g", "y"),  # [4,6]
        Comparison("g", "h", "v"),  # [6,7]
    ]
    result = assign_tiers(comparisons, axis)
    _check_no_overlap(result)
    assert tiers_per_facet(result) == {(): 2}


def test_deterministic_repeated_calls():
    comparisons = [Comparison(l, r, "*") for l, r in itertools.combinations(AXIS, 2)]
    first = assign_tiers(comparisons, AXIS)
    for _ in range(5):
        assert assign_tiers(comparisons, AXIS) == first


@pytest.mark.parametrize("touching_overlaps", [True, False])
def test_random_layouts_are_valid_and_minimal(touching_overlaps):
    """No-overlap and minimality on many random comparison sets."""
    rng = random.Random(1234)
    axis = [f"g{i}" for i in range(9)]
    facets = [("A",), ("B",)]
    for _ in range(200):
        comparisons = []
        for _ in range(rng.randint(1, 14)):
            i, j = rng.sample(range(len(axis)), 2)
            comparisons.append(Comparison(axis[i], axis[j], "*", rng.choice(facets)))
        result = assign_tiers(comparisons, axis, touching_overlaps=touching_overlaps)
        assert len(result) == len(comparisons)
        _check_no_overlap(result, touching_overlaps)
        used = tiers_per_facet(result)
        for facet, n_tiers in used.items():
            spans = [a.span for a in result if a.comparison.facet_key == facet]
            assert n_tiers == max_overlap(spans, touching_overlaps)
            tiers = {a.tier for a in result if a.comparison.facet_key == facet}
            assert tiers == set(range(n_tiers))
