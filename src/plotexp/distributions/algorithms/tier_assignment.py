"""
Tier assignment for pairwise comparison brackets (pure python, no Plotly).

Pairwise annotations (significance brackets) are stacked above a discrete axis
in horizontal lanes called tiers. Two brackets in the same facet may share a
tier only when their spans do not overlap. This module assigns each comparison
the lowest tier it can use, facet by facet:

  1. Comparisons whose label is excluded are dropped.
  2. Every remaining comparison is resolved to an inclusive index span on its
     facet's axis. All spans are resolved before any tier is assigned, so an
     unknown category fails the whole call.
  3. Comparisons are partitioned by facet key.
  4. Within a facet, spans are swept narrowest first (ties: left endpoint, then
     input order) and each gets the lowest tier free of overlapping spans.
     Narrow brackets therefore sit closest to the data. If that sweep uses more
     tiers than the facet's largest set of mutually overlapping spans, the facet
     is recolored sweeping by left endpoint, which is optimal for intervals.

The result is returned in input order of the surviving comparisons.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union

from plotexp.distributions.errors import (
    InvalidComparisonError,
    MalformedFacetKeyError,
    UnknownCategoryError,
)
from plotexp.utils.logging import get_logger

logger = get_logger(__name__)

# One axis shared by every facet, or one axis per facet key.
CategoryAxes = Union[Sequence[Any], Mapping[Hashable, Sequence[Any]]]


@dataclass(frozen=True)
class Comparison:
    """One pairwise annotation request between two categories of a facet."""
    left: Any
    right: Any
    label: str
    facet_key: Hashable = ()


@dataclass(frozen=True)
class Span:
    """Inclusive index interval covered by a comparison on the discrete axis."""
    start: int
    end: int

    @property
    def width(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "Span", touching_overlaps: bool = True) -> bool:
        """True if the two spans cannot share a tier.

        With touching_overlaps, spans meeting at a single shared category
        (e.g. [0, 2] and [2, 4]) overlap, because both brackets end in that
        category's column.
        """
        if touching_overlaps:
            return self.start <= other.end and other.start <= self.end
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class TierAssignment:
    """A comparison with its resolved span and assigned tier."""
    comparison: Comparison
    span: Span
    tier: int


def category_index(axis: Sequence[Any], category: Any) -> int:
    """Return the position of category on axis.

    Labels are matched exactly first, then by their string form so that a
    numeric group value matches the string tick label of the same category.

    Raises:
        UnknownCategoryError: If category is not on the axis.
    """
    for i, c in enumerate(axis):
        if c == category:
            return i
    key = str(category)
    for i, c in enumerate(axis):
        if str(c) == key:
            return i
    raise UnknownCategoryError(category)


def _axis_for_facet(categories: CategoryAxes, facet_key: Hashable) -> Sequence[Any]:
    if isinstance(categories, Mapping):
        if facet_key not in categories:
            raise MalformedFacetKeyError(f"No category axis for facet {facet_key!r}")
        return categories[facet_key]
    return categories


def resolve_span(comparison: Comparison, axis: Sequence[Any]) -> Span:
    """Resolve a comparison to its inclusive index span on axis."""
    try:
        i_left = category_index(axis, comparison.left)
        i_right = category_index(axis, comparison.right)
    except UnknownCategoryError as e:
        raise UnknownCategoryError(e.category, comparison.facet_key) from None
    if i_left == i_right:
        raise InvalidComparisonError(
            f"Comparison endpoints must be distinct categories, got {comparison.left!r} twice"
        )
    return Span(min(i_left, i_right), max(i_left, i_right))


def max_overlap(spans: Iterable[Span], touching_overlaps: bool = True) -> int:
    """Size of the largest set of mutually overlapping spans (the clique number).

    Sweeps endpoint events; at equal positions openings are counted before
    closings when touching spans overlap, and after them otherwise.
    """
    open_first = 0 if touching_overlaps else 1
    events: list[tuple[int, int, int]] = []
    for s in spans:
        events.append((s.start, open_first, 1))
        events.append((s.end, 1 - open_first, -1))
    events.sort()
    best = 0
    current = 0
    for _, _, delta in events:
        current += delta
        best = max(best, current)
    return best


def _greedy_tiers(
    spans: Sequence[Span],
    order: Sequence[int],
    touching_overlaps: bool,
) -> list[int]:
    """Give each span (visited in order) the lowest tier free of overlapping spans."""
    tiers = [-1] * len(spans)
    placed: list[int] = []
    for i in order:
        used = {tiers[j] for j in placed if spans[i].overlaps(spans[j], touching_overlaps)}
        tier = 0
        while tier in used:
            tier += 1
        tiers[i] = tier
        placed.append(i)
    return tiers


def _facet_tiers(spans: Sequence[Span], touching_overlaps: bool) -> list[int]:
    idx = range(len(spans))
    by_width = sorted(idx, key=lambda i: (spans[i].width, spans[i].start, i))
    tiers = _greedy_tiers(spans, by_width, touching_overlaps)
    needed = max_overlap(spans, touching_overlaps)
    if max(tiers) + 1 > needed:
        logger.debug(
            f"width-first sweep used {max(tiers) + 1} tiers, minimum is {needed}; "
            "recoloring by left endpoint"
        )
        by_start = sorted(idx, key=lambda i: (spans[i].start, spans[i].end, i))
        tiers = _greedy_tiers(spans, by_start, touching_overlaps)
    return tiers


def assign_tiers(
    comparisons: Iterable[Comparison],
    categories: CategoryAxes,
    excluded_labels: Iterable[str] = (),
    *,
    touching_overlaps: bool = True,
) -> list[TierAssignment]:
    """Assign every non-excluded comparison the minimal non-overlapping tier.

    Args:
        comparisons: Comparisons to lay out. May be empty.
        categories: Axis categories in display order, shared by all facets, or a
            mapping of facet key -> axis categories.
        excluded_labels: Labels dropped before layout; they consume no tier.
        touching_overlaps: If True (default), spans sharing a single endpoint
            category overlap.

    Returns:
        One TierAssignment per surviving comparison, in input order. Tier
        numbering restarts at 0 in each facet.

    Raises:
        UnknownCategoryError: An endpoint is not on its facet's axis.
        MalformedFacetKeyError: A facet key is unhashable or has no axis.
        InvalidComparisonError: Both endpoints are the same category.
    """
    excluded = set(excluded_labels)
    kept = [c for c in comparisons if c.label not in excluded]

    # Resolve everything first: no partial output on error
    spans: list[Span] = []
    by_facet: dict[Hashable, list[int]] = {}
    for i, comparison in enumerate(kept):
        try:
            hash(comparison.facet_key)
        except TypeError:
            raise MalformedFacetKeyError(
                f"Facet key must be hashable, got {comparison.facet_key!r}"
            ) from None
        axis = _axis_for_facet(categories, comparison.facet_key)
        spans.append(resolve_span(comparison, axis))
        by_facet.setdefault(comparison.facet_key, []).append(i)

    tiers = [0] * len(kept)
    for facet_key, members in by_facet.items():
        facet_tiers = _facet_tiers([spans[i] for i in members], touching_overlaps)
        for i, tier in zip(members, facet_tiers):
            tiers[i] = tier
        logger.debug(f"facet {facet_key!r}: {len(members)} comparisons in {max(facet_tiers) + 1} tiers")

    return [TierAssignment(c, s, t) for c, s, t in zip(kept, spans, tiers)]


def tiers_per_facet(assignments: Iterable[TierAssignment]) -> dict[Hashable, int]:
    """Number of distinct tiers used in each facet."""
    out: dict[Hashable, set[int]] = {}
    for a in assignments:
        out.setdefault(a.comparison.facet_key, set()).add(a.tier)
    return {k: len(v) for k, v in out.items()}
