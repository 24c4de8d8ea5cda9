"""
Vertical placement of tiered comparison brackets.

A bracket in tier t of a facet whose data spans [y_min, y_max] is drawn at

    y = y_max + t * tier_width * (y_max - y_min)

so tier 0 sits on top of the data and each further tier is raised by a fixed
fraction of the facet's data range.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass

from plotexp.distributions.algorithms.tier_assignment import Comparison, Span, TierAssignment
from plotexp.distributions.errors import InvalidTierWidthError, MalformedFacetKeyError


@dataclass(frozen=True)
class FacetRange:
    """Data range of the value axis within one facet."""
    y_min: float
    y_max: float

    @property
    def span(self) -> float:
        return self.y_max - self.y_min


@dataclass(frozen=True)
class AnnotationPlacement:
    """A tiered comparison with its bracket height in value-axis units."""
    comparison: Comparison
    span: Span
    tier: int
    y: float
    tier_height: float  # vertical distance between consecutive tiers

    @property
    def x_center(self) -> float:
        return (self.span.start + self.span.end) / 2.0


def validate_tier_width(tier_width: float) -> float:
    """Return tier_width as float, raising if it is not in (0, 1)."""
    try:
        w = float(tier_width)
    except (TypeError, ValueError):
        raise InvalidTierWidthError(tier_width) from None
    if not 0.0 < w < 1.0:
        raise InvalidTierWidthError(tier_width)
    return w


def compute_annotation_layout(
    assignments: Iterable[TierAssignment],
    facet_ranges: Mapping[Hashable, FacetRange],
    tier_width: float,
) -> list[AnnotationPlacement]:
    """Compute the bracket height of every tier assignment.

    Args:
        assignments: Output of assign_tiers().
        facet_ranges: Value-axis data range per facet key.
        tier_width: Distance between tiers as a fraction of the facet's range.

    Raises:
        InvalidTierWidthError: If tier_width is not in (0, 1).
        MalformedFacetKeyError: If an assignment's facet has no data range.
    """
    w = validate_tier_width(tier_width)
    out: list[AnnotationPlacement] = []
    for a in assignments:
        key = a.comparison.facet_key
        if key not in facet_ranges:
            raise MalformedFacetKeyError(f"No data range for facet {key!r}")
        r = facet_ranges[key]
        # A flat facet still needs visible tier spacing
        axis_range = r.span if r.span > 0 else (abs(r.y_max) or 1.0)
        step = w * axis_range
        out.append(AnnotationPlacement(a.comparison, a.span, a.tier, r.y_max + a.tier * step, step))
    return out
