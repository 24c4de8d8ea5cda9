"""Exception types raised by plotexp distribution plotting.

All errors are local validation failures and derive from ValueError, so callers
that already guard plotting calls with ``except ValueError`` keep working.
"""

from __future__ import annotations


class PlotExpError(ValueError):
    """Base class for plotexp validation errors."""


class UnknownCategoryError(PlotExpError):
    """A comparison references a category that is not on the facet's axis."""

    def __init__(self, category: object, facet_key: object = None) -> None:
        self.category = category
        self.facet_key = facet_key
        where = f" in facet {facet_key!r}" if facet_key not in (None, ()) else ""
        super().__init__(f"Unknown category {category!r}{where}")


class MalformedFacetKeyError(PlotExpError):
    """A facet key is unhashable or does not match any facet of the plot."""


class InvalidTierWidthError(PlotExpError):
    """Tier width is outside the open interval (0, 1)."""

    def __init__(self, tier_width: object) -> None:
        self.tier_width = tier_width
        super().__init__(f"tier_width must be in the open interval (0, 1), got {tier_width!r}")


class InvalidComparisonError(PlotExpError):
    """A comparison's two endpoints are the same category."""
