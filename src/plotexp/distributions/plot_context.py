"""Plot context carried by distribution figures.

Layers added after a figure is built (pairwise annotations) need the figure's
category axis, facet positions and per-facet value ranges. plot_distributions()
stores them as JSON in ``fig.layout.meta["plotexp"]``; get_context() reads them
back from any figure, including one rebuilt from ``fig.to_dict()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import plotly.graph_objects as go

from plotexp.distributions.algorithms.annotation_layout import FacetRange
from plotexp.distributions.facets import FacetLayout
from plotexp.distributions.plot_state import DistributionType, ScaleType

META_KEY = "plotexp"

FacetKey = tuple[str, ...]


def _ranges_to_meta(ranges: dict[FacetKey, FacetRange]) -> list[list[Any]]:
    return [[list(k), r.y_min, r.y_max] for k, r in ranges.items()]


def _ranges_from_meta(items: list[list[Any]]) -> dict[FacetKey, FacetRange]:
    return {tuple(str(v) for v in k): FacetRange(float(lo), float(hi)) for k, lo, hi in items}


@dataclass
class PlotContext:
    """What later layers need to know about a distribution figure."""
    x: str
    y: str
    plot_type: DistributionType
    scale: ScaleType
    categories: list[str]
    facets: FacetLayout
    value_ranges: dict[FacetKey, FacetRange] = field(default_factory=dict)
    log_value_ranges: dict[FacetKey, FacetRange] = field(default_factory=dict)

    def ranges_for(self, scale: ScaleType) -> dict[FacetKey, FacetRange]:
        """Per-facet value ranges in the units of the given scale."""
        return self.log_value_ranges if scale == ScaleType.LOG else self.value_ranges

    def to_meta(self) -> dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "plot_type": self.plot_type.value,
            "scale": self.scale.value,
            "categories": list(self.categories),
            "facets": self.facets.to_meta(),
            "value_ranges": _ranges_to_meta(self.value_ranges),
            "log_value_ranges": _ranges_to_meta(self.log_value_ranges),
        }

    @classmethod
    def from_meta(cls, meta: dict[str, Any]) -> "PlotContext":
        return cls(
            x=str(meta["x"]),
            y=str(meta["y"]),
            plot_type=DistributionType(meta["plot_type"]),
            scale=ScaleType(meta.get("scale", ScaleType.DEFAULT.value)),
            categories=[str(c) for c in meta.get("categories", [])],
            facets=FacetLayout.from_meta(meta.get("facets", {})),
            value_ranges=_ranges_from_meta(meta.get("value_ranges", [])),
            log_value_ranges=_ranges_from_meta(meta.get("log_value_ranges", [])),
        )


def attach_context(fig: go.Figure, context: PlotContext) -> go.Figure:
    """Store context in fig.layout.meta, keeping any other meta entries."""
    meta = fig.layout.meta
    meta = dict(meta) if isinstance(meta, dict) else {}
    meta[META_KEY] = context.to_meta()
    fig.update_layout(meta=meta)
    return fig


def get_context(fig: go.Figure) -> PlotContext:
    """Read the plot context of a figure made by plot_distributions().

    Raises:
        ValueError: If the figure carries no plotexp context.
    """
    meta = fig.layout.meta
    if not isinstance(meta, dict) or META_KEY not in meta:
        raise ValueError("Figure has no plotexp context; create it with plot_distributions()")
    return PlotContext.from_meta(meta[META_KEY])
