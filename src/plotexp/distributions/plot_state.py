"""Plot state for distribution plots.

This module defines the DistributionType, ScaleType and FacetType enums and the
DistributionPlotState dataclass used to serialize and manage the configuration
of a single plot_distributions() call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class DistributionType(Enum):
    """Enumeration of available distribution plot types."""
    LINE = "line"
    SINA = "sina"
    QUASIRANDOM = "quasirandom"
    JITTER = "jitter"
    VIOLIN = "violin"
    BOX = "box"
    DENSITY = "density"
    RIDGE = "ridge"

    @property
    def has_discrete_x(self) -> bool:
        """True if categories are laid out along the x axis."""
        return self not in (DistributionType.DENSITY, DistributionType.RIDGE)

    @property
    def default_add_boxplot(self) -> bool:
        """Whether a boxplot overlay is drawn unless the caller says otherwise."""
        return self not in (DistributionType.DENSITY, DistributionType.RIDGE, DistributionType.LINE)

    @property
    def supports_pairwise(self) -> bool:
        return self not in (DistributionType.DENSITY, DistributionType.RIDGE)


class ScaleType(Enum):
    """Value axis scale."""
    DEFAULT = "default"
    LOG = "log"


class FacetType(Enum):
    """Facet layout: 'grid' (rows x columns) or 'wrap' (wrapped panels)."""
    GRID = "grid"
    WRAP = "wrap"


@dataclass
class DistributionPlotState:
    """Configuration state for a single distribution plot.

    Holds the column selection, plot type, visual options, outlier handling,
    count and pairwise annotation options, and faceting of a plot.
    """
    x: str
    y: str
    plot_type: DistributionType = DistributionType.QUASIRANDOM
    add_boxplot: Optional[bool] = None   # None: decided by plot_type
    group: Optional[str] = None          # line plots connect points by this column
    color: Optional[str] = None
    fill: Optional[str] = None
    alpha: float = 1.0
    point_size: float = 1.0              # relative size, scaled for Plotly markers
    text_size: float = 2.0               # relative size of count labels
    scale: ScaleType = ScaleType.DEFAULT
    annotate_counts: bool = True
    pairwise_annotation_label: str = "p_signif"
    pairwise_annotation_exclude: list[str] = field(default_factory=list)
    pairwise_annotation_tier_width: float = 0.16
    touching_overlaps: bool = True       # brackets meeting at one category need separate tiers
    lower_quantile: float = 0.0
    upper_quantile: float = 1.0
    drop_outliers: bool = False
    facet_rows: list[str] = field(default_factory=list)
    facet_columns: list[str] = field(default_factory=list)
    facet_type: FacetType = FacetType.GRID
    facet_ncol: Optional[int] = None     # wrap only
    x_order: Optional[list[str]] = None  # explicit category order

    @property
    def show_boxplot(self) -> bool:
        if not self.plot_type.default_add_boxplot:
            return False
        if self.add_boxplot is None:
            return True
        return bool(self.add_boxplot)

    @property
    def facet_columns_all(self) -> list[str]:
        """Row facet columns followed by column facet columns."""
        return list(self.facet_rows) + list(self.facet_columns)

    def referenced_columns(self) -> list[str]:
        """Every data column this state reads, without duplicates."""
        cols = [self.x, self.y, self.group, self.color, self.fill, *self.facet_columns_all]
        out: list[str] = []
        for c in cols:
            if c and c not in out:
                out.append(c)
        return out

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-friendly dictionary (enums as their string values)."""
        return {
            "x": self.x,
            "y": self.y,
            "plot_type": self.plot_type.value,
            "add_boxplot": self.add_boxplot,
            "group": self.group,
            "color": self.color,
            "fill": self.fill,
            "alpha": self.alpha,
            "point_size": self.point_size,
            "text_size": self.text_size,
            "scale": self.scale.value,
            "annotate_counts": self.annotate_counts,
            "pairwise_annotation_label": self.pairwise_annotation_label,
            "pairwise_annotation_exclude": list(self.pairwise_annotation_exclude),
            "pairwise_annotation_tier_width": self.pairwise_annotation_tier_width,
            "touching_overlaps": self.touching_overlaps,
            "lower_quantile": self.lower_quantile,
            "upper_quantile": self.upper_quantile,
            "drop_outliers": self.drop_outliers,
            "facet_rows": list(self.facet_rows),
            "facet_columns": list(self.facet_columns),
            "facet_type": self.facet_type.value,
            "facet_ncol": self.facet_ncol,
            "x_order": list(self.x_order) if self.x_order is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DistributionPlotState":
        """Deserialize from a dictionary, using defaults for missing keys.

        Raises:
            ValueError: If x or y is missing, or an enum value is unknown.
        """
        if not data.get("x") or not data.get("y"):
            raise ValueError("DistributionPlotState requires 'x' and 'y'")
        ncol = data.get("facet_ncol")
        x_order = data.get("x_order")
        return cls(
            x=str(data["x"]),
            y=str(data["y"]),
            plot_type=DistributionType(data.get("plot_type", DistributionType.QUASIRANDOM.value)),
            add_boxplot=data.get("add_boxplot"),  # Can be None
            group=data.get("group"),
            color=data.get("color"),
            fill=data.get("fill"),
            alpha=float(data.get("alpha", 1.0)),
            point_size=float(data.get("point_size", 1.0)),
            text_size=float(data.get("text_size", 2.0)),
            scale=ScaleType(data.get("scale", ScaleType.DEFAULT.value)),
            annotate_counts=bool(data.get("annotate_counts", True)),
            pairwise_annotation_label=str(data.get("pairwise_annotation_label", "p_signif")),
            pairwise_annotation_exclude=[str(v) for v in data.get("pairwise_annotation_exclude") or []],
            pairwise_annotation_tier_width=float(data.get("pairwise_annotation_tier_width", 0.16)),
            touching_overlaps=bool(data.get("touching_overlaps", True)),
            lower_quantile=float(data.get("lower_quantile", 0.0)),
            upper_quantile=float(data.get("upper_quantile", 1.0)),
            drop_outliers=bool(data.get("drop_outliers", False)),
            facet_rows=[str(c) for c in data.get("facet_rows") or []],
            facet_columns=[str(c) for c in data.get("facet_columns") or []],
            facet_type=FacetType(data.get("facet_type", FacetType.GRID.value)),
            facet_ncol=int(ncol) if ncol is not None else None,
            x_order=[str(c) for c in x_order] if x_order is not None else None,
        )
