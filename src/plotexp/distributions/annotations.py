"""Annotation layers for distribution figures.

- Count annotations: the number of observations per category, written along
  the bottom of each discrete-axis panel (or the right edge of ridge panels).
- Pairwise annotations: comparison brackets stacked in tiers above the data,
  each labelled with a caller-supplied string such as a significance code.

Tier assignment and bracket heights come from the algorithms package; this
module only turns them into Plotly shapes and annotations.
"""

from __future__ import annotations

from collections.abc import Collection, Hashable, Iterable, Sequence
from typing import Any, Optional

import pandas as pd
import plotly.graph_objects as go

from plotexp.distributions.algorithms.annotation_layout import (
    AnnotationPlacement,
    FacetRange,
    compute_annotation_layout,
    validate_tier_width,
)
from plotexp.distributions.algorithms.tier_assignment import Comparison, assign_tiers
from plotexp.distributions.dataframe_processor import DataLike, FacetKey, frame_facet_keys, to_pandas
from plotexp.distributions.errors import MalformedFacetKeyError
from plotexp.distributions.facets import FacetLayout
from plotexp.distributions.plot_context import get_context
from plotexp.distributions.plot_state import DistributionType, ScaleType
from plotexp.utils.logging import get_logger

logger = get_logger(__name__)

COUNT_ANNOTATION_NAME = "plotexp-count"
PAIRWISE_ANNOTATION_NAME = "plotexp-pairwise"
PAIRWISE_SHAPE_NAME = "plotexp-bracket"

# Relative text sizes are multiplied by this to get font sizes in px
TEXT_SIZE_SCALE = 4.0

# Tick length and label gap as fractions of the distance between tiers
TICK_FRACTION = 0.2
LABEL_HEADROOM_FRACTION = 0.9


class AnnotationRenderer:
    """Draws tiered comparison brackets onto a subplot figure.

    Coordinates are in axis units: x is the category index, y is a value in
    the units the tiers were computed in. On log axes that is log10; shapes
    take data values there while annotations take log10 values, so the
    renderer converts per primitive.
    """

    def __init__(
        self,
        fig: go.Figure,
        facets: FacetLayout,
        *,
        log: bool = False,
        line_color: str = "black",
        line_width: float = 1.0,
        font_size: float = 10,
    ) -> None:
        self.fig = fig
        self.facets = facets
        self.log = log
        self.line_color = line_color
        self.line_width = line_width
        self.font_size = font_size

    def _shape_y(self, y: float) -> float:
        return 10 ** y if self.log else y

    def _line(self, facet: Hashable, x0: float, y0: float, x1: float, y1: float) -> None:
        row, col = self.facets.subplot(facet)
        self.fig.add_shape(
            type="line",
            x0=x0,
            x1=x1,
            y0=self._shape_y(y0),
            y1=self._shape_y(y1),
            line=dict(color=self.line_color, width=self.line_width),
            name=PAIRWISE_SHAPE_NAME,
            row=row,
            col=col,
            exclude_empty_subplots=False,
        )

    def draw_bracket(self, facet: Hashable, x_start: float, x_end: float, y: float, tick: float = 0.0) -> None:
        """Horizontal line from x_start to x_end at y, with downward ticks of length tick."""
        self._line(facet, x_start, y, x_end, y)
        if tick > 0:
            self._line(facet, x_start, y, x_start, y - tick)
            self._line(facet, x_end, y, x_end, y - tick)

    def draw_label(self, facet: Hashable, x_center: float, y: float, text: str) -> None:
        """Text centered horizontally on x_center, sitting on top of y."""
        row, col = self.facets.subplot(facet)
        self.fig.add_annotation(
            x=x_center,
            y=y,
            text=str(text),
            showarrow=False,
            xanchor="center",
            yanchor="bottom",
            font=dict(size=self.font_size, color=self.line_color),
            name=PAIRWISE_ANNOTATION_NAME,
            row=row,
            col=col,
            exclude_empty_subplots=False,
        )

    def render(self, placements: Iterable[AnnotationPlacement]) -> go.Figure:
        """Draw a bracket and label for every placement."""
        for p in placements:
            facet = p.comparison.facet_key
            tick = TICK_FRACTION * p.tier_height
            self.draw_bracket(facet, float(p.span.start), float(p.span.end), p.y, tick)
            self.draw_label(facet, p.x_center, p.y, p.comparison.label)
        return self.fig


def _extend_value_axes(
    fig: go.Figure,
    facets: FacetLayout,
    placements: Sequence[AnnotationPlacement],
    ranges: dict[tuple[str, ...], FacetRange],
) -> None:
    """Raise the top of each panel row's value axis above its highest bracket."""
    tops: dict[tuple[str, ...], float] = {}
    for p in placements:
        top = p.y + LABEL_HEADROOM_FRACTION * p.tier_height
        key = p.comparison.facet_key
        tops[key] = max(tops.get(key, top), top)
    rows: dict[int, list[tuple[str, ...]]] = {}
    for key in facets.keys:
        rows.setdefault(facets.subplot(key)[0], []).append(key)
    for row, keys in rows.items():
        if not any(k in tops for k in keys):
            continue
        lows = [ranges[k].y_min - 0.05 * ranges[k].span for k in keys if k in ranges]
        highs = [tops[k] for k in keys if k in tops]
        highs += [ranges[k].y_max for k in keys if k in ranges]
        for key in keys:
            _, col = facets.subplot(key)
            fig.update_yaxes(range=[min(lows), max(highs)], row=row, col=col)


def comparisons_from_frame(
    pairwise_annotation: pd.DataFrame,
    label: str,
    facets: FacetLayout,
    *,
    group1_col: str = "group1",
    group2_col: str = "group2",
    drawable: Optional[Collection[FacetKey]] = None,
) -> list[Comparison]:
    """Build comparisons from a pairwise table (one row per compared pair).

    Facet columns present in the table select the facet of each row. Facet
    columns missing from the table are treated as wildcards: the row is
    repeated in every facet matching the columns it does have. When drawable
    is given, wildcard rows skip facets outside it (facets without data).

    Raises:
        ValueError: If group1_col or group2_col is missing.
        MalformedFacetKeyError: If a row's facet values match no facet.
    """
    for c in (group1_col, group2_col):
        if c not in pairwise_annotation.columns:
            raise ValueError(f"pairwise_annotation must contain column {c!r}")
    facet_cols = facets.facet_columns
    present = [i for i, c in enumerate(facet_cols) if c in pairwise_annotation.columns]
    present_cols = [facet_cols[i] for i in present]
    wildcard = len(present) < len(facet_cols)

    lefts = pairwise_annotation[group1_col].tolist()
    rights = pairwise_annotation[group2_col].tolist()
    labels = pairwise_annotation[label].tolist()
    partials = frame_facet_keys(pairwise_annotation, present_cols)

    out: list[Comparison] = []
    for left, right, text, partial in zip(lefts, rights, labels, partials):
        matches = [k for k in facets.keys if tuple(k[i] for i in present) == partial]
        if not matches:
            raise MalformedFacetKeyError(
                f"Pairwise annotation facet {dict(zip(present_cols, partial))} "
                "matches no facet of the plot"
            )
        if wildcard and drawable is not None:
            skipped = [k for k in matches if k not in drawable]
            if skipped:
                logger.debug(f"comparison {left!r}-{right!r}: skipping facets without data {skipped}")
            matches = [k for k in matches if k in drawable]
        for key in matches:
            out.append(Comparison(left, right, str(text), key))
    return out


def plot_pairwise_annotation(
    fig: go.Figure,
    pairwise_annotation: DataLike,
    label: str = "p_signif",
    exclude: Iterable[str] = (),
    tier_width: float = 0.16,
    scale: Optional[str] = None,
    *,
    touching_overlaps: bool = True,
    group1_col: str = "group1",
    group2_col: str = "group2",
    text_size: float = 2.5,
) -> go.Figure:
    """Draw tiered comparison brackets onto a figure made by plot_distributions().

    Args:
        fig: Figure carrying plotexp context.
        pairwise_annotation: Table with group1_col, group2_col, the label column,
            and optionally the figure's facet columns.
        label: Column holding the bracket text.
        exclude: Label values that are not drawn (e.g. "ns").
        tier_width: Distance between tiers as a fraction of the facet's range.
        scale: "default" or "log"; defaults to the figure's own scale.
        touching_overlaps: Whether brackets meeting at one category need
            separate tiers.

    Returns:
        The same figure, annotated in place. It is returned unchanged when the
        label column is missing.

    Raises:
        ValueError: If the figure has no plotexp context or the table lacks
            the group columns.
        InvalidTierWidthError: If tier_width is not in (0, 1).
        UnknownCategoryError: If a compared category is not on the x axis.
        MalformedFacetKeyError: If a row matches no facet.
    """
    context = get_context(fig)
    table = to_pandas(pairwise_annotation)
    tier_width = validate_tier_width(tier_width)
    if label not in table.columns:
        logger.warning(f"pairwise annotation label column {label!r} not found; skipping annotation")
        return fig
    if not context.plot_type.supports_pairwise:
        logger.warning(f"pairwise annotation is not drawn on {context.plot_type.value} plots")
        return fig

    scale_type = ScaleType(scale) if scale is not None else context.scale
    ranges = context.ranges_for(scale_type)
    comparisons = comparisons_from_frame(
        table,
        label,
        context.facets,
        group1_col=group1_col,
        group2_col=group2_col,
        drawable=ranges.keys(),
    )
    assignments = assign_tiers(
        comparisons,
        context.categories,
        exclude,
        touching_overlaps=touching_overlaps,
    )
    placements = compute_annotation_layout(assignments, ranges, tier_width)
    logger.debug(f"pairwise annotation: {len(placements)} of {len(comparisons)} comparisons drawn")
    if not placements:
        return fig

    renderer = AnnotationRenderer(
        fig,
        context.facets,
        log=scale_type == ScaleType.LOG,
        font_size=text_size * TEXT_SIZE_SCALE,
    )
    renderer.render(placements)
    _extend_value_axes(fig, context.facets, placements, ranges)
    return fig


def plot_counts_annotation(
    fig: go.Figure,
    counts: pd.DataFrame,
    x: str,
    categories: Sequence[str],
    facets: FacetLayout,
    plot_type: DistributionType,
    text_size: float = 2.0,
) -> go.Figure:
    """Write the count 'n' of every (x, facet) row of counts onto its panel.

    Discrete-axis plots get the count at the bottom of each category column;
    ridge plots get it at the right edge of each ridge. Density plots are left
    unchanged.
    """
    if plot_type == DistributionType.DENSITY:
        return fig
    index = {c: i for i, c in enumerate(categories)}
    font = dict(size=text_size * TEXT_SIZE_SCALE, color="black")
    keys = frame_facet_keys(counts, facets.facet_columns)
    for value, n, key in zip(counts[x].tolist(), counts["n"].tolist(), keys):
        pos = index.get(str(value))
        if pos is None:
            continue
        r, c = facets.subplot(key)
        kwargs: dict[str, Any]
        if plot_type == DistributionType.RIDGE:
            kwargs = dict(x=1, xref="x domain", y=pos, xanchor="right", yanchor="bottom")
        else:
            kwargs = dict(x=pos, y=0, yref="y domain", xanchor="center", yanchor="bottom")
        fig.add_annotation(
            text=str(int(n)),
            showarrow=False,
            font=font,
            name=COUNT_ANNOTATION_NAME,
            row=r,
            col=c,
            exclude_empty_subplots=False,
            **kwargs,
        )
    return fig
