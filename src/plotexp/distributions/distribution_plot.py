"""One-call distribution plots.

plot_distributions() builds a complete figure from a long-format table:

  1. Validate the referenced columns (polars input is converted to pandas).
  2. Drop or clip y values outside per-facet quantiles.
  3. Draw the traces of the chosen plot type into one panel per facet.
  4. Store the plot context (categories, facets, value ranges) on the figure.
  5. Add count annotations and pairwise comparison brackets.
  6. Apply the theme.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Optional, Union

import plotly.graph_objects as go

from plotexp.distributions.algorithms.annotation_layout import validate_tier_width
from plotexp.distributions.annotations import plot_counts_annotation, plot_pairwise_annotation
from plotexp.distributions.dataframe_processor import (
    DataFrameProcessor,
    DataLike,
    compute_counts_annotation_data,
)
from plotexp.distributions.facets import FacetLayout
from plotexp.distributions.figure_generator import FigureGenerator
from plotexp.distributions.plot_context import PlotContext, attach_context
from plotexp.distributions.plot_state import (
    DistributionPlotState,
    DistributionType,
    FacetType,
    ScaleType,
)
from plotexp.distributions.theme import ThemeMode, apply_theme
from plotexp.utils.logging import get_logger

logger = get_logger(__name__)


def plot_distributions(
    data: DataLike,
    x: str,
    y: str,
    type: Union[str, DistributionType] = "quasirandom",
    add_boxplot: Optional[bool] = None,
    group: Optional[str] = None,
    color: Optional[str] = None,
    fill: Optional[str] = None,
    alpha: float = 1.0,
    point_size: float = 1.0,
    text_size: float = 2.0,
    scale: str = "default",
    annotate_counts: bool = True,
    pairwise_annotation: Optional[DataLike] = None,
    pairwise_annotation_label: str = "p_signif",
    pairwise_annotation_exclude: Sequence[str] = (),
    pairwise_annotation_tier_width: float = 0.16,
    lower_quantile: float = 0.0,
    upper_quantile: float = 1.0,
    drop_outliers: bool = False,
    facet_rows: Sequence[str] = (),
    facet_columns: Sequence[str] = (),
    facet_type: str = "grid",
    x_order: Optional[Sequence[Any]] = None,
    *,
    ncol: Optional[int] = None,
    touching_overlaps: bool = True,
    theme: ThemeMode = ThemeMode.LIGHT,
) -> go.Figure:
    """Plot the distribution of y for each category of x.

    Args:
        data: Long-format pandas or polars DataFrame.
        x: Discrete column laid out along the category axis.
        y: Numeric column whose distribution is plotted.
        type: One of line, sina, quasirandom, jitter, violin, box, density, ridge.
        add_boxplot: Overlay a transparent boxplot. Defaults to True except for
            density, ridge and line plots, which never get one.
        group: Column whose rows are connected by lines (line plots).
        color: Column mapped to point/line color.
        fill: Column mapped to fill color (violin, density, ridge).
        alpha: Opacity of points and fills.
        point_size: Relative point size.
        text_size: Relative size of count and comparison labels.
        scale: "default" or "log" for the value axis.
        annotate_counts: Write the number of observations per category.
        pairwise_annotation: Table of comparisons (group1, group2, label
            column, optional facet columns).
        pairwise_annotation_label: Column of pairwise_annotation used as text.
        pairwise_annotation_exclude: Label values that are not drawn.
        pairwise_annotation_tier_width: Distance between bracket tiers as a
            fraction of the facet's data range, in (0, 1).
        lower_quantile: Per-facet quantile below which y is clipped/dropped.
        upper_quantile: Per-facet quantile above which y is clipped/dropped.
        drop_outliers: Drop values beyond the quantiles instead of clipping.
        facet_rows: Columns splitting the plot into panel rows.
        facet_columns: Columns splitting the plot into panel columns.
        facet_type: "grid" or "wrap".
        x_order: Explicit category order of x.
        ncol: Number of panel columns for wrap faceting.
        touching_overlaps: Whether brackets meeting at one category need
            separate tiers.
        theme: Light or dark theme.

    Returns:
        Plotly figure carrying its plot context in layout.meta.
    """
    state = DistributionPlotState(
        x=x,
        y=y,
        plot_type=DistributionType(type),
        add_boxplot=add_boxplot,
        group=group,
        color=color,
        fill=fill,
        alpha=alpha,
        point_size=point_size,
        text_size=text_size,
        scale=ScaleType(scale),
        annotate_counts=annotate_counts,
        pairwise_annotation_label=pairwise_annotation_label,
        pairwise_annotation_exclude=list(pairwise_annotation_exclude),
        pairwise_annotation_tier_width=pairwise_annotation_tier_width,
        touching_overlaps=touching_overlaps,
        lower_quantile=lower_quantile,
        upper_quantile=upper_quantile,
        drop_outliers=drop_outliers,
        facet_rows=list(facet_rows),
        facet_columns=list(facet_columns),
        facet_type=FacetType(facet_type),
        facet_ncol=ncol,
        x_order=[str(v) for v in x_order] if x_order is not None else None,
    )
    return plot_distributions_from_state(data, state, pairwise_annotation=pairwise_annotation, theme=theme)


def plot_distributions_from_state(
    data: DataLike,
    state: DistributionPlotState,
    *,
    pairwise_annotation: Optional[DataLike] = None,
    theme: ThemeMode = ThemeMode.LIGHT,
) -> go.Figure:
    """Build a distribution figure from a DistributionPlotState.

    Raises:
        ValueError: If a referenced column is missing or a parameter is invalid.
        InvalidTierWidthError: If the tier width is not in (0, 1).
    """
    processor = DataFrameProcessor(data, required_columns=state.referenced_columns())
    validate_tier_width(state.pairwise_annotation_tier_width)
    groups = state.facet_columns_all

    df_f = processor.fix_outliers(
        state.y,
        state.lower_quantile,
        state.upper_quantile,
        state.drop_outliers,
        groups,
    )
    categories = processor.category_order(state.x, state.x_order)
    facets = FacetLayout.build(
        processor.facet_levels(groups),
        facet_rows=state.facet_rows,
        facet_columns=state.facet_columns,
        facet_type=state.facet_type,
        ncol=state.facet_ncol,
    )

    generator = FigureGenerator(processor, state, categories)
    fig = generator.make_figure(df_f, facets)

    context = PlotContext(
        x=state.x,
        y=state.y,
        plot_type=state.plot_type,
        scale=state.scale,
        categories=categories,
        facets=facets,
        value_ranges=processor.value_ranges(df_f, state.y, groups),
        log_value_ranges=processor.value_ranges(df_f, state.y, groups, log=True),
    )
    attach_context(fig, context)

    if state.annotate_counts:
        counts = compute_counts_annotation_data(df_f, state.x, groups)
        plot_counts_annotation(
            fig, counts, state.x, categories, facets, state.plot_type, state.text_size
        )

    if pairwise_annotation is not None and state.plot_type.supports_pairwise:
        plot_pairwise_annotation(
            fig,
            pairwise_annotation,
            state.pairwise_annotation_label,
            state.pairwise_annotation_exclude,
            state.pairwise_annotation_tier_width,
            state.scale.value,
            touching_overlaps=state.touching_overlaps,
            text_size=state.text_size,
        )
    elif pairwise_annotation is not None:
        logger.warning(f"pairwise annotation is not drawn on {state.plot_type.value} plots")

    color_col = state.color or state.fill
    show_legend = bool(color_col) and state.color != state.x
    apply_theme(fig, theme, show_legend=show_legend)
    return fig
