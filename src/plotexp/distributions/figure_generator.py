"""Plotly figure generation for distribution plots.

This module provides the FigureGenerator class, which draws the traces of a
distribution plot into a (possibly faceted) subplot figure. Each
DistributionType is drawn by its own strategy method; annotation layers and
theming are applied afterwards by plot_distributions().
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Optional

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from plotly.colors import qualitative

from plotexp.distributions.algorithms.point_layout import kde_curve, point_offsets
from plotexp.distributions.dataframe_processor import DataFrameProcessor, category_order
from plotexp.distributions.facets import FacetLayout
from plotexp.distributions.plot_state import DistributionPlotState, DistributionType, ScaleType
from plotexp.utils.logging import get_logger

logger = get_logger(__name__)

# Plotly marker size for point_size == 1
POINT_SIZE_SCALE = 5.0

# Share of a category's slot used by points, violins and ridges
POINT_WIDTH = 0.8
BOX_WIDTH = 0.3
RIDGE_HEIGHT = 0.9

DEFAULT_COLOR = "#333333"
PALETTE = qualitative.Plotly

# Strategy signature: (fig, sub, state, row, col) -> None
Strategy = Callable[[go.Figure, pd.DataFrame, DistributionPlotState, int, int], None]


def _rgba(color: str, alpha: float) -> str:
    """Convert '#rrggbb' to an rgba() string with the given alpha."""
    c = color.lstrip("#")
    r, g, b = int(c[0:2], 16), int(c[2:4], 16), int(c[4:6], 16)
    return f"rgba({r}, {g}, {b}, {alpha})"


class FigureGenerator:
    """Generates Plotly distribution figures from data and plot state.

    Attributes:
        data_processor: DataFrameProcessor holding the (outlier-fixed) data.
        categories: Discrete axis categories in display order.
        color_levels: Levels of the color (or fill) column in display order.
    """

    def __init__(
        self,
        data_processor: DataFrameProcessor,
        state: DistributionPlotState,
        categories: Sequence[str],
    ) -> None:
        self.data_processor = data_processor
        self.state = state
        self.categories = list(categories)
        self._cat_to_pos = {c: i for i, c in enumerate(self.categories)}
        self.color_col = state.color or state.fill
        df = data_processor.df
        self.color_levels: list[str] = (
            category_order(df[self.color_col]) if self.color_col else []
        )
        self._legend_seen: set[str] = set()
        self._strategies: dict[DistributionType, Strategy] = {
            DistributionType.LINE: self._figure_line,
            DistributionType.SINA: self._figure_points,
            DistributionType.QUASIRANDOM: self._figure_points,
            DistributionType.JITTER: self._figure_points,
            DistributionType.VIOLIN: self._figure_violin,
            DistributionType.BOX: self._figure_box,
            DistributionType.DENSITY: self._figure_density,
            DistributionType.RIDGE: self._figure_ridge,
        }

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def make_figure(self, df_f: pd.DataFrame, facets: FacetLayout) -> go.Figure:
        """Draw every facet of df_f into a new subplot figure."""
        state = self.state
        logger.info(
            f"FigureGenerator.make_figure: plot_type={state.plot_type.value}, "
            f"rows={len(df_f)}, facets={len(facets.keys)}, x={state.x}, y={state.y}"
        )
        fig = facets.make_figure(
            shared_xaxes=True,
            shared_yaxes=True,
        )
        keys = self.data_processor.facet_keys(df_f, facets.facet_columns)
        strategy = self._strategies[state.plot_type]
        for key in facets.keys:
            sub = df_f[np.array([k == key for k in keys], dtype=bool)]
            row, col = facets.subplot(key)
            strategy(fig, sub, state, row, col)
            if state.show_boxplot:
                self._add_boxplot_overlay(fig, sub, state, row, col)

        self._layout_axes(fig, facets)
        logger.debug(f"Figure generated: {len(fig.data)} traces")
        return fig

    def positions(self, sub: pd.DataFrame) -> pd.Series:
        """Discrete axis position of every row of sub (NaN if not on the axis)."""
        return sub[self.state.x].astype(str).map(self._cat_to_pos).astype(float)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _color_for(self, level: Optional[str]) -> str:
        if level is None or not self.color_levels:
            return DEFAULT_COLOR
        return PALETTE[self.color_levels.index(level) % len(PALETTE)]

    def _show_legend(self, level: Optional[str]) -> bool:
        """Legend entry only for the first trace of each color level."""
        if level is None:
            return False
        if level in self._legend_seen:
            return False
        self._legend_seen.add(level)
        return True

    def _tidy(self, sub: pd.DataFrame, *, require_position: bool = True) -> pd.DataFrame:
        """x position, numeric y and color level of sub, rows without x or y dropped."""
        tmp = pd.DataFrame({
            "pos": self.positions(sub),
            "y": self.data_processor.get_y_values(sub, self.state.y),
        }, index=sub.index)
        if self.color_col:
            tmp["color"] = sub[self.color_col].astype(str).where(sub[self.color_col].notna())
        else:
            tmp["color"] = None
        return tmp.dropna(subset=["pos", "y"] if require_position else ["y"])

    def _color_groups(self, tmp: pd.DataFrame) -> list[tuple[Optional[str], pd.DataFrame]]:
        if not self.color_col:
            return [(None, tmp)]
        out = []
        for level in self.color_levels:
            part = tmp[tmp["color"] == level]
            if len(part) > 0:
                out.append((level, part))
        return out

    def _marker(self, color: str) -> dict[str, Any]:
        return dict(
            symbol="circle-open",
            size=self.state.point_size * POINT_SIZE_SCALE,
            color=color,
            opacity=self.state.alpha,
        )

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _figure_points(
        self, fig: go.Figure, sub: pd.DataFrame, state: DistributionPlotState, row: int, col: int
    ) -> None:
        """Sina, quasirandom or jitter points around each category position.

        Quasirandom dodges color groups side by side within a category; sina
        and jitter overlay them.
        """
        tmp = self._tidy(sub)
        groups = self._color_groups(tmp)
        n_groups = len(groups)
        dodge = state.plot_type == DistributionType.QUASIRANDOM and n_groups > 1 and self.color_col != state.x
        width = POINT_WIDTH / n_groups if dodge else POINT_WIDTH
        for group_idx, (level, part) in enumerate(groups):
            offset = (group_idx - (n_groups - 1) / 2) * width if dodge else 0.0
            xs = np.empty(len(part), dtype=float)
            for pos, cat_part in part.groupby("pos", sort=True):
                mask = (part["pos"] == pos).to_numpy()
                # One seed per (category, color group) keeps jitter reproducible
                seed = int(pos) * 1000 + group_idx
                xs[mask] = pos + offset + point_offsets(
                    state.plot_type.value, cat_part["y"].to_numpy(), width, seed=seed
                )
            color = self._color_for(level)
            fig.add_trace(go.Scatter(
                x=xs,
                y=part["y"].to_numpy(),
                mode="markers",
                name=level if level is not None else state.y,
                legendgroup=level,
                showlegend=self._show_legend(level),
                marker=self._marker(color),
                hovertemplate=f"{state.x}=%{{customdata}}<br>{state.y}=%{{y}}<extra></extra>",
                customdata=[self.categories[int(p)] for p in part["pos"]],
            ), row=row, col=col)

    def _figure_line(
        self, fig: go.Figure, sub: pd.DataFrame, state: DistributionPlotState, row: int, col: int
    ) -> None:
        """Lines connecting points of the same group across categories, with hollow markers."""
        tmp = self._tidy(sub)
        if state.group:
            tmp["group"] = sub.loc[tmp.index, state.group].astype(str)
        else:
            tmp["group"] = tmp["color"].fillna("") if self.color_col else ""
        for group_val, part in tmp.groupby("group", sort=True):
            part = part.sort_values("pos", kind="stable")
            level = part["color"].iloc[0] if self.color_col else None
            color = self._color_for(level)
            fig.add_trace(go.Scatter(
                x=part["pos"].to_numpy(),
                y=part["y"].to_numpy(),
                mode="lines+markers",
                name=str(level) if level is not None else str(group_val),
                legendgroup=level,
                showlegend=self._show_legend(level),
                line=dict(color=color, width=1),
                opacity=state.alpha,
                marker=self._marker(color),
            ), row=row, col=col)

    def _figure_violin(
        self, fig: go.Figure, sub: pd.DataFrame, state: DistributionPlotState, row: int, col: int
    ) -> None:
        """Violin per category; color groups are dodged side by side."""
        tmp = self._tidy(sub)
        for level, part in self._color_groups(tmp):
            color = self._color_for(level)
            fig.add_trace(go.Violin(
                x=part["pos"].to_numpy(),
                y=part["y"].to_numpy(),
                name=level if level is not None else state.y,
                legendgroup=level,
                showlegend=self._show_legend(level),
                alignmentgroup="violin",
                offsetgroup=level,
                line=dict(color=color if state.color else "black", width=1),
                fillcolor=_rgba(color, state.alpha) if state.fill else "rgba(0, 0, 0, 0)",
                width=POINT_WIDTH,
                points=False,
                box_visible=False,
                meanline_visible=False,
                hoveron="violins",
            ), row=row, col=col)

    def _figure_box(
        self, fig: go.Figure, sub: pd.DataFrame, state: DistributionPlotState, row: int, col: int
    ) -> None:
        """Box and whiskers per category with outlier points."""
        tmp = self._tidy(sub)
        for level, part in self._color_groups(tmp):
            color = self._color_for(level)
            fig.add_trace(go.Box(
                x=part["pos"].to_numpy(),
                y=part["y"].to_numpy(),
                name=level if level is not None else state.y,
                legendgroup=level,
                showlegend=self._show_legend(level),
                alignmentgroup="box",
                offsetgroup=level,
                boxpoints="outliers",
                width=BOX_WIDTH,
                marker=dict(size=state.point_size * POINT_SIZE_SCALE, color=color),
                line=dict(color=color, width=1.5),
                fillcolor="rgba(255, 255, 255, 1)",
            ), row=row, col=col)

    def _figure_density(
        self, fig: go.Figure, sub: pd.DataFrame, state: DistributionPlotState, row: int, col: int
    ) -> None:
        """Kernel density of y per color/fill group; y values run along the x axis."""
        tmp = self._tidy(sub, require_position=False)
        for level, part in self._color_groups(tmp):
            grid, dens = kde_curve(part["y"].to_numpy())
            if len(grid) == 0:
                logger.debug(f"density: too few distinct values for group {level!r}, skipped")
                continue
            color = self._color_for(level)
            fig.add_trace(go.Scatter(
                x=grid,
                y=dens,
                mode="lines",
                name=level if level is not None else state.y,
                legendgroup=level,
                showlegend=self._show_legend(level),
                line=dict(color=color if state.color or not state.fill else "black", width=1.5),
                fill="tozeroy" if state.fill else None,
                fillcolor=_rgba(color, state.alpha) if state.fill else None,
            ), row=row, col=col)

    def _figure_ridge(
        self, fig: go.Figure, sub: pd.DataFrame, state: DistributionPlotState, row: int, col: int
    ) -> None:
        """One density ridge per category, stacked along the y axis."""
        tmp = self._tidy(sub)
        curves: list[tuple[Optional[str], float, np.ndarray, np.ndarray]] = []
        for level, part in self._color_groups(tmp):
            for pos, cat_part in part.groupby("pos", sort=True):
                grid, dens = kde_curve(cat_part["y"].to_numpy())
                if len(grid):
                    curves.append((level, float(pos), grid, dens))
        if not curves:
            return
        # Tallest ridge in the panel reaches RIDGE_HEIGHT above its baseline
        peak = max(float(d.max()) for _, _, _, d in curves)
        for level, pos, grid, dens in curves:
            color = self._color_for(level)
            height = dens / peak * RIDGE_HEIGHT if peak > 0 else dens
            fig.add_trace(go.Scatter(
                x=np.concatenate([grid, grid[::-1]]),
                y=np.concatenate([pos + height, np.full(len(grid), pos)]),
                mode="lines",
                fill="toself",
                name=level if level is not None else self.categories[int(pos)],
                legendgroup=level,
                showlegend=self._show_legend(level),
                line=dict(color=color if state.color else "black", width=1),
                fillcolor=_rgba(color, state.alpha) if state.fill else "rgba(255, 255, 255, 0.8)",
                hoverinfo="skip",
            ), row=row, col=col)

    def _add_boxplot_overlay(
        self, fig: go.Figure, sub: pd.DataFrame, state: DistributionPlotState, row: int, col: int
    ) -> None:
        """Transparent black boxplot per category on top of the plot."""
        tmp = self._tidy(sub)
        if tmp.empty:
            return
        fig.add_trace(go.Box(
            x=tmp["pos"].to_numpy(),
            y=tmp["y"].to_numpy(),
            name="box",
            showlegend=False,
            boxpoints=False,
            width=BOX_WIDTH,
            line=dict(color="black", width=1),
            fillcolor="rgba(0, 0, 0, 0)",
            hoverinfo="skip",
        ), row=row, col=col)

    # ------------------------------------------------------------------
    # Axes
    # ------------------------------------------------------------------

    def _layout_axes(self, fig: go.Figure, facets: FacetLayout) -> None:
        """Category ticks on the discrete axis, log value axis, axis titles."""
        state = self.state
        n = len(self.categories)
        category_axis = dict(
            tickmode="array",
            tickvals=list(range(n)),
            ticktext=self.categories,
            range=[-0.5, n - 0.5],
        )
        log = state.scale == ScaleType.LOG
        if state.plot_type == DistributionType.DENSITY:
            x_title, y_title = state.y, "density"
            fig.update_xaxes(type="log" if log else "linear")
        elif state.plot_type == DistributionType.RIDGE:
            x_title, y_title = state.y, state.x
            fig.update_yaxes(**category_axis)
            fig.update_yaxes(range=[-0.5, n - 0.5 + RIDGE_HEIGHT])
            fig.update_xaxes(type="log" if log else "linear")
        else:
            x_title, y_title = state.x, state.y
            fig.update_xaxes(**category_axis)
            fig.update_yaxes(type="log" if log else "linear")

        # Titles on the bottom row and first column only
        fig.update_xaxes(title_text=x_title, row=facets.n_rows)
        fig.update_yaxes(title_text=y_title, col=1)
        if self.color_col and self.color_col != state.x:
            fig.update_layout(legend_title_text=self.color_col)
        if state.plot_type in (DistributionType.VIOLIN,):
            fig.update_layout(violinmode="group")
        if state.plot_type == DistributionType.BOX and self.color_col:
            fig.update_layout(boxmode="group")
