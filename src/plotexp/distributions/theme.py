"""Theme utilities for distribution figures.

apply_theme() gives every figure the same classic look: plain background,
solid axis lines with outside ticks, no grid lines, and small fonts.
"""

from __future__ import annotations

from enum import Enum

import plotly.graph_objects as go

BASE_FONT_SIZE = 10


class ThemeMode(str, Enum):
    """Figure theme mode."""

    DARK = "dark"
    LIGHT = "light"


def get_theme_colors(theme: ThemeMode) -> tuple[str, str]:
    """Get background and foreground colors for a theme."""
    if theme is ThemeMode.DARK:
        return "#000000", "#ffffff"
    return "#ffffff", "#000000"


def get_theme_template(theme: ThemeMode) -> str:
    """Get Plotly template name for a theme."""
    if theme is ThemeMode.DARK:
        return "plotly_dark"
    return "plotly_white"


def apply_theme(
    fig: go.Figure,
    theme: ThemeMode = ThemeMode.LIGHT,
    *,
    show_legend: bool = True,
    font_size: int = BASE_FONT_SIZE,
) -> go.Figure:
    """Apply the plotexp theme to fig in place and return it."""
    bg, fg = get_theme_colors(theme)
    axis_style = dict(
        showgrid=False,
        zeroline=False,
        showline=True,
        linecolor=fg,
        linewidth=1,
        ticks="outside",
        tickcolor=fg,
        mirror=False,
    )
    fig.update_xaxes(**axis_style)
    fig.update_yaxes(**axis_style)
    fig.update_layout(
        template=get_theme_template(theme),
        paper_bgcolor=bg,
        plot_bgcolor=bg,
        font=dict(size=font_size, color=fg),
        showlegend=show_legend,
        margin=dict(l=50, r=20, t=40, b=50),
    )
    # Facet strip titles are the only unnamed layout annotations
    fig.update_annotations(selector=lambda a: not a.name, font_size=font_size)
    return fig
