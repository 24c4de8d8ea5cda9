"""Tests for drawing tiered pairwise comparison brackets onto figures."""

import pandas as pd
import plotly.graph_objects as go
import pytest

from plotexp.distributions import (
    AnnotationRenderer,
    MalformedFacetKeyError,
    UnknownCategoryError,
    plot_distributions,
    plot_pairwise_annotation,
)
from plotexp.distributions.annotations import PAIRWISE_ANNOTATION_NAME, PAIRWISE_SHAPE_NAME
from plotexp.distributions.dataframe_processor import HAS_POLARS
from plotexp.distributions.facets import FacetLayout


def _brackets(fig):
    return [s for s in fig.layout.shapes if s.name == PAIRWISE_SHAPE_NAME]


def _horizontal(fig):
    return [s for s in _brackets(fig) if s.x0 != s.x1]


def _labels(fig):
    return [a for a in fig.layout.annotations if a.name == PAIRWISE_ANNOTATION_NAME]


@pytest.fixture
def comparisons():
    return pd.DataFrame({
        "group1": ["a", "b", "a", "c"],
        "group2": ["b", "c", "d", "d"],
        "p_signif": ["*", "*", "**", "*"],
    })


@pytest.fixture
def fig(simple_df):
    return plot_distributions(simple_df, "condition", "value", type="jitter", add_boxplot=False)


def test_brackets_are_stacked_in_minimal_tiers(fig, comparisons):
    plot_pairwise_annotation(fig, comparisons)
    assert len(_brackets(fig)) == 3 * len(comparisons)
    heights = {(s.x0, s.x1): s.y0 for s in _horizontal(fig)}
    assert heights[(0.0, 1.0)] == pytest.approx(10.0)
    assert heights[(2.0, 3.0)] == pytest.approx(10.0)
    assert heights[(1.0, 2.0)] == pytest.approx(11.6)
    assert heights[(0.0, 3.0)] == pytest.approx(13.2)


def test_labels_are_centered_above_brackets(fig, comparisons):
    plot_pairwise_annotation(fig, comparisons)
    labels = {a.text: (a.x, a.y) for a in _labels(fig) if a.text == "**"}
    assert labels["**"][0] == pytest.approx(1.5)
    assert labels["**"][1] == pytest.approx(13.2)
    assert len(_labels(fig)) == 4


def test_ticks_point_down_from_bracket_ends(fig, comparisons):
    plot_pairwise_annotation(fig, comparisons.iloc[[0]])
    ticks = [s for s in _brackets(fig) if s.x0 == s.x1]
    assert sorted(s.x0 for s in ticks) == [0.0, 1.0]
    assert all(s.y1 < s.y0 for s in ticks)


def test_value_axis_is_extended_above_top_tier(fig, comparisons):
    plot_pairwise_annotation(fig, comparisons)
    low, high = fig.layout.yaxis.range
    assert low == pytest.approx(-0.5)
    assert high > 13.2


def test_excluded_labels_are_not_drawn(fig, comparisons):
    table = pd.concat([
        comparisons,
        pd.DataFrame({"group1": ["a"], "group2": ["c"], "p_signif": ["ns"]}),
    ])
    plot_pairwise_annotation(fig, table, exclude=["ns"])
    assert len(_labels(fig)) == 4
    assert {round(s.y0, 6) for s in _horizontal(fig)} == {10.0, 11.6, 13.2}


def test_touching_overlaps_policy(fig):
    table = pd.DataFrame({"group1": ["a", "b"], "group2": ["b", "c"], "p_signif": ["*", "*"]})
    plot_pairwise_annotation(fig, table, touching_overlaps=False)
    heights = [s.y0 for s in _horizontal(fig)]
    assert len(heights) == 2
    assert all(y == pytest.approx(10.0) for y in heights)


def test_missing_label_column_leaves_figure_unchanged(fig, comparisons):
    n_shapes, n_annotations = len(fig.layout.shapes), len(fig.layout.annotations)
    out = plot_pairwise_annotation(fig, comparisons, label="p_adj_signif")
    assert out is fig
    assert len(fig.layout.shapes) == n_shapes
    assert len(fig.layout.annotations) == n_annotations


def test_unknown_category_raises_without_partial_output(fig, comparisons):
    table = pd.concat([
        comparisons,
        pd.DataFrame({"group1": ["a"], "group2": ["z"], "p_signif": ["*"]}),
    ])
    with pytest.raises(UnknownCategoryError):
        plot_pairwise_annotation(fig, table)
    assert _brackets(fig) == []
    assert _labels(fig) == []


def test_figure_without_context_raises(comparisons):
    with pytest.raises(ValueError) as exc_info:
        plot_pairwise_annotation(go.Figure(), comparisons)
    assert "plot_distributions" in str(exc_info.value)


def test_missing_group_column_raises(fig):
    with pytest.raises(ValueError):
        plot_pairwise_annotation(fig, pd.DataFrame({"group1": ["a"], "p_signif": ["*"]}))


def test_numeric_categories_match_string_ticks():
    df = pd.DataFrame({"dose": [1, 1, 2, 2, 3, 3], "value": [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]})
    table = pd.DataFrame({"group1": [1], "group2": [3], "p_signif": ["***"]})
    fig = plot_distributions(df, "dose", "value", pairwise_annotation=table)
    (bracket,) = _horizontal(fig)
    assert (bracket.x0, bracket.x1) == (0.0, 2.0)


def test_facet_column_selects_panel(sample_df):
    table = pd.DataFrame({
        "group1": ["a", "a"],
        "group2": ["b", "d"],
        "p_signif": ["*", "**"],
        "sex": ["M", "M"],
    })
    fig = plot_distributions(sample_df, "condition", "value", facet_columns=["sex"],
                             pairwise_annotation=table)
    assert len(_brackets(fig)) == 6
    assert {s.xref for s in _brackets(fig)} == {"x2"}
    assert {a.xref for a in _labels(fig)} == {"x2"}


def test_rows_without_facet_columns_apply_to_every_panel(sample_df):
    table = pd.DataFrame({"group1": ["a"], "group2": ["b"], "p_signif": ["*"]})
    fig = plot_distributions(sample_df, "condition", "value", facet_columns=["sex"],
                             pairwise_annotation=table)
    assert {s.xref for s in _brackets(fig)} == {"x", "x2"}
    assert len(_labels(fig)) == 2


def test_unmatched_facet_value_raises(sample_df):
    fig = plot_distributions(sample_df, "condition", "value", facet_columns=["sex"])
    table = pd.DataFrame({"group1": ["a"], "group2": ["b"], "p_signif": ["*"], "sex": ["X"]})
    with pytest.raises(MalformedFacetKeyError):
        plot_pairwise_annotation(fig, table)


def test_log_scale_brackets():
    """Tiers are laid out in log10; shapes take data values, labels log10 values."""
    df = pd.DataFrame({"g": ["a", "a", "b", "b"], "value": [1.0, 10.0, 1.0, 100.0]})
    table = pd.DataFrame({"group1": ["a"], "group2": ["b"], "p_signif": ["*"]})
    fig = plot_distributions(df, "g", "value", scale="log", pairwise_annotation=table)
    (bracket,) = _horizontal(fig)
    assert bracket.y0 == pytest.approx(100.0)
    (label,) = _labels(fig)
    assert label.y == pytest.approx(2.0)
    assert fig.layout.yaxis.range[1] > 2.0


def test_renderer_draws_on_given_panel():
    facets = FacetLayout.build([("F",), ("M",)], facet_columns=["sex"])
    fig = facets.make_figure()
    renderer = AnnotationRenderer(fig, facets)
    renderer.draw_bracket(("M",), 0, 2, 5.0, tick=0.5)
    renderer.draw_label(("M",), 1, 5.0, "*")
    assert len(fig.layout.shapes) == 3
    assert fig.layout.annotations[-1].text == "*"
    assert fig.layout.annotations[-1].xref == "x2"


@pytest.mark.skipif(not HAS_POLARS, reason="polars not installed")
def test_polars_comparison_table(fig):
    import polars as pl

    table = pl.DataFrame({"group1": ["a"], "group2": ["d"], "p_signif": ["*"]})
    plot_pairwise_annotation(fig, table)
    assert len(_labels(fig)) == 1


def test_numeric_label_column_keeps_integer_categories():
    df = pd.DataFrame({"dose": [1, 1, 2, 2, 3, 3], "value": [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]})
    table = pd.DataFrame({"group1": [1], "group2": [3], "p_signif": [0.01]})
    fig = plot_distributions(df, "dose", "value", pairwise_annotation=table)
    (bracket,) = _horizontal(fig)
    assert (bracket.x0, bracket.x1) == (0.0, 2.0)
    (label,) = _labels(fig)
    assert label.text == "0.01"


def test_rows_without_facet_columns_skip_panels_without_data(sample_df):
    df = sample_df.copy()
    df.loc[df["sex"] == "M", "value"] = float("nan")
    table = pd.DataFrame({"group1": ["a"], "group2": ["b"], "p_signif": ["*"]})
    fig = plot_distributions(df, "condition", "value", facet_columns=["sex"],
                             pairwise_annotation=table)
    assert {s.xref for s in _brackets(fig)} == {"x"}
    assert len(_labels(fig)) == 1


def test_row_naming_panel_without_data_raises(sample_df):
    df = sample_df.copy()
    df.loc[df["sex"] == "M", "value"] = float("nan")
    fig = plot_distributions(df, "condition", "value", facet_columns=["sex"])
    table = pd.DataFrame({"group1": ["a"], "group2": ["b"], "p_signif": ["*"], "sex": ["M"]})
    with pytest.raises(MalformedFacetKeyError):
        plot_pairwise_annotation(fig, table)
