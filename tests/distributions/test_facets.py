"""Unit tests for FacetLayout subplot positions."""

import pytest

from plotexp.distributions.errors import MalformedFacetKeyError
from plotexp.distributions.facets import FacetLayout
from plotexp.distributions.plot_state import FacetType


def test_no_facet_columns_gives_single_panel():
    layout = FacetLayout.build([()])
    assert layout.keys == [()]
    assert layout.subplot(()) == (1, 1)
    assert (layout.n_rows, layout.n_cols) == (1, 1)


def test_grid_rows_and_columns():
    keys = [("F", "b1"), ("F", "b2"), ("M", "b1"), ("M", "b2")]
    layout = FacetLayout.build(keys, facet_rows=["sex"], facet_columns=["batch"])
    assert (layout.n_rows, layout.n_cols) == (2, 2)
    assert layout.subplot(("F", "b2")) == (1, 2)
    assert layout.subplot(("M", "b1")) == (2, 1)
    assert layout.row_titles == ["F", "M"]
    assert layout.column_titles == ["b1", "b2"]
    assert layout.facet_columns == ["sex", "batch"]


def test_wrap_fills_rows_left_to_right():
    keys = [("a",), ("b",), ("c",), ("d",), ("e",)]
    layout = FacetLayout.build(keys, facet_columns=["g"], facet_type=FacetType.WRAP, ncol=2)
    assert (layout.n_rows, layout.n_cols) == (3, 2)
    assert [layout.subplot(k) for k in keys] == [(1, 1), (1, 2), (2, 1), (2, 2), (3, 1)]
    assert layout.subplot_titles == ["a", "b", "c", "d", "e", ""]


def test_wrap_default_ncol_is_square_and_clamped():
    keys = [("a",), ("b",), ("c",), ("d",)]
    assert FacetLayout.build(keys, facet_columns=["g"], facet_type=FacetType.WRAP).n_cols == 2
    wide = FacetLayout.build(keys[:2], facet_columns=["g"], facet_type=FacetType.WRAP, ncol=5)
    assert wide.n_cols == 2


def test_unknown_facet_raises():
    layout = FacetLayout.build([("F",), ("M",)], facet_columns=["sex"])
    with pytest.raises(MalformedFacetKeyError):
        layout.subplot(("X",))
    with pytest.raises(MalformedFacetKeyError):
        layout.subplot(["F", []])


def test_key_length_mismatch_raises():
    with pytest.raises(MalformedFacetKeyError):
        FacetLayout.build([("F", "b1")], facet_columns=["sex"])


def test_meta_round_trip_and_figure_grid():
    layout = FacetLayout.build(
        [("F", "b1"), ("M", "b2")], facet_rows=["sex"], facet_columns=["batch"]
    )
    restored = FacetLayout.from_meta(layout.to_meta())
    assert restored.positions == layout.positions
    assert restored.facet_columns == layout.facet_columns
    fig = layout.make_figure()
    assert fig.layout.xaxis4 is not None
