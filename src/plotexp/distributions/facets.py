"""Facet layout for distribution plots.

A facet is one subplot panel holding the rows that share the values of the
facet columns. FacetLayout maps each facet key (tuple of facet values as
strings) to its 1-based (row, col) subplot position and builds the matching
make_subplots figure.

- grid: panel rows are the combinations of facet_rows, panel columns the
  combinations of facet_columns.
- wrap: every facet is placed left to right, wrapping after ncol panels.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Optional

import plotly.graph_objects as go
from plotly.subplots import make_subplots

from plotexp.distributions.errors import MalformedFacetKeyError
from plotexp.distributions.plot_state import FacetType

FacetKey = tuple[str, ...]


def _unique(seq: Sequence[FacetKey]) -> list[FacetKey]:
    out: list[FacetKey] = []
    for k in seq:
        if k not in out:
            out.append(k)
    return out


@dataclass
class FacetLayout:
    """Subplot positions of the facets of one figure."""
    keys: list[FacetKey]
    positions: dict[FacetKey, tuple[int, int]]
    n_rows: int = 1
    n_cols: int = 1
    subplot_titles: Optional[list[str]] = None
    row_titles: Optional[list[str]] = None
    column_titles: Optional[list[str]] = None
    facet_columns: list[str] = field(default_factory=list)

    @classmethod
    def single(cls) -> "FacetLayout":
        """Layout of an unfaceted plot: one panel with key ()."""
        return cls(keys=[()], positions={(): (1, 1)})

    @classmethod
    def build(
        cls,
        keys: Sequence[FacetKey],
        *,
        facet_rows: Sequence[str] = (),
        facet_columns: Sequence[str] = (),
        facet_type: FacetType = FacetType.GRID,
        ncol: Optional[int] = None,
    ) -> "FacetLayout":
        """Build the layout for the given facet keys (already in display order).

        Keys are tuples of facet_rows values followed by facet_columns values.
        """
        all_cols = list(facet_rows) + list(facet_columns)
        if not all_cols:
            return cls.single()
        keys = _unique(keys)
        for k in keys:
            if len(k) != len(all_cols):
                raise MalformedFacetKeyError(
                    f"Facet key {k!r} does not match facet columns {all_cols!r}"
                )

        if facet_type == FacetType.WRAP:
            n = max(len(keys), 1)
            n_cols = int(ncol) if ncol else int(math.ceil(math.sqrt(n)))
            if n_cols < 1:
                raise ValueError(f"ncol must be >= 1, got {ncol!r}")
            n_cols = min(n_cols, n)
            n_rows = int(math.ceil(n / n_cols))
            positions = {k: (i // n_cols + 1, i % n_cols + 1) for i, k in enumerate(keys)}
            titles = [""] * (n_rows * n_cols)
            for i, k in enumerate(keys):
                titles[i] = ", ".join(k)
            return cls(
                keys=list(keys),
                positions=positions,
                n_rows=n_rows,
                n_cols=n_cols,
                subplot_titles=titles,
                facet_columns=all_cols,
            )

        n_row_cols = len(facet_rows)
        row_keys = _unique([k[:n_row_cols] for k in keys])
        col_keys = _unique([k[n_row_cols:] for k in keys])
        positions = {
            k: (row_keys.index(k[:n_row_cols]) + 1, col_keys.index(k[n_row_cols:]) + 1)
            for k in keys
        }
        return cls(
            keys=list(keys),
            positions=positions,
            n_rows=len(row_keys),
            n_cols=len(col_keys),
            row_titles=[", ".join(k) for k in row_keys] if facet_rows else None,
            column_titles=[", ".join(k) for k in col_keys] if facet_columns else None,
            facet_columns=all_cols,
        )

    def subplot(self, key: FacetKey) -> tuple[int, int]:
        """Return the (row, col) of a facet.

        Raises:
            MalformedFacetKeyError: If key is not a facet of this layout.
        """
        try:
            return self.positions[tuple(key)]
        except (KeyError, TypeError):
            raise MalformedFacetKeyError(f"Unknown facet {key!r}") from None

    def make_figure(self, *, shared_xaxes: bool = True, shared_yaxes: bool = True) -> go.Figure:
        """Create the empty subplot figure for this layout."""
        kwargs: dict[str, Any] = dict(
            rows=self.n_rows,
            cols=self.n_cols,
            shared_xaxes=shared_xaxes,
            shared_yaxes=shared_yaxes,
        )
        if self.subplot_titles is not None:
            kwargs["subplot_titles"] = self.subplot_titles
        if self.row_titles is not None:
            kwargs["row_titles"] = self.row_titles
        if self.column_titles is not None:
            kwargs["column_titles"] = self.column_titles
        if self.n_rows > 1:
            kwargs["vertical_spacing"] = min(0.08, 0.9 / (self.n_rows - 1))
        if self.n_cols > 1:
            kwargs["horizontal_spacing"] = min(0.04, 0.9 / (self.n_cols - 1))
        return make_subplots(**kwargs)

    def to_meta(self) -> dict[str, Any]:
        """JSON-friendly form stored in the figure's layout.meta."""
        return {
            "facet_columns": list(self.facet_columns),
            "keys": [list(k) for k in self.keys],
            "positions": [list(self.positions[k]) for k in self.keys],
        }

    @classmethod
    def from_meta(cls, meta: dict[str, Any]) -> "FacetLayout":
        keys = [tuple(str(v) for v in k) for k in meta.get("keys", [[]])]
        positions = {k: (int(p[0]), int(p[1])) for k, p in zip(keys, meta.get("positions", [[1, 1]]))}
        n_rows = max((p[0] for p in positions.values()), default=1)
        n_cols = max((p[1] for p in positions.values()), default=1)
        return cls(
            keys=keys,
            positions=positions,
            n_rows=n_rows,
            n_cols=n_cols,
            facet_columns=[str(c) for c in meta.get("facet_columns", [])],
        )
