"""DataFrame processing for distribution plots.

This module provides the DataFrameProcessor class and the module-level helpers
it is built on (outlier handling, count tallies, category and facet ordering),
separating data reshaping from Plotly figure generation.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Optional, Union

import numpy as np
import pandas as pd

from plotexp.distributions.algorithms.annotation_layout import FacetRange
from plotexp.utils.logging import get_logger

logger = get_logger(__name__)

# Optional polars
try:  # pragma: no cover
    import polars as _pl  # type: ignore[import]
    HAS_POLARS = True
except Exception:  # pragma: no cover
    _pl = None  # type: ignore[assignment]
    HAS_POLARS = False

if TYPE_CHECKING:
    import polars as pl
else:
    pl = _pl  # type: ignore[assignment]

DataLike = Union[pd.DataFrame, "pl.DataFrame"]  # type: ignore[name-defined]

FacetKey = tuple[str, ...]


def to_pandas(data: DataLike) -> pd.DataFrame:
    """Return data as a pandas DataFrame (polars frames are converted)."""
    if isinstance(data, pd.DataFrame):
        return data
    if HAS_POLARS and pl is not None and isinstance(data, pl.DataFrame):
        return pd.DataFrame(data.to_dict(as_series=False))
    raise TypeError("Unsupported data type: expected pandas.DataFrame or polars.DataFrame.")


def _sorted_labels(values: Sequence[Any]) -> list[str]:
    """Sort raw values (numerically when possible), then render them as strings."""
    try:
        ordered = sorted(values)
    except TypeError:
        ordered = sorted(values, key=str)
    out: list[str] = []
    for v in ordered:
        s = str(v)
        if s not in out:
            out.append(s)
    return out


def category_order(series: pd.Series, x_order: Optional[Sequence[Any]] = None) -> list[str]:
    """Display order of the categories of a discrete column.

    Explicit x_order wins; otherwise pandas categorical order (unused levels
    included); otherwise sorted unique values.
    """
    if x_order is not None:
        return [str(v) for v in x_order]
    if isinstance(series.dtype, pd.CategoricalDtype):
        return [str(c) for c in series.cat.categories]
    return _sorted_labels(list(series.dropna().unique()))


def facet_key(row: Any, facet_cols: Sequence[str]) -> FacetKey:
    """Facet grouping key of a data row (mapping or Series): its facet values as strings."""
    return tuple(str(row[c]) for c in facet_cols)


def frame_facet_keys(df: pd.DataFrame, facet_cols: Sequence[str]) -> list[FacetKey]:
    """Facet key of every row of df, in row order.

    Values are read per column so each keeps its own dtype.
    """
    if not facet_cols:
        return [()] * len(df)
    columns = [df[c].tolist() for c in facet_cols]
    return [facet_key(dict(zip(facet_cols, vals)), facet_cols) for vals in zip(*columns)]


def fix_outliers(
    data: pd.DataFrame,
    y: str,
    lower_quantile: float = 0.0,
    upper_quantile: float = 1.0,
    drop_outliers: bool = False,
    groups: Sequence[str] = (),
) -> pd.DataFrame:
    """Remove or clip values of y beyond per-group quantiles.

    Quantiles are computed within each combination of groups (missing values
    ignored). With drop_outliers, rows outside the limits and rows with a
    missing y are removed; otherwise y is clipped to the limits.

    Raises:
        ValueError: If the quantiles are not 0 <= lower <= upper <= 1.
    """
    if not 0.0 <= lower_quantile <= upper_quantile <= 1.0:
        raise ValueError(
            f"Quantiles must satisfy 0 <= lower <= upper <= 1, got {lower_quantile}, {upper_quantile}"
        )
    df = data.copy()
    values = pd.to_numeric(df[y], errors="coerce")
    groups = list(groups)
    if groups:
        grouped = values.groupby([df[g] for g in groups], dropna=False, observed=True)
        lower = grouped.transform(lambda s: s.quantile(lower_quantile))
        upper = grouped.transform(lambda s: s.quantile(upper_quantile))
    else:
        lower = pd.Series(values.quantile(lower_quantile), index=df.index)
        upper = pd.Series(values.quantile(upper_quantile), index=df.index)

    is_outlier = (values < lower) | (values > upper)
    if drop_outliers:
        keep = ~is_outlier & values.notna()
        logger.debug(f"fix_outliers: dropping {int((~keep).sum())} of {len(df)} rows")
        return df[keep]
    n_clipped = int(is_outlier.sum())
    if n_clipped:
        logger.debug(f"fix_outliers: clipping {n_clipped} values of {y!r}")
    df[y] = values.clip(lower=lower, upper=upper)
    return df


def compute_counts_annotation_data(
    data: pd.DataFrame,
    x: str,
    groups: Sequence[str] = (),
) -> pd.DataFrame:
    """Number of complete rows per combination of x and groups, in column 'n'."""
    cols: list[str] = []
    for c in [x, *groups]:
        if c not in cols:
            cols.append(c)
    tmp = data[cols].dropna()
    if tmp.empty:
        return pd.DataFrame(columns=[*cols, "n"])
    return tmp.groupby(cols, sort=True, observed=True).size().reset_index(name="n")


class DataFrameProcessor:
    """Validates and reshapes a source DataFrame for distribution plotting.

    Attributes:
        df: The source DataFrame (polars input converted to pandas).
    """

    def __init__(self, df: DataLike, *, required_columns: Sequence[str] = ()) -> None:
        """Initialize with a dataframe and the columns the plot will read.

        Raises:
            TypeError: If df is neither pandas nor polars.
            ValueError: If a required column is missing.
        """
        self.df = to_pandas(df)
        missing = [c for c in required_columns if c and c not in self.df.columns]
        if missing:
            raise ValueError(f"df is missing required column(s): {', '.join(repr(c) for c in missing)}")

    def get_y_values(self, df_f: pd.DataFrame, ycol: str) -> pd.Series:
        """Get ycol as a numeric series (non-numeric entries become NaN)."""
        return pd.to_numeric(df_f[ycol], errors="coerce")

    def fix_outliers(
        self,
        y: str,
        lower_quantile: float,
        upper_quantile: float,
        drop_outliers: bool,
        groups: Sequence[str] = (),
    ) -> pd.DataFrame:
        return fix_outliers(self.df, y, lower_quantile, upper_quantile, drop_outliers, groups)

    def category_order(self, col: str, x_order: Optional[Sequence[Any]] = None) -> list[str]:
        """Display order of col. Unknown entries of x_order are kept and logged."""
        order = category_order(self.df[col], x_order)
        if x_order is not None:
            present = set(self.df[col].dropna().astype(str))
            unused = [c for c in order if c not in present]
            if unused:
                logger.info(f"x_order categories without data in {col!r}: {unused}")
            absent = sorted(present - set(order))
            if absent:
                logger.warning(f"Values of {col!r} not in x_order are not drawn: {absent}")
        return order

    def facet_levels(self, facet_cols: Sequence[str]) -> list[FacetKey]:
        """All facet keys present in the data, ordered by each column's category order."""
        if not facet_cols:
            return [()]
        orders = [category_order(self.df[c]) for c in facet_cols]
        present = set(self.facet_keys(self.df.dropna(subset=list(facet_cols)), facet_cols))
        keys: list[FacetKey] = [()]
        for order in orders:
            keys = [k + (v,) for k in keys for v in order]
        return [k for k in keys if k in present]

    def facet_keys(self, df_f: pd.DataFrame, facet_cols: Sequence[str]) -> list[FacetKey]:
        """Facet key (tuple of strings) of every row of df_f, in row order."""
        return frame_facet_keys(df_f, facet_cols)

    def value_ranges(
        self,
        df_f: pd.DataFrame,
        y: str,
        facet_cols: Sequence[str],
        *,
        log: bool = False,
    ) -> dict[FacetKey, FacetRange]:
        """Finite data range of y per facet, in log10 units when log is True."""
        values = self.get_y_values(df_f, y)
        if log:
            values = np.log10(values.where(values > 0))
        values = values.replace([np.inf, -np.inf], np.nan)
        keys = self.facet_keys(df_f, facet_cols)
        bounds: dict[FacetKey, list[float]] = {}
        for key, v in zip(keys, values.tolist()):
            if pd.isna(v):
                continue
            lo_hi = bounds.setdefault(key, [v, v])
            lo_hi[0] = min(lo_hi[0], v)
            lo_hi[1] = max(lo_hi[1], v)
        return {k: FacetRange(float(lo), float(hi)) for k, (lo, hi) in bounds.items()}
