"""
Horizontal point placement for discrete-axis point plots (numpy and scipy only).

Each category is drawn at integer position i on the x axis. Points of that
category are spread horizontally around i by an offset in
[-width/2, +width/2]:

  - jitter:      uniform random offsets.
  - sina:        uniform random offsets scaled by the kernel density at the
                 point's y value, so the cloud traces the violin outline.
  - quasirandom: van der Corput low-discrepancy offsets (assigned in y order)
                 scaled by the density, giving an even, beeswarm-like spread.

Random offsets use one seeded generator per category so figures are
reproducible across runs.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from scipy.stats import gaussian_kde


def relative_density(values: np.ndarray) -> np.ndarray:
    """Kernel density at each value, scaled so the maximum is 1.

    Falls back to all ones when a density cannot be estimated (fewer than two
    distinct finite values).
    """
    v = np.asarray(values, dtype=float)
    out = np.ones(len(v), dtype=float)
    finite = np.isfinite(v)
    if np.unique(v[finite]).size < 2:
        return out
    kde = gaussian_kde(v[finite])
    dens = kde(v[finite])
    peak = dens.max()
    if peak > 0:
        out[finite] = dens / peak
    return out


def van_der_corput(n: int, base: int = 2) -> np.ndarray:
    """First n terms of the van der Corput sequence in [0, 1)."""
    seq = np.zeros(n, dtype=float)
    for i in range(n):
        k = i + 1
        denom = 1.0
        x = 0.0
        while k > 0:
            denom *= base
            k, rem = divmod(k, base)
            x += rem / denom
        seq[i] = x
    return seq


def jitter_offsets(n: int, width: float, seed: int = 0) -> np.ndarray:
    """Uniform offsets in [-width/2, width/2]."""
    rng = np.random.default_rng(seed=seed)
    return rng.uniform(-width / 2, width / 2, size=n)


def sina_offsets(values: np.ndarray, width: float, seed: int = 0) -> np.ndarray:
    """Uniform offsets bounded by the local density of each value."""
    v = np.asarray(values, dtype=float)
    rng = np.random.default_rng(seed=seed)
    u = rng.uniform(-1.0, 1.0, size=len(v))
    return u * relative_density(v) * width / 2


def quasirandom_offsets(values: np.ndarray, width: float) -> np.ndarray:
    """Low-discrepancy offsets bounded by the local density of each value."""
    v = np.asarray(values, dtype=float)
    n = len(v)
    if n == 0:
        return np.zeros(0, dtype=float)
    # Sequence terms are handed out in order of increasing y
    order = np.argsort(v, kind="stable")
    seq = np.empty(n, dtype=float)
    seq[order] = van_der_corput(n)
    return (seq * 2.0 - 1.0) * relative_density(v) * width / 2


def point_offsets(
    method: str,
    values: np.ndarray,
    width: float,
    seed: int = 0,
) -> np.ndarray:
    """Dispatch to the offset function for method ('jitter', 'sina', 'quasirandom')."""
    if method == "jitter":
        return jitter_offsets(len(values), width, seed=seed)
    if method == "sina":
        return sina_offsets(values, width, seed=seed)
    if method == "quasirandom":
        return quasirandom_offsets(values, width)
    raise ValueError(f"Unknown point layout method {method!r}")


def kde_curve(
    values: np.ndarray,
    n_points: int = 256,
    pad_fraction: float = 0.1,
    grid: Optional[np.ndarray] = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Evaluate a gaussian KDE of values on an evenly spaced grid.

    Returns:
        (grid, density). Both are empty when there are fewer than two distinct
        finite values.
    """
    v = np.asarray(values, dtype=float)
    v = v[np.isfinite(v)]
    if np.unique(v).size < 2:
        return np.zeros(0, dtype=float), np.zeros(0, dtype=float)
    if grid is None:
        lo, hi = float(v.min()), float(v.max())
        pad = (hi - lo) * pad_fraction
        grid = np.linspace(lo - pad, hi + pad, n_points)
    kde = gaussian_kde(v)
    return grid, kde(grid)
