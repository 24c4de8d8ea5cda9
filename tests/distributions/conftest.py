# tests/distributions/conftest.py
"""Pytest configuration and shared fixtures for distribution plot tests."""
from __future__ import annotations

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def sample_df() -> pd.DataFrame:
    """Long-format frame: 4 conditions x 2 batches x 2 sexes, 5 rows each."""
    rng = np.random.default_rng(0)
    rows = []
    for ci, condition in enumerate(["a", "b", "c", "d"]):
        for batch in ["b1", "b2"]:
            for sex in ["F", "M"]:
                for i in range(5):
                    rows.append({
                        "condition": condition,
                        "batch": batch,
                        "sex": sex,
                        "subject": f"s{i}",
                        "value": 1.0 + ci + float(rng.uniform(0, 1)),
                    })
    return pd.DataFrame(rows)


@pytest.fixture
def simple_df() -> pd.DataFrame:
    """Single-facet frame with y exactly spanning [0, 10]."""
    return pd.DataFrame({
        "condition": ["a", "a", "b", "b", "c", "c", "d", "d"],
        "value": [0.0, 1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 10.0],
    })
