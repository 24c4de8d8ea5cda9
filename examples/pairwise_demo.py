import numpy as np
import pandas as pd

from plotexp import configure_logging, plot_distributions

configure_logging(level="DEBUG")

rng = np.random.default_rng(1)
df = pd.DataFrame(
    {
        "condition": np.repeat(["ctrl", "low", "mid", "high"], 60),
        "sex": np.tile(["F", "M"], 120),
        "value": np.concatenate([rng.lognormal(mu, 0.4, 60) for mu in (1.0, 1.2, 1.5, 2.0)]),
    }
)

comparisons = pd.DataFrame(
    {
        "group1": ["ctrl", "low", "ctrl", "mid", "ctrl"],
        "group2": ["low", "mid", "high", "high", "mid"],
        "p_signif": ["ns", "*", "***", "**", "**"],
    }
)

fig = plot_distributions(
    df,
    x="condition",
    y="value",
    type="sina",
    color="sex",
    scale="log",
    facet_columns=["sex"],
    x_order=["ctrl", "low", "mid", "high"],
    pairwise_annotation=comparisons,
    pairwise_annotation_exclude=["ns"],
)
fig.show()
