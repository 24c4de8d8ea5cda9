"""
plotexp: one-call exploratory distribution plots on Plotly.

This package provides:
- plot_distributions: sina, quasirandom, jitter, violin, box, line, density
  and ridge plots with quantile clipping, faceting and count annotations
- plot_pairwise_annotation: comparison brackets stacked in minimal tiers
- Logging utilities for library and application use

For logging configuration in standalone scripts:
    ```python
    from plotexp.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```
"""

import logging

from plotexp.utils.logging import configure_logging, get_logger

from plotexp.distributions import (
    DistributionPlotState,
    DistributionType,
    plot_distributions,
    plot_pairwise_annotation,
)

# NullHandler so plotexp logs don't reach the root logger until an
# application or script calls configure_logging().
_logger = logging.getLogger("plotexp")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "DistributionPlotState",
    "DistributionType",
    "configure_logging",
    "get_logger",
    "plot_distributions",
    "plot_pairwise_annotation",
]

__version__ = "0.1.0"
