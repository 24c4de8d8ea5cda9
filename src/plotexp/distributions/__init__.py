"""Distribution plots with count and pairwise comparison annotations."""

from plotexp.distributions.annotations import AnnotationRenderer, plot_pairwise_annotation
from plotexp.distributions.distribution_plot import plot_distributions, plot_distributions_from_state
from plotexp.distributions.errors import (
    InvalidComparisonError,
    InvalidTierWidthError,
    MalformedFacetKeyError,
    PlotExpError,
    UnknownCategoryError,
)
from plotexp.distributions.plot_state import DistributionPlotState, DistributionType, FacetType, ScaleType
from plotexp.distributions.presets import PlotPresetStore

__all__ = [
    "AnnotationRenderer",
    "DistributionPlotState",
    "DistributionType",
    "FacetType",
    "InvalidComparisonError",
    "InvalidTierWidthError",
    "MalformedFacetKeyError",
    "PlotExpError",
    "PlotPresetStore",
    "ScaleType",
    "UnknownCategoryError",
    "plot_distributions",
    "plot_distributions_from_state",
    "plot_pairwise_annotation",
]
