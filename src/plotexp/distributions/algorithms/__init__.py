"""Algorithms used by distribution figure generation.

Pure python / numpy reference implementations with no Plotly dependency:
tier assignment and vertical placement for pairwise comparison brackets, and
horizontal point placement (jitter, sina, quasirandom) for discrete-axis plots.
"""

from plotexp.distributions.algorithms.annotation_layout import (
    AnnotationPlacement,
    FacetRange,
    compute_annotation_layout,
)
from plotexp.distributions.algorithms.tier_assignment import (
    Comparison,
    Span,
    TierAssignment,
    assign_tiers,
    category_index,
    max_overlap,
    tiers_per_facet,
)

__all__ = [
    "AnnotationPlacement",
    "Comparison",
    "FacetRange",
    "Span",
    "TierAssignment",
    "assign_tiers",
    "category_index",
    "compute_annotation_layout",
    "max_overlap",
    "tiers_per_facet",
]
