"""
Scale analysis skill. Detects magnitude mismatches between series.

When one category's values dwarf another's, a single shared y-axis flattens
the smaller series. The analysis is advisory: it changes the decision text
and names the dominant category, never the chart type.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import pandas as pd

from core.config import VisualizationConfig, get_config
from core.models import CategoryStats, ScaleAnalysis
from core.utils import number_or_zero, series_key

logger = logging.getLogger("uvicorn.error")


def analyze_scale(
    rows: Sequence[Dict[str, Any]],
    category_field: str,
    value_field: str,
    config: Optional[VisualizationConfig] = None,
) -> ScaleAnalysis:
    """
    Group *value_field* by *category_field* and compare per-category maxima.

    scale_ratio = max(category maxes) / (min(category maxes) or 1)
    """
    config = config or get_config()
    if not rows:
        return ScaleAnalysis()

    frame = pd.DataFrame({
        "category": [series_key(r.get(category_field)) for r in rows],
        "value": [float(number_or_zero(r.get(value_field))) for r in rows],
    })
    grouped = frame.groupby("category", sort=False)["value"]
    agg = grouped.agg(["min", "max", "mean"])

    category_stats: Dict[str, CategoryStats] = {}
    for category, values in grouped:
        stats = agg.loc[category]
        category_stats[str(category)] = CategoryStats(
            values=values.tolist(),
            min=float(stats["min"]),
            max=float(stats["max"]),
            avg=float(stats["mean"]),
        )

    maxes = agg["max"]
    smallest = float(maxes.min())
    scale_ratio = float(maxes.max()) / (smallest or 1)
    dominant = str(maxes.idxmax())

    analysis = ScaleAnalysis(
        category_stats=category_stats,
        scale_ratio=scale_ratio,
        has_scale_issues=scale_ratio > config.scale_issue_ratio,
        dominant_category=dominant,
    )
    if analysis.has_scale_issues:
        logger.info(
            "Scale mismatch across %d series: ratio=%.1f dominant=%r",
            len(category_stats), scale_ratio, dominant,
        )
    return analysis
