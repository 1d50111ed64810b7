"""
Deterministic chart selection — no LLM.

decide() walks a fixed decision table over the field classification and the
shape of the dataset; the first matching rule wins. Every decision carries
generated title / description / reason text that depends only on the inputs.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

from core.config import VisualizationConfig, get_config
from core.models import (
    ChartArchetype,
    ChartDecision,
    ChartLayout,
    FieldClassification,
    FieldDescriptor,
)
from core.utils import hashable_key, number_or_zero, to_number
from skills.classify import classify_fields
from skills.scale import analyze_scale

logger = logging.getLogger("uvicorn.error")


# ---------------------------------------------------------------------------
# Shape helpers
# ---------------------------------------------------------------------------

def _distinct_count(rows: Sequence[Dict[str, Any]], field: str) -> int:
    return len({hashable_key(row.get(field)) for row in rows})


def is_descending_sorted(
    rows: Sequence[Dict[str, Any]],
    field: str,
    window: int = 3,
) -> bool:
    """
    True when *field* does not increase across the leading adjacent row pairs.

    Only the first min(window, n - 1) pairs are checked, so a dataset whose
    first rows happen to descend counts as a ranking even if the rest ascends.
    """
    if len(rows) <= 1:
        return False
    pairs = min(window, len(rows) - 1)
    for i in range(pairs):
        if number_or_zero(rows[i].get(field)) < number_or_zero(rows[i + 1].get(field)):
            return False
    return True


def _correlation_label_field(
    rows: Sequence[Dict[str, Any]],
    classification: FieldClassification,
) -> Optional[str]:
    """Return the label field of a correlation matrix, or None if this is not one."""
    numeric = classification.numeric_fields
    if len(rows) < 2 or len(numeric) < 2:
        return None
    for label_field in classification.text_fields:
        matched = True
        for row in rows:
            label = row.get(label_field)
            if label not in numeric:
                matched = False
                break
            if to_number(row.get(label)) != 1:
                matched = False
                break
        if matched:
            return label_field
    return None


# ---------------------------------------------------------------------------
# Decision table
# ---------------------------------------------------------------------------

def _empty_decision() -> ChartDecision:
    return ChartDecision(
        archetype=ChartArchetype.none,
        layout=ChartLayout.empty,
        title="No Data",
        description="No data available to visualize",
        reason="Empty dataset",
    )


def _line_decision(
    rows: Sequence[Dict[str, Any]],
    classification: FieldClassification,
    config: VisualizationConfig,
) -> ChartDecision:
    date_field = classification.date_fields[0]
    value_field = classification.numeric_fields[0]
    text_fields = classification.text_fields

    if text_fields and len(rows) > _distinct_count(rows, date_field):
        category_field = text_fields[0]
        analysis = analyze_scale(
            rows[: config.max_rows], category_field, value_field, config,
        )
        if analysis.has_scale_issues:
            description = (
                f"{category_field} trends over time (mixed scales: "
                f"{analysis.dominant_category} is {analysis.scale_ratio:.0f}x the smallest series)"
            )
            reason = "Multiple series over time detected with values on very different scales"
        else:
            description = f"{category_field} trends over time"
            reason = "Multiple series over time detected"
        return ChartDecision(
            archetype=ChartArchetype.line,
            layout=ChartLayout.multi_series,
            title="Multi-Series Time Analysis",
            description=description,
            reason=reason,
            x_field=date_field,
            y_field=value_field,
            category_field=category_field,
            scale_analysis=analysis,
        )

    return ChartDecision(
        archetype=ChartArchetype.line,
        layout=ChartLayout.time_series,
        title="Time Series Analysis",
        description=f"{value_field} over time",
        reason="Date column detected with numeric data",
        x_field=text_fields[0] if text_fields else date_field,
        y_field=value_field,
    )


def _category_decision(
    rows: Sequence[Dict[str, Any]],
    classification: FieldClassification,
    config: VisualizationConfig,
) -> ChartDecision:
    text_field = classification.text_fields[0]
    value_field = classification.numeric_fields[0]

    if is_descending_sorted(rows, value_field, config.ranking_window):
        return ChartDecision(
            archetype=ChartArchetype.bar,
            layout=ChartLayout.ranking,
            title="Ranking Analysis",
            description=f"{text_field} ranked by {value_field}",
            reason="Categorical data sorted by numeric values",
            x_field=text_field,
            y_field=value_field,
        )

    if len(rows) <= config.piechart_threshold:
        return ChartDecision(
            archetype=ChartArchetype.pie,
            layout=ChartLayout.distribution,
            title="Distribution Analysis",
            description=f"{text_field} distribution by {value_field}",
            reason=(
                f"Small number of categories (<={config.piechart_threshold}) "
                "suitable for pie chart"
            ),
            x_field=text_field,
            y_field=value_field,
        )

    return ChartDecision(
        archetype=ChartArchetype.bar,
        layout=ChartLayout.category_comparison,
        title="Category Comparison",
        description=f"{text_field} by {value_field}",
        reason="Categorical data with numeric values",
        x_field=text_field,
        y_field=value_field,
    )


def decide_from_classification(
    rows: Sequence[Dict[str, Any]],
    classification: FieldClassification,
    config: Optional[VisualizationConfig] = None,
) -> ChartDecision:
    """Run the decision table against an existing classification."""
    config = config or get_config()
    if not rows:
        return _empty_decision()

    numeric = classification.numeric_fields
    dates = classification.date_fields
    texts = classification.text_fields

    label_field = _correlation_label_field(rows, classification)
    if label_field is not None:
        return ChartDecision(
            archetype=ChartArchetype.none,
            layout=ChartLayout.correlation_matrix,
            title="Correlation Matrix",
            description="Correlation coefficients between variables",
            reason="Correlation matrix detected - best displayed as a table",
            x_field=label_field,
        )

    if len(rows) == 1 and len(numeric) == 1:
        value_field = numeric[0]
        return ChartDecision(
            archetype=ChartArchetype.kpi,
            layout=ChartLayout.kpi,
            title="Key Performance Indicator",
            description=f"{value_field}: {rows[0].get(value_field)}",
            reason="Single metric value",
            y_field=value_field,
        )

    if dates and numeric:
        return _line_decision(rows, classification, config)

    if texts and numeric:
        return _category_decision(rows, classification, config)

    if len(numeric) >= 2:
        return ChartDecision(
            archetype=ChartArchetype.bar,
            layout=ChartLayout.multi_metric,
            title="Multi-Metric Comparison",
            description=f"Comparison of {numeric[0]} and {numeric[1]}",
            reason="Multiple numeric columns available",
            x_field=numeric[0],
            y_field=numeric[1],
        )

    return ChartDecision(
        archetype=ChartArchetype.none,
        layout=ChartLayout.not_visualizable,
        title="Not Visualizable",
        description="This data works best as a table",
        reason=(
            f"Found {len(texts)} text fields, {len(numeric)} numeric fields, "
            f"{len(dates)} date fields"
        ),
    )


def decide(
    rows: Sequence[Dict[str, Any]],
    fields: Sequence[FieldDescriptor],
    config: Optional[VisualizationConfig] = None,
) -> ChartDecision:
    """Pick the chart archetype for a result set. Pure and deterministic."""
    config = config or get_config()
    classification = classify_fields(rows, fields, config)
    decision = decide_from_classification(rows, classification, config)
    logger.debug(
        "Chart decision: %s/%s (%s)",
        decision.archetype.value, decision.layout.value, decision.reason,
    )
    return decision


def archetype_renders(decision: ChartDecision) -> bool:
    """Whether the render layer should be invoked for this decision."""
    archetype = decision.archetype
    if archetype in (ChartArchetype.kpi, ChartArchetype.line, ChartArchetype.bar, ChartArchetype.pie):
        return True
    if archetype == ChartArchetype.none:
        return False
    raise ValueError(f"Unhandled chart archetype: {archetype!r}")

