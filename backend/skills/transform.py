"""
Data transformation skill — reshapes result rows into renderable series.

The chart decision picks the shape:
  - KPI: the single metric value
  - pie: {name, value} slices
  - bar / single-series line: {name, value, **row} points (row kept for tooltips)
  - multi-series line: long rows pivoted to one point per date, one key per category
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from core.config import VisualizationConfig, get_config
from core.models import (
    ChartArchetype,
    ChartDecision,
    ChartLayout,
    FieldClassification,
    FieldDescriptor,
    TransformResult,
)
from core.utils import (
    SERIES_X_KEY,
    hashable_key,
    json_safe_value,
    label_or_unknown,
    number_or_zero,
    parse_date_key,
    series_key,
)
from skills.classify import classify_fields

logger = logging.getLogger("uvicorn.error")


# ---------------------------------------------------------------------------
# Axis resolution
# ---------------------------------------------------------------------------

def _default_axes(classification: FieldClassification) -> Tuple[Optional[str], Optional[str]]:
    """Fallback x / y fields when a decision does not name them."""
    names = classification.field_names
    x_field = (
        classification.text_fields[0] if classification.text_fields
        else (names[0] if names else None)
    )
    y_field = (
        classification.numeric_fields[0] if classification.numeric_fields
        else (names[1] if len(names) > 1 else None)
    )
    return x_field, y_field


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------

def _label(row: Dict[str, Any], field: Optional[str]) -> Any:
    return label_or_unknown(json_safe_value(row.get(field)) if field else None)


def _pie_points(rows: Sequence[Dict[str, Any]], x_field: Optional[str], y_field: Optional[str]) -> List[Dict[str, Any]]:
    return [
        {
            "name": _label(row, x_field),
            "value": number_or_zero(row.get(y_field) if y_field else None),
        }
        for row in rows
    ]


def _category_points(rows: Sequence[Dict[str, Any]], x_field: Optional[str], y_field: Optional[str]) -> List[Dict[str, Any]]:
    points: List[Dict[str, Any]] = []
    for row in rows:
        point = {k: json_safe_value(v) for k, v in row.items()}
        point["name"] = _label(row, x_field)
        point["value"] = number_or_zero(row.get(y_field) if y_field else None)
        points.append(point)
    return points


def pivot_series(
    rows: Sequence[Dict[str, Any]],
    date_field: str,
    category_field: str,
    value_field: str,
    max_series: int,
) -> Tuple[List[Dict[str, Any]], List[str], int]:
    """
    Pivot long rows (date, category, value) into one point per date.

    Returns (points, series_keys, total_series). Points are ordered by parsed
    date; dates that do not parse keep their first-seen order after the rest.
    Categories beyond *max_series* (first-seen order) are dropped from every point.
    A category labelled like the x key is renamed to SERIES_NAME_ALIAS.
    """
    points: Dict[Any, Dict[str, Any]] = {}
    categories: List[str] = []
    seen = set()

    for row in rows:
        date = json_safe_value(row.get(date_field))
        point = points.setdefault(hashable_key(date), {SERIES_X_KEY: date})
        category = series_key(row.get(category_field))
        if category not in seen:
            seen.add(category)
            categories.append(category)
        point[category] = number_or_zero(row.get(value_field))

    series_keys = categories[:max_series]
    dropped = set(categories[max_series:])
    if dropped:
        for point in points.values():
            for key in dropped:
                point.pop(key, None)

    def sort_key(point: Dict[str, Any]) -> Tuple[int, int]:
        parsed = parse_date_key(point[SERIES_X_KEY])
        return (0, parsed) if parsed is not None else (1, 0)

    ordered = sorted(points.values(), key=sort_key)
    return ordered, series_keys, len(categories)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def transform(
    rows: Sequence[Dict[str, Any]],
    fields: Sequence[FieldDescriptor],
    decision: ChartDecision,
    config: Optional[VisualizationConfig] = None,
    *,
    classification: Optional[FieldClassification] = None,
) -> TransformResult:
    """Reshape *rows* into the series structure required by *decision*."""
    config = config or get_config()
    total = len(rows)
    limited = list(rows[: config.max_rows])
    limit_exceeded = total > config.max_rows

    if classification is None:
        classification = classify_fields(rows, fields, config)
    default_x, default_y = _default_axes(classification)
    x_field = decision.x_field or default_x
    y_field = decision.y_field or default_y

    result = TransformResult(
        x_key=x_field,
        y_key=y_field,
        limit_exceeded=limit_exceeded,
        source_row_count=total,
        rendered_row_count=len(limited),
    )
    if limit_exceeded:
        result.notices.append(
            f"Showing first {config.max_rows} rows of {total} total rows"
        )
        logger.warning("Row limit exceeded: rendering %d of %d rows", config.max_rows, total)

    archetype = decision.archetype
    if archetype == ChartArchetype.none:
        result.x_key = None
        result.y_key = None
        result.rendered_row_count = 0
        return result

    if archetype == ChartArchetype.kpi:
        value = limited[0].get(y_field) if limited and y_field else None
        result.series = [{"name": y_field, "value": value}]
        result.x_key = None
        result.rendered_row_count = min(1, len(limited))
        return result

    if archetype == ChartArchetype.pie:
        result.series = _pie_points(limited, x_field, y_field)
        return result

    if archetype == ChartArchetype.line and decision.layout == ChartLayout.multi_series:
        date_field = decision.x_field or (classification.date_fields[0] if classification.date_fields else default_x)
        category_field = decision.category_field or default_x
        value_field = decision.y_field or default_y
        points, series_keys, total_series = pivot_series(
            limited, date_field, category_field, value_field, config.max_series,
        )
        result.series = points
        result.series_keys = series_keys
        result.total_series = total_series
        result.series_truncated = total_series > len(series_keys)
        result.x_key = SERIES_X_KEY
        result.y_key = series_keys[0] if series_keys else None
        if result.series_truncated:
            logger.warning(
                "Limited to %d series out of %d available", len(series_keys), total_series,
            )
            result.notices.append(
                f"Showing {len(series_keys)} of {total_series} series"
            )
        logger.info(
            "Pivoted %d rows into %d points across %d series",
            len(limited), len(points), len(series_keys),
        )
        return result

    if archetype in (ChartArchetype.bar, ChartArchetype.line):
        result.series = _category_points(limited, x_field, y_field)
        return result

    raise ValueError(f"Unhandled chart archetype: {archetype!r}")
