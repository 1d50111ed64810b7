"""
Field classification skill — labels each result-set field as numeric, date or text.

Only the first row is sampled; the field name carries the rest of the signal.
Each field receives exactly one kind, checked in that order.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from core.config import VisualizationConfig, get_config
from core.models import FieldClassification, FieldDescriptor, FieldKind
from core.utils import to_number

logger = logging.getLogger("uvicorn.error")


# ---------------------------------------------------------------------------
# Per-field rules
# ---------------------------------------------------------------------------

def _is_numeric(name: str, value: Any, config: VisualizationConfig) -> bool:
    name_lower = name.lower()
    if any(word in name_lower for word in config.numeric_exclusions):
        return False
    return to_number(value) is not None


def _is_date(name: str, value: Any, config: VisualizationConfig) -> bool:
    name_lower = name.lower()
    if any(word in name_lower for word in config.date_keywords):
        return True
    if isinstance(value, str):
        return any(p.search(value) for p in config.compiled_date_patterns())
    return False


def detect_field_kind(
    name: str,
    value: Any,
    config: Optional[VisualizationConfig] = None,
) -> FieldKind:
    """Infer the kind of one field from its name and a sampled value."""
    config = config or get_config()
    if _is_numeric(name, value, config):
        return FieldKind.numeric
    if _is_date(name, value, config):
        return FieldKind.date
    return FieldKind.text


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def classify_fields(
    rows: Sequence[Dict[str, Any]],
    fields: Sequence[FieldDescriptor],
    config: Optional[VisualizationConfig] = None,
) -> FieldClassification:
    """
    Classify every field against the dataset's first row.

    Fields missing from the row are sampled as None and therefore end up as
    text. An empty dataset classifies every field as text.
    """
    config = config or get_config()
    first_row: Dict[str, Any] = rows[0] if rows else {}

    result = FieldClassification()
    buckets: Dict[FieldKind, List[str]] = {
        FieldKind.numeric: result.numeric_fields,
        FieldKind.date: result.date_fields,
        FieldKind.text: result.text_fields,
    }

    for field in fields:
        if field.name in result.kinds:
            continue  # duplicate descriptor
        kind = detect_field_kind(field.name, first_row.get(field.name), config)
        result.field_names.append(field.name)
        result.kinds[field.name] = kind
        buckets[kind].append(field.name)

    logger.debug(
        "Field classification: numeric=%s date=%s text=%s",
        result.numeric_fields, result.date_fields, result.text_fields,
    )
    return result
