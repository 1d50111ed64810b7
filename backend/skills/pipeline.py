"""
Visualization pipeline: classify, decide, transform in one call.

Results are memoized on a fingerprint of (rows, fields, config) so repeated
renders of an unchanged result set skip the row scans.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Dict, Optional, Sequence

from core.config import VisualizationConfig, cache_size, get_config
from core.models import FieldDescriptor, VisualizationResult
from core.utils import fingerprint
from skills.classify import classify_fields
from skills.select import decide_from_classification
from skills.transform import transform

logger = logging.getLogger("uvicorn.error")

VIZ_CACHE_MAX = cache_size()
_viz_cache: "OrderedDict[str, VisualizationResult]" = OrderedDict()


def _viz_cache_get(key: str) -> Optional[VisualizationResult]:
    cached = _viz_cache.get(key)
    if cached is not None:
        _viz_cache.move_to_end(key)
    return cached


def _viz_cache_set(key: str, value: VisualizationResult) -> None:
    _viz_cache[key] = value
    _viz_cache.move_to_end(key)
    if len(_viz_cache) > VIZ_CACHE_MAX:
        _viz_cache.popitem(last=False)


def clear_cache() -> None:
    _viz_cache.clear()


def dataset_fingerprint(
    rows: Sequence[Dict[str, Any]],
    fields: Sequence[FieldDescriptor],
    config: VisualizationConfig,
) -> str:
    return fingerprint(
        list(rows),
        [f.model_dump() for f in fields],
        config.model_dump(),
    )


def visualize(
    rows: Sequence[Dict[str, Any]],
    fields: Sequence[FieldDescriptor],
    config: Optional[VisualizationConfig] = None,
) -> VisualizationResult:
    """Run classify -> decide -> transform, reusing a cached result when possible."""
    config = config or get_config()
    key = dataset_fingerprint(rows, fields, config)

    cached = _viz_cache_get(key)
    if cached is not None:
        logger.debug("Visualization cache hit %s", key[:12])
        return cached.model_copy(deep=True)

    classification = classify_fields(rows, fields, config)
    decision = decide_from_classification(rows, classification, config)
    result = transform(rows, fields, decision, config, classification=classification)

    viz = VisualizationResult(
        fingerprint=key,
        decision=decision,
        classification=classification,
        result=result,
    )
    _viz_cache_set(key, viz)
    logger.info(
        "Visualized %d rows as %s/%s",
        len(rows), decision.archetype.value, decision.layout.value,
    )
    return viz.model_copy(deep=True)
