"""
Core Pydantic models for the visualization recommendation engine.

All domain types live here so every module shares the same vocabulary.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Fields & classification
# ---------------------------------------------------------------------------

class FieldKind(str, Enum):
    numeric = "numeric"
    date = "date"
    text = "text"


class FieldDescriptor(BaseModel):
    """A result-set column as reported by the query / schema-probing layer."""
    model_config = ConfigDict(frozen=True)

    name: str
    declared_kind: Optional[str] = Field(
        None, validation_alias=AliasChoices("declared_kind", "declaredKind", "type"),
    )


class FieldClassification(BaseModel):
    numeric_fields: List[str] = Field(default_factory=list)
    date_fields: List[str] = Field(default_factory=list)
    text_fields: List[str] = Field(default_factory=list)
    field_names: List[str] = Field(default_factory=list)
    kinds: Dict[str, FieldKind] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Scale analysis
# ---------------------------------------------------------------------------

class CategoryStats(BaseModel):
    values: List[float] = Field(default_factory=list)
    min: float = 0.0
    max: float = 0.0
    avg: float = 0.0


class ScaleAnalysis(BaseModel):
    category_stats: Dict[str, CategoryStats] = Field(default_factory=dict)
    scale_ratio: float = 1.0
    has_scale_issues: bool = False
    dominant_category: Optional[str] = None


# ---------------------------------------------------------------------------
# Chart decision
# ---------------------------------------------------------------------------

class ChartArchetype(str, Enum):
    kpi = "kpi"
    line = "line"
    bar = "bar"
    pie = "pie"
    none = "none"


class ChartLayout(str, Enum):
    """Which branch of the decision table produced a decision."""
    kpi = "kpi"
    multi_series = "multi_series"
    time_series = "time_series"
    ranking = "ranking"
    distribution = "distribution"
    category_comparison = "category_comparison"
    multi_metric = "multi_metric"
    correlation_matrix = "correlation_matrix"
    empty = "empty"
    not_visualizable = "not_visualizable"


class ChartDecision(BaseModel):
    archetype: ChartArchetype
    layout: ChartLayout
    title: str = ""
    description: str = ""
    reason: str = ""
    x_field: Optional[str] = None
    y_field: Optional[str] = None
    category_field: Optional[str] = None
    scale_analysis: Optional[ScaleAnalysis] = None


# ---------------------------------------------------------------------------
# Transformed output
# ---------------------------------------------------------------------------

class TransformResult(BaseModel):
    series: List[Dict[str, Any]] = Field(default_factory=list)
    x_key: Optional[str] = None
    y_key: Optional[str] = None
    series_keys: List[str] = Field(default_factory=list)   # per-category keys (multi-series only)
    total_series: int = 0
    series_truncated: bool = False
    limit_exceeded: bool = False
    source_row_count: int = 0
    rendered_row_count: int = 0
    notices: List[str] = Field(default_factory=list)


class VisualizationResult(BaseModel):
    fingerprint: str = ""
    decision: ChartDecision
    classification: FieldClassification
    result: TransformResult


# ---------------------------------------------------------------------------
# API request bodies
# ---------------------------------------------------------------------------

class VisualizeRequest(BaseModel):
    rows: Optional[List[Dict[str, Any]]] = None
    fields: Optional[List[FieldDescriptor]] = None
    table_name: Optional[str] = None


class SeriesToggleRequest(BaseModel):
    key: str
