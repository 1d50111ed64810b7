"""Engine configuration.

Limits and pattern lists for the visualization engine, overridable through
environment variables (a local `.env` is honoured via python-dotenv).
"""

from __future__ import annotations

import os
import re
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()


class VisualizationConfigError(RuntimeError):
    """Raised when an engine setting from the environment is unusable."""


DEFAULT_DATE_KEYWORDS = [
    "date", "time", "month", "year", "quarter", "week", "period",
    "created", "updated", "modified", "timestamp", "fiscal",
]

DEFAULT_NUMERIC_EXCLUSIONS = [
    "id", "key", "index", "position", "rank", "order",
]

DEFAULT_DATE_VALUE_PATTERNS = [
    r"^\d{4}-\d{2}-\d{2}",      # YYYY-MM-DD
    r"^\d{4}-\d{2}$",           # YYYY-MM
    r"^\d{4}$",                 # YYYY
    r"^Q[1-4]",                 # Q1, Q2, ...
    r"^\d{1,2}/\d{4}$",         # M/YYYY
    r"(?i)^(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)",
]


class VisualizationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_rows: int = 50
    max_series: int = 12
    piechart_threshold: int = 10
    scale_issue_ratio: float = 10.0
    ranking_window: int = 3
    date_keywords: List[str] = Field(default_factory=lambda: list(DEFAULT_DATE_KEYWORDS))
    numeric_exclusions: List[str] = Field(default_factory=lambda: list(DEFAULT_NUMERIC_EXCLUSIONS))
    date_value_patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_DATE_VALUE_PATTERNS))

    def compiled_date_patterns(self) -> List[re.Pattern]:
        return _compile(tuple(self.date_value_patterns))


@lru_cache(maxsize=32)
def _compile(patterns: tuple) -> List[re.Pattern]:
    return [re.compile(p) for p in patterns]


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip() or default


def _env_int(key: str, default: int) -> int:
    raw = _env(key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise VisualizationConfigError(f"{key} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise VisualizationConfigError(f"{key} must be positive, got {value}")
    return value


def _env_float(key: str, default: float) -> float:
    raw = _env(key)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise VisualizationConfigError(f"{key} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise VisualizationConfigError(f"{key} must be positive, got {value}")
    return value


def get_config() -> VisualizationConfig:
    """Return the engine configuration with any VIZ_* environment overrides applied."""
    defaults = VisualizationConfig()
    return VisualizationConfig(
        max_rows=_env_int("VIZ_MAX_ROWS", defaults.max_rows),
        max_series=_env_int("VIZ_MAX_SERIES", defaults.max_series),
        piechart_threshold=_env_int("VIZ_PIECHART_THRESHOLD", defaults.piechart_threshold),
        scale_issue_ratio=_env_float("VIZ_SCALE_ISSUE_RATIO", defaults.scale_issue_ratio),
    )


def cache_size() -> int:
    return _env_int("VIZ_CACHE_MAX", 256)
