"""
Series visibility: hide / show individual series of a transformed chart.

filter_visible() is pure: the hidden-key set is passed in by whoever owns it
(the UI, or the per-session store behind the HTTP API). SeriesVisibility wraps
such a set with the legend actions.
"""

from __future__ import annotations

from typing import AbstractSet, Any, Dict, Iterable, List, Optional, Set

from core.models import ScaleAnalysis

_PROTECTED_KEYS = frozenset({"name"})


def filter_visible(
    series: Iterable[Dict[str, Any]],
    hidden_keys: AbstractSet[str],
) -> List[Dict[str, Any]]:
    """Return copies of *series* points without the hidden keys."""
    if not hidden_keys:
        return [dict(point) for point in series]
    drop = set(hidden_keys) - _PROTECTED_KEYS
    return [
        {k: v for k, v in point.items() if k not in drop}
        for point in series
    ]


class SeriesVisibility:
    """Hidden-series state for one rendered chart."""

    def __init__(self, series_keys: Iterable[str], hidden: Optional[Set[str]] = None):
        self.series_keys: List[str] = list(series_keys)
        self.hidden: Set[str] = hidden if hidden is not None else set()

    def toggle(self, key: str) -> bool:
        """Flip *key*; returns True when the key is now hidden."""
        if key in self.hidden:
            self.hidden.discard(key)
            return False
        self.hidden.add(key)
        return True

    def show_all(self) -> None:
        self.hidden.clear()

    def hide_all(self) -> None:
        self.hidden.clear()
        self.hidden.update(self.series_keys)

    def hide_dominant(self, analysis: Optional[ScaleAnalysis]) -> bool:
        """Hide only the dominant category. No-op (False) without an analysis."""
        if analysis is None or analysis.dominant_category is None:
            return False
        self.hidden.clear()
        self.hidden.add(analysis.dominant_category)
        return True

    @property
    def visible_keys(self) -> List[str]:
        return [k for k in self.series_keys if k not in self.hidden]

    def apply(self, series: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return filter_visible(series, self.hidden)
