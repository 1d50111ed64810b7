"""
In-memory session storage.

Uploaded tables per session, plus the session's current visualization and
its hidden-series set (the state the chart legend toggles).
"""

from __future__ import annotations

from typing import Dict, Optional, Set

import pandas as pd

from .models import VisualizationResult


# ---------------------------------------------------------------------------
# Uploaded tables
# ---------------------------------------------------------------------------

SESSIONS: Dict[str, Dict[str, pd.DataFrame]] = {}
SESS_HASHES: Dict[str, Dict[str, str]] = {}
SESS_META: Dict[str, Dict[str, dict]] = {}


def get_session(session_id: str) -> Dict[str, pd.DataFrame]:
    if session_id not in SESSIONS:
        SESSIONS[session_id] = {}
    return SESSIONS[session_id]


def get_session_hashes(session_id: str) -> Dict[str, str]:
    if session_id not in SESS_HASHES:
        SESS_HASHES[session_id] = {}
    return SESS_HASHES[session_id]


def get_session_meta(session_id: str) -> Dict[str, dict]:
    if session_id not in SESS_META:
        SESS_META[session_id] = {}
    return SESS_META[session_id]


# ---------------------------------------------------------------------------
# Current visualization + hidden series
# ---------------------------------------------------------------------------

# session_id -> last VisualizationResult
SESS_VIZ: Dict[str, VisualizationResult] = {}

# session_id -> hidden series keys
SESS_HIDDEN: Dict[str, Set[str]] = {}


def get_visualization(session_id: str) -> Optional[VisualizationResult]:
    return SESS_VIZ.get(session_id)


def save_visualization(session_id: str, viz: VisualizationResult) -> Set[str]:
    """
    Store *viz* as the session's current chart and return its hidden set.

    The hidden set survives re-renders of the same result set and is reset
    when the result set changes.
    """
    previous = SESS_VIZ.get(session_id)
    SESS_VIZ[session_id] = viz
    if previous is None or previous.fingerprint != viz.fingerprint:
        SESS_HIDDEN[session_id] = set()
    return get_hidden(session_id)


def get_hidden(session_id: str) -> Set[str]:
    if session_id not in SESS_HIDDEN:
        SESS_HIDDEN[session_id] = set()
    return SESS_HIDDEN[session_id]


def reset_storage() -> None:
    """Drop all in-memory state (used by tests)."""
    SESSIONS.clear()
    SESS_HASHES.clear()
    SESS_META.clear()
    SESS_VIZ.clear()
    SESS_HIDDEN.clear()
