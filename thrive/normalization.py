"""
Sub-index construction: Learning Momentum, Recovery Index, Connection.

Each function is a pure column transform on a resolved frame — it takes a
DataFrame from entries_to_frame() and returns it with new columns appended.
Every component is a ratio clamped to [0, 1] before weighting.
"""

from datetime import date, datetime, timedelta
from typing import Dict, Iterable

import pandas as pd

from thrive.config import DEFAULT_CONFIG, ThriveConfig
from thrive.models import EntryLike, entries_to_frame


SUB_INDEX_COLUMNS = {
    "LM": "lm_score",
    "RI": "ri_score",
    "CN": "cn_score",
}


def _ratio(series: pd.Series, cap: float) -> pd.Series:
    """series / cap clamped to [0, 1]; unresolvable values contribute 0."""
    return (series.astype(float) / cap).clip(0.0, 1.0).fillna(0.0)


def compute_sub_indices(df: pd.DataFrame, cfg: ThriveConfig) -> pd.DataFrame:
    """Append LM / RI / CN component columns and the three sub-index scores."""
    s = cfg.scoring
    caps = cfg.sub_index_caps
    lm, ri, cn = cfg.lm_weights, cfg.ri_weights, cfg.cn_weights
    span = s.rating_max - s.rating_min

    # -- Learning Momentum ----------------------------------------------------
    df["lm_focus"] = _ratio(df["focus"] - s.rating_min, span)
    df["lm_deep_work"] = _ratio(df["deepwork_minutes"], caps.deep_work_minutes)
    df["lm_tasks"] = _ratio(df["tasks_completed"], caps.tasks_completed)

    df["lm_score"] = (
        df["lm_focus"] * lm.focus
        + df["lm_deep_work"] * lm.deep_work
        + df["lm_tasks"] * lm.tasks
    )

    # -- Recovery Index -------------------------------------------------------
    df["ri_sleep"] = _ratio(df["sleep_hours"], caps.sleep_hours)
    df["ri_recovery"] = df["recovery_action"].astype(float)
    # Stress is inverted: no stress → 1
    df["ri_stress_inv"] = _ratio(s.rating_max - df["stress"], span)

    df["ri_score"] = (
        df["ri_sleep"] * ri.sleep
        + df["ri_recovery"] * ri.recovery_action
        + df["ri_stress_inv"] * ri.stress_inv
    )

    # -- Connection -----------------------------------------------------------
    tags = cfg.connection_tags
    social_tag_count = df["tags"].map(lambda ts: sum(1 for t in ts if t in tags))

    df["cn_valence"] = _ratio(df["valence"] - s.rating_min, span)
    df["cn_touchpoints"] = _ratio(df["social_touchpoints"], caps.social_touchpoints)
    df["cn_social_tags"] = _ratio(social_tag_count, caps.social_tags)

    df["cn_score"] = (
        df["cn_valence"] * cn.valence
        + df["cn_touchpoints"] * cn.touchpoints
        + df["cn_social_tags"] * cn.social_tags
    )

    return df


def _frame_averages(df: pd.DataFrame) -> Dict[str, float]:
    if df.empty:
        return {name: 0.0 for name in SUB_INDEX_COLUMNS}
    return {name: float(df[col].mean()) for name, col in SUB_INDEX_COLUMNS.items()}


def calculate_sub_indices(entry: EntryLike, cfg: ThriveConfig | None = None) -> Dict[str, float]:
    """LM / RI / CN for a single entry."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    df = compute_sub_indices(entries_to_frame([entry], cfg), cfg)
    return _frame_averages(df)


def calculate_period_averages(
    entries: Iterable[EntryLike],
    cfg: ThriveConfig | None = None,
) -> Dict[str, float]:
    """Average each sub-index across `entries`. Empty input → all zeros."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    df = entries_to_frame(entries, cfg)
    if df.empty:
        return _frame_averages(df)
    return _frame_averages(compute_sub_indices(df, cfg))


# ---------------------------------------------------------------------------
# Weekly compass (current week vs previous week)
# ---------------------------------------------------------------------------

def weekly_compass(
    entries: Iterable[EntryLike],
    now: datetime | None = None,
    cfg: ThriveConfig | None = None,
) -> Dict[str, object]:
    """
    Sub-index averages for the current Monday-started week against the
    previous week, plus the signed per-dimension delta.

    Weeks are read from each entry's own calendar day; an empty week
    averages to zeros like any empty period.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    today = (now or datetime.now()).date()
    week_start = today - timedelta(days=today.weekday())
    baseline_start = week_start - timedelta(days=7)
    week_end = week_start + timedelta(days=7)

    df = entries_to_frame(entries, cfg)
    if not df.empty:
        df = compute_sub_indices(df, cfg)
    days = df["day"]

    def _in_range(start: date, end: date) -> pd.Series:
        return days.map(lambda d: isinstance(d, date) and start <= d < end).astype(bool)

    current = _frame_averages(df[_in_range(week_start, week_end)])
    baseline = _frame_averages(df[_in_range(baseline_start, week_start)])

    return {
        "week_start": week_start,
        "current": current,
        "baseline": baseline,
        "delta": {name: current[name] - baseline[name] for name in SUB_INDEX_COLUMNS},
    }
