"""
Score computations: Mood Composite (MC) and Daily Success Score (DSS).

MC normalizes each rating against the user's own history (z-score with a
sigma floor). DSS blends saturating LM / RI / CN raws and does not depend
on history. Both are pure functions; invalid input yields an invalid
ScoreResult rather than an exception.
"""

import logging
from typing import Dict, Iterable, Optional, Tuple

import numpy as np
import pandas as pd

from thrive.config import DEFAULT_CONFIG, ThriveConfig
from thrive.models import (
    OPTIONAL_FIELDS,
    RATING_FIELDS,
    EntryLike,
    ScoreResult,
    bucket_value,
    entries_to_frame,
)

logger = logging.getLogger(__name__)

DSS_COMPONENTS = ("lm", "ri", "cn")


def _round(value: float, precision: int) -> float:
    return float(np.round(value, precision))


# ---------------------------------------------------------------------------
# Baseline statistics
# ---------------------------------------------------------------------------

def _field_baseline(values: pd.Series, cfg: ThriveConfig) -> Tuple[float, float]:
    """
    Population mean and effective sigma of one rating column.

    The sigma floor replaces any standard deviation below it, so identical
    historical values never divide by zero.
    """
    arr = values.to_numpy(dtype=np.float64)
    mean = float(arr.mean())
    std = float(arr.std())
    floor = cfg.scoring.sigma_floor
    if std < floor:
        logger.debug("Sigma floor %.3f substituted for std %.4f", floor, std)
        return mean, floor
    return mean, std


def _usable_history(history: pd.DataFrame) -> pd.DataFrame:
    return history.dropna(subset=list(RATING_FIELDS))


# ---------------------------------------------------------------------------
# Mood Composite
# ---------------------------------------------------------------------------

def calculate_mc(
    entry: EntryLike,
    historical_entries: Iterable[EntryLike],
    time_bucket=None,
    cfg: ThriveConfig | None = None,
) -> ScoreResult:
    """
    Mood Composite for `entry` relative to its historical baseline.

    Formula:
        MC = Σ w_f · (value_f − mean_f) / max(std_f, sigma_floor)
        for f in valence, energy, focus, stress (stress weight negative)

    When `time_bucket` is given the history is restricted to entries of
    that bucket before statistics are computed.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    p = cfg.scoring.precision

    current = entries_to_frame([entry], cfg).iloc[0]
    history = entries_to_frame(historical_entries, cfg)
    if time_bucket is not None:
        history = history[history["time_bucket"] == bucket_value(time_bucket)]
    history = _usable_history(history)

    if history.empty:
        scope = f" for time bucket '{bucket_value(time_bucket)}'" if time_bucket is not None else ""
        return ScoreResult(
            value=0.0,
            is_valid=False,
            error=f"Insufficient historical data{scope}: no entries to form a baseline",
        )

    unresolved = [name for name in RATING_FIELDS if pd.isna(current[name])]
    if unresolved:
        return ScoreResult(
            value=0.0,
            is_valid=False,
            error=f"Unresolvable rating(s): {', '.join(unresolved)}",
        )

    mc = 0.0
    components: Dict[str, Dict[str, float]] = {}
    for name, weight in cfg.mc_weights.as_dict().items():
        mean, sigma = _field_baseline(history[name], cfg)
        raw = float(current[name])
        z = (raw - mean) / sigma
        contribution = weight * z
        mc += contribution
        components[name] = {
            "raw": raw,
            "mean": _round(mean, p),
            "sigma": _round(sigma, p),
            "z_score": _round(z, p),
            "weight": weight,
            "contribution": _round(contribution, p),
        }

    return ScoreResult(value=_round(mc, p), is_valid=True, components=components)


# ---------------------------------------------------------------------------
# Daily Success Score
# ---------------------------------------------------------------------------

def compute_dss_columns(df: pd.DataFrame, cfg: ThriveConfig) -> pd.DataFrame:
    """Append raw / normalized LM, RI, CN columns and `dss_score`."""
    m = cfg.dss_multipliers
    caps = cfg.dss_caps
    weights = cfg.dss_weights.as_dict()
    p = cfg.scoring.precision

    df["lm_raw"] = df["deepwork_minutes"] + m.tasks_to_lm * df["tasks_completed"]
    df["ri_raw"] = df["sleep_hours"] + m.recovery_to_ri * df["recovery_action"].astype(float)
    df["cn_raw"] = df["social_touchpoints"]

    dss = pd.Series(0.0, index=df.index)
    for name in DSS_COMPONENTS:
        norm = (df[f"{name}_raw"] / getattr(caps, name)).clip(0.0, 1.0)
        df[f"{name}_norm"] = norm
        dss = dss + weights[name] * norm

    df["dss_score"] = dss.fillna(0.0).round(p)
    return df


def calculate_dss(
    entry: EntryLike,
    historical_entries: Optional[Iterable[EntryLike]] = None,
    cfg: ThriveConfig | None = None,
) -> ScoreResult:
    """
    Daily Success Score for `entry`.

    Components:
        lm.raw = deepwork_minutes + 10 * tasks_completed
        ri.raw = sleep_hours + (1 if recovery_action else 0)
        cn.raw = social_touchpoints

    Each raw is scaled by its cap and clamped to [0, 1], then combined with
    DSS weights. History only supplies the per-component `baseline` (mean
    raw) shown next to each component.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    p = cfg.scoring.precision

    current = compute_dss_columns(entries_to_frame([entry], cfg), cfg).iloc[0]

    unresolved = [name for name in OPTIONAL_FIELDS if pd.isna(current[name])]
    if unresolved:
        return ScoreResult(
            value=0.0,
            is_valid=False,
            error=f"Unresolvable field(s): {', '.join(unresolved)}",
        )

    history = entries_to_frame(historical_entries or [], cfg)
    if not history.empty:
        history = compute_dss_columns(history, cfg)

    weights = cfg.dss_weights.as_dict()
    components: Dict[str, Dict[str, float]] = {}
    for name in DSS_COMPONENTS:
        norm = float(current[f"{name}_norm"])
        baseline = history[f"{name}_raw"].mean() if not history.empty else 0.0
        components[name] = {
            "raw": float(current[f"{name}_raw"]),
            "normalized": _round(norm, p),
            "weight": weights[name],
            "contribution": _round(weights[name] * norm, p),
            "baseline": 0.0 if pd.isna(baseline) else _round(baseline, p),
        }

    return ScoreResult(value=float(current["dss_score"]), is_valid=True, components=components)


# ---------------------------------------------------------------------------
# Whole-frame scoring
# ---------------------------------------------------------------------------

def score_frame(df: pd.DataFrame, cfg: ThriveConfig | None = None) -> pd.DataFrame:
    """
    Append `mc_score` and `dss_score` for every row, each row scored against
    the whole frame as its history.

    Agrees with calculate_mc(entry, all_entries) and calculate_dss(entry);
    rows whose MC is invalid get 0.0.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    p = cfg.scoring.precision

    history = _usable_history(df)
    mc = pd.Series(0.0, index=df.index)
    if not history.empty:
        for name, weight in cfg.mc_weights.as_dict().items():
            mean, sigma = _field_baseline(history[name], cfg)
            mc = mc + weight * ((df[name] - mean) / sigma)

    df["mc_score"] = mc.round(p).fillna(0.0)
    return compute_dss_columns(df, cfg)
