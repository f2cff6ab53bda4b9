"""
Tag driver analysis.

A driver is a tag whose presence shifts MC / DSS. Impact is the mean score
of entries carrying the tag minus the mean of entries without it, sign
preserved. Pure function over the supplied entries.
"""

from typing import Iterable, List

import pandas as pd

from thrive.config import DEFAULT_CONFIG, DriverThresholds, ThriveConfig
from thrive.models import DriverResult, EntryLike, entries_to_frame
from thrive.scoring import _round, score_frame


def classify_confidence(with_count: int, without_count: int, t: DriverThresholds) -> str:
    """Three-tier sample-size policy: both groups must reach a tier."""
    smaller = min(with_count, without_count)
    if smaller >= t.high:
        return "high"
    if smaller >= t.medium:
        return "medium"
    return "low"


def _mean(series: pd.Series) -> float:
    return float(series.mean()) if len(series) else 0.0


def analyze_drivers(
    entries: Iterable[EntryLike],
    min_occurrences: int | None = None,
    cfg: ThriveConfig | None = None,
) -> List[DriverResult]:
    """
    Rank tags by their association with better or worse days.

    Every entry is scored against the full entry list. Tags seen fewer than
    `min_occurrences` times are dropped. The result is stable-sorted by
    descending absolute MC impact, ties keeping first-appearance order.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    t = cfg.drivers
    p = cfg.scoring.precision
    if min_occurrences is None:
        min_occurrences = t.min_occurrences

    df = entries_to_frame(entries, cfg)
    if df.empty:
        return []
    df = score_frame(df, cfg)

    exploded = df["tags"].explode().dropna()
    counts = exploded.value_counts()

    results: List[DriverResult] = []
    for tag in exploded.unique():
        occurrences = int(counts[tag])
        if occurrences < min_occurrences:
            continue

        has_tag = df["tags"].map(lambda tags, tag=tag: tag in tags).astype(bool)
        with_tag = df[has_tag]
        without_tag = df[~has_tag]

        avg_mc_with = _mean(with_tag["mc_score"])
        avg_mc_without = _mean(without_tag["mc_score"])
        avg_dss_with = _mean(with_tag["dss_score"])
        avg_dss_without = _mean(without_tag["dss_score"])

        results.append(DriverResult(
            tag=tag,
            occurrences=occurrences,
            mc_impact=_round(avg_mc_with - avg_mc_without, p),
            dss_impact=_round(avg_dss_with - avg_dss_without, p),
            confidence=classify_confidence(len(with_tag), len(without_tag), t),
            avg_mc_with=_round(avg_mc_with, p),
            avg_mc_without=_round(avg_mc_without, p),
            avg_dss_with=_round(avg_dss_with, p),
            avg_dss_without=_round(avg_dss_without, p),
        ))

    return sorted(results, key=lambda d: abs(d.mc_impact), reverse=True)
