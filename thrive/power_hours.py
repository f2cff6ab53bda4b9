"""
Power hours: a 7 × 24 matrix of average productivity by weekday and hour.

Weekday 0 is Sunday. Productivity is MC shifted onto a 0..5 scale, with
each entry scored against the full entry list.
"""

from datetime import datetime
from typing import Iterable, List

import numpy as np

from thrive.config import DEFAULT_CONFIG, ThriveConfig
from thrive.models import EntryLike, HourCell, PowerHoursResult, entries_to_frame
from thrive.scoring import score_frame


WEEKDAYS = 7
HOURS = 24


def generate_power_hours(
    entries: Iterable[EntryLike],
    cfg: ThriveConfig | None = None,
    now: datetime | None = None,
) -> PowerHoursResult:
    """
    Build the weekday × hour matrix and pick its peak and low cells.

    Empty cells are 0.0. Peak / low lists hold the top / bottom
    max(1, ⌊non-empty cells × extreme_fraction⌋) cells, peak descending
    and low ascending. `last_updated` is the wall clock at call time.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    if now is None:
        now = datetime.now()
    ph = cfg.power_hours
    p = cfg.scoring.precision

    matrix = np.zeros((WEEKDAYS, HOURS), dtype=np.float64)

    df = entries_to_frame(entries, cfg)
    if not df.empty:
        df = score_frame(df, cfg)
        df = df[df["hour"] >= 0].copy()

    if df.empty:
        return PowerHoursResult(matrix=matrix.tolist(), peak_hours=[], low_hours=[], last_updated=now)

    df["productivity"] = (df["mc_score"] + ph.score_offset).clip(0.0, ph.score_max)
    cells = df.groupby(["weekday", "hour"])["productivity"].mean().round(p)

    for (weekday, hour), score in cells.items():
        matrix[weekday, hour] = score

    ranked: List[HourCell] = [
        HourCell(weekday=int(w), hour=int(h), score=float(s))
        for (w, h), s in cells.sort_values(ascending=False, kind="stable").items()
    ]
    n = min(len(ranked), max(ph.min_extremes, int(len(ranked) * ph.extreme_fraction)))

    return PowerHoursResult(
        matrix=matrix.tolist(),
        peak_hours=ranked[:n],
        low_hours=list(reversed(ranked[-n:])),
        last_updated=now,
    )
