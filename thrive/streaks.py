"""
Logging streaks over calendar days.

A day counts as logged when at least one entry's timestamp falls on it,
read on the timestamp's own wall clock. "Today" is the caller's local
date unless passed explicitly.
"""

from datetime import date
from typing import Iterable

import numpy as np

from thrive.models import EntryLike, StreakResult, entries_to_frame


EMPTY_STREAK = StreakResult(
    current_streak=0,
    longest_streak=0,
    streak_start_date=None,
    last_entry_date=None,
    is_active=False,
)


def calculate_streak(
    entries: Iterable[EntryLike],
    today: date | None = None,
) -> StreakResult:
    """
    Current and longest runs of consecutive logged days.

    current_streak  — run ending at the most recent logged day
    longest_streak  — longest run anywhere in the history
    is_active       — the most recent logged day is today or yesterday
    """
    df = entries_to_frame(entries)
    days = sorted({d for d in df["day"] if isinstance(d, date)})
    if not days:
        return EMPTY_STREAK

    if today is None:
        today = date.today()

    ordinals = np.fromiter((d.toordinal() for d in days), dtype=np.int64, count=len(days))
    # A run breaks wherever the gap to the previous logged day is not exactly 1
    breaks = np.diff(ordinals, prepend=ordinals[0] - 2) != 1
    run_ids = np.cumsum(breaks)
    run_sizes = np.bincount(run_ids)

    current = int(run_sizes[run_ids[-1]])
    last_day = days[-1]
    lapse = (today - last_day).days

    return StreakResult(
        current_streak=current,
        longest_streak=int(run_sizes.max()),
        streak_start_date=days[-current],
        last_entry_date=last_day,
        is_active=0 <= lapse <= 1,
    )
